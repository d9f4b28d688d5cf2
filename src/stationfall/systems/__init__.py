"""
Match systems for Stationfall.

Each system owns one concern and reports through the session's EventBus;
PhaseController sequences them and MatchSession wires them together.
"""

from .placement import DeterministicPlacer
from .roles import RoleAssignor
from .allocator import SpawnAllocator
from .tension import TensionAccumulator, TensionSnapshot
from .abilities import AbilityBook, AbilityKind, effective_tension
from .loading import LoadingGate, GateStatus
from .phases import PhaseController, VALID_TRANSITIONS
from .session import MatchSession

__all__ = [
    "DeterministicPlacer",
    "RoleAssignor",
    "SpawnAllocator",
    "TensionAccumulator",
    "TensionSnapshot",
    "AbilityBook",
    "AbilityKind",
    "effective_tension",
    "LoadingGate",
    "GateStatus",
    "PhaseController",
    "VALID_TRANSITIONS",
    "MatchSession",
]
