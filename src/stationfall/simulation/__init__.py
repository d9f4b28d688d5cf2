"""Simulation module for bot-driven match testing."""

from .player import BotPlayer
from .personas import PERSONAS
from .runner import create_simulation, run_simulation, SimulationTranscript

__all__ = [
    "BotPlayer",
    "PERSONAS",
    "create_simulation",
    "run_simulation",
    "SimulationTranscript",
]
