"""
Error taxonomy for the match orchestration core.

Every error except ConfigError is handled by the component that detects it:
the authority logs it and keeps the match loop running. ConfigError is the
one startup failure, raised before any match can begin.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state.schema import MatchPhase


class MatchError(Exception):
    """Base class for orchestration errors."""
    pass


class InvalidPhaseTransition(MatchError):
    """Attempted transition is not allowed from the current phase."""
    def __init__(self, current: "MatchPhase", attempted: str):
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"Cannot {attempted} during {current.value} phase."
        )


class NoSpawnAvailable(MatchError):
    """No slot can take a new player. Callers spawn at the fallback position."""
    def __init__(self, player_id: str, total_slots: int):
        self.player_id = player_id
        self.total_slots = total_slots
        super().__init__(
            f"No spawn slot available for {player_id} "
            f"({total_slots} slots registered)."
        )


class DuplicateRoleAssignment(MatchError):
    """Roles were already assigned this match."""
    def __init__(self, assigned: int):
        self.assigned = assigned
        super().__init__(
            f"Roles already assigned ({assigned} hidden). Reset before reassigning."
        )


class StaleSlotReference(MatchError):
    """A slot's anchor is no longer valid (e.g. after a world reload)."""
    def __init__(self, slot_id: str):
        self.slot_id = slot_id
        super().__init__(f"Slot {slot_id} has a stale anchor.")


class SlotOccupiedError(MatchError):
    """Attempted to occupy a slot that already holds someone."""
    def __init__(self, slot_id: str, occupant_id: str | None):
        self.slot_id = slot_id
        self.occupant_id = occupant_id
        super().__init__(f"Slot {slot_id} is already occupied by {occupant_id}.")


class ConfigError(MatchError):
    """Structural misconfiguration detected at load time."""
    pass


class EntityIdConflict(MatchError):
    """A player id collides with a member that is not a player."""
    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{entity_id} already names an NPC.")
