"""
Pydantic models for Stationfall match state.

Covers the world layout (zones, slot anchors), the live registry entries,
population members, placement output and the end-of-match summary.
Everything here is plain data; the systems package owns the behavior.
"""

import math
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class MatchPhase(str, Enum):
    LOBBY = "lobby"          # Waiting for players
    STARTING = "starting"    # Populating, assigning roles
    PLAYING = "playing"      # Main gameplay
    CHAOS = "chaos"          # Tension maxed, infiltrators revealed
    ENDED = "ended"          # Match over


class OccupantKind(str, Enum):
    EMPTY = "empty"
    NPC = "npc"
    PLAYER = "player"


class MemberKind(str, Enum):
    NPC = "npc"
    PLAYER = "player"


class PlayerRole(str, Enum):
    PROTAGONIST = "protagonist"    # The astronaut
    INFILTRATOR = "infiltrator"    # An alien player


class ZoneType(str, Enum):
    HABITAT = "Habitat"
    RESEARCH = "Research"
    INDUSTRIAL = "Industrial"
    COMMAND = "Command"


class MatchOutcome(str, Enum):
    PROTAGONIST_WINS = "protagonist_wins"   # All infiltrators eliminated
    INFILTRATORS_WIN = "infiltrators_win"   # Protagonist down or time expired


class EndReason(str, Enum):
    HIDDEN_ELIMINATED = "hidden_eliminated"
    PROTAGONIST_ELIMINATED = "protagonist_eliminated"
    PROTAGONIST_DISCONNECTED = "protagonist_disconnected"
    TIME_LIMIT = "time_limit"
    MANUAL = "manual"


def generate_id() -> str:
    return str(uuid4())[:8]


# -----------------------------------------------------------------------------
# World layout
# -----------------------------------------------------------------------------

class Position(BaseModel):
    """A point in world space."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def distance_to(self, other: "Position") -> float:
        return math.dist((self.x, self.y, self.z), (other.x, other.y, other.z))

    def offset(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> "Position":
        return Position(x=self.x + dx, y=self.y + dy, z=self.z + dz)

    def __str__(self) -> str:
        return f"({self.x:.1f}, {self.y:.1f}, {self.z:.1f})"


class SlotAnchor(BaseModel):
    """A designated world position inside a zone."""
    id: str
    position: Position = Field(default_factory=Position)
    valid: bool = True  # False once the anchor goes stale (world reload)


class Zone(BaseModel):
    """
    Named world region.

    The name doubles as the placement seed source, so it must be stable
    across every participant in a match.
    """
    name: str
    zone_type: ZoneType = ZoneType.HABITAT
    population_slots: list[SlotAnchor] = Field(default_factory=list)
    interactable_slots: list[SlotAnchor] = Field(default_factory=list)
    high_value_slots: list[SlotAnchor] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Live state
# -----------------------------------------------------------------------------

class SpawnSlot(BaseModel):
    """Registry entry for one population slot and its current occupant."""
    id: str
    zone: str
    position: Position = Field(default_factory=Position)
    occupant: OccupantKind = OccupantKind.EMPTY
    occupant_id: str | None = None  # None iff occupant is EMPTY
    valid: bool = True

    @property
    def is_empty(self) -> bool:
        return self.occupant == OccupantKind.EMPTY


class PopulationMember(BaseModel):
    """An NPC or connected player taking part in the match."""
    id: str = Field(default_factory=generate_id)
    name: str
    kind: MemberKind = MemberKind.NPC
    alive: bool = True
    hidden_role: bool = False
    player_role: PlayerRole | None = None  # Players only
    position: Position = Field(default_factory=Position)
    slot_id: str | None = None

    @property
    def is_player(self) -> bool:
        return self.kind == MemberKind.PLAYER

    @property
    def is_protagonist(self) -> bool:
        return self.player_role == PlayerRole.PROTAGONIST


class PlacementRecord(BaseModel):
    """Ordered assignment of interactable categories to one zone's slots."""
    zone: str
    seed: int
    assignments: list[tuple[str, str]] = Field(default_factory=list)  # (slot_id, category)

    def by_category(self) -> dict[str, list[str]]:
        """Group slot ids by category, preserving assignment order."""
        grouped: dict[str, list[str]] = {}
        for slot_id, category in self.assignments:
            grouped.setdefault(category, []).append(slot_id)
        return grouped


class HighValueSite(BaseModel):
    """A selected defense point for this match."""
    name: str
    position: Position
    slot_id: str | None = None  # None for generated fallback sites


class MatchSummary(BaseModel):
    """Display-only record emitted when the match ends."""
    outcome: MatchOutcome
    reason: EndReason
    duration: float = 0.0
    hidden_eliminated: int = 0
    innocents_eliminated: int = 0
    reached_chaos: bool = False
    late_joins: int = 0
