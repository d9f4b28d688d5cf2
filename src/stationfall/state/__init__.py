"""Match state for Stationfall: schemas, config, registry and the event bus."""

from .schema import (
    MatchPhase,
    OccupantKind,
    MemberKind,
    PlayerRole,
    ZoneType,
    MatchOutcome,
    EndReason,
    Position,
    SlotAnchor,
    Zone,
    SpawnSlot,
    PopulationMember,
    PlacementRecord,
    HighValueSite,
    MatchSummary,
)
from .config import (
    MatchConfig,
    TensionConfig,
    AbilitySpec,
    ZoneConfig,
    load_config,
    save_config,
)
from .event_bus import EventBus, EventType, MatchEvent
from .registry import SpawnRegistry
from .population import NPC_ID_PREFIX, Population, is_npc_id

__all__ = [
    # Schema
    "MatchPhase",
    "OccupantKind",
    "MemberKind",
    "PlayerRole",
    "ZoneType",
    "MatchOutcome",
    "EndReason",
    "Position",
    "SlotAnchor",
    "Zone",
    "SpawnSlot",
    "PopulationMember",
    "PlacementRecord",
    "HighValueSite",
    "MatchSummary",
    # Config
    "MatchConfig",
    "TensionConfig",
    "AbilitySpec",
    "ZoneConfig",
    "load_config",
    "save_config",
    # Events
    "EventBus",
    "EventType",
    "MatchEvent",
    # Live state
    "SpawnRegistry",
    "Population",
    "NPC_ID_PREFIX",
    "is_npc_id",
]
