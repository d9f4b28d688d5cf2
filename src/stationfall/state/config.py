"""
Static match configuration.

Loaded once before a match starts; reset() rebuilds everything from it and
no state crosses matches. Stored as YAML (or JSON) and merged over the
defaults below, so a config file only needs the keys it changes.
"""

import json
import logging
import math
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..errors import ConfigError
from .schema import Position, SlotAnchor, Zone, ZoneType

logger = logging.getLogger(__name__)


class TensionConfig(BaseModel):
    """Tension resource tuning."""
    max: float = 100.0
    decay_rate: float = 1.0        # per second, once the grace delay has passed
    decay_delay: float = 3.0       # seconds without an increase before decay starts
    distant_amount: float = 1.0    # applied when the protagonist is out of range or unknown
    innocent_kill: float = 25.0
    hidden_kill_relief: float = 15.0


class AbilitySpec(BaseModel):
    """Per-ability tension tuning."""
    base_amount: float
    range: float
    cooldown: float = 0.0


DEFAULT_ABILITIES: dict[str, AbilitySpec] = {
    "collision": AbilitySpec(base_amount=5.0, range=3.0, cooldown=5.0),
    "glitch": AbilitySpec(base_amount=8.0, range=15.0, cooldown=8.0),
    "sound": AbilitySpec(base_amount=6.0, range=20.0, cooldown=6.0),
    "wind": AbilitySpec(base_amount=10.0, range=8.0, cooldown=10.0),
}


class ZoneConfig(BaseModel):
    """
    Zone layout expressed as slot counts.

    Anchors are laid out deterministically around the origin so every
    participant derives the same slot ids and positions from the same file.
    """
    name: str
    zone_type: ZoneType = ZoneType.HABITAT
    origin: Position = Field(default_factory=Position)
    population_slots: int = 5
    interactable_slots: int = 3
    high_value_slots: int = 2
    spacing: float = 4.0
    high_value_radius: float = 25.0
    interactables: dict[str, int] | None = None  # Overrides the match-wide counts

    def build_zone(self) -> Zone:
        """Generate the zone's slot anchors."""
        return Zone(
            name=self.name,
            zone_type=self.zone_type,
            population_slots=self._grid("pop", self.population_slots, 0.0),
            interactable_slots=self._grid("int", self.interactable_slots, self.spacing / 2),
            high_value_slots=self._ring("hv", self.high_value_slots),
        )

    def _grid(self, prefix: str, count: int, shift: float) -> list[SlotAnchor]:
        cols = max(1, math.ceil(math.sqrt(count)))
        anchors = []
        for i in range(count):
            row, col = divmod(i, cols)
            anchors.append(SlotAnchor(
                id=f"{self.name}/{prefix}/{i}",
                position=self.origin.offset(dx=col * self.spacing + shift, dz=row * self.spacing + shift),
            ))
        return anchors

    def _ring(self, prefix: str, count: int) -> list[SlotAnchor]:
        anchors = []
        for i in range(count):
            angle = 2 * math.pi * i / max(1, count)
            anchors.append(SlotAnchor(
                id=f"{self.name}/{prefix}/{i}",
                position=self.origin.offset(
                    dx=round(math.cos(angle) * self.high_value_radius, 3),
                    dz=round(math.sin(angle) * self.high_value_radius, 3),
                ),
            ))
        return anchors


def _default_zones() -> list[ZoneConfig]:
    return [
        ZoneConfig(name="Habitat", zone_type=ZoneType.HABITAT, origin=Position(x=0, z=0)),
        ZoneConfig(name="Research", zone_type=ZoneType.RESEARCH, origin=Position(x=60, z=0)),
        ZoneConfig(name="Industrial", zone_type=ZoneType.INDUSTRIAL, origin=Position(x=0, z=60)),
        ZoneConfig(name="Command", zone_type=ZoneType.COMMAND, origin=Position(x=60, z=60)),
    ]


class MatchConfig(BaseModel):
    """Everything a match needs before start_match()."""
    population_size: int | None = None   # Caps initial NPCs; None = one per slot
    hidden_role_target: int = 3
    match_duration: float = 600.0        # seconds; infiltrators win when it runs out
    clear_radius: float = 3.0            # NPCs this close to a player spawn are evicted
    fallback_position: Position | None = Field(default_factory=Position)

    tension: TensionConfig = Field(default_factory=TensionConfig)
    abilities: dict[str, AbilitySpec] = Field(default_factory=lambda: dict(DEFAULT_ABILITIES))

    zones: list[ZoneConfig] = Field(default_factory=_default_zones)
    interactables: dict[str, int] = Field(
        default_factory=lambda: {"coffee_machine": 2, "alarm_terminal": 1}
    )
    high_value_count: int = 2
    high_value_min_distance: float = 20.0

    min_loading_time: float = 3.0
    max_wait_time: float = 10.0

    def build_zones(self) -> list[Zone]:
        return [z.build_zone() for z in self.zones]

    def interactables_for(self, zone_name: str) -> dict[str, int]:
        """Category counts for one zone (zone override, else match-wide)."""
        for zone in self.zones:
            if zone.name == zone_name and zone.interactables is not None:
                return zone.interactables
        return self.interactables

    def check_startup(self) -> None:
        """
        Reject configurations no match can run with.

        Raises:
            ConfigError: zero zones and no fallback position
        """
        if not self.zones and self.fallback_position is None:
            raise ConfigError(
                "No zones configured and no fallback_position defined; "
                "players would have nowhere to spawn."
            )
        names = [z.name for z in self.zones]
        if len(names) != len(set(names)):
            raise ConfigError(f"Zone names must be unique: {names}")


def _merge(defaults: dict, saved: dict) -> dict:
    """Merge saved values over defaults, recursing into nested mappings."""
    merged = dict(defaults)
    for key, value in saved.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | str | None = None) -> MatchConfig:
    """
    Load config from a YAML or JSON file, or return defaults if not found.

    Unreadable files fall back to defaults with a warning. Files that parse
    but describe an invalid config raise ConfigError.
    """
    if path is None:
        return MatchConfig()

    path = Path(path)
    if not path.exists():
        logger.info(f"No config at {path}, using defaults")
        return MatchConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix == ".json":
                saved = json.load(f)
            else:
                saved = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError, IOError) as e:
        logger.warning(f"Could not read config {path}: {e}; using defaults")
        return MatchConfig()

    if saved is None:
        return MatchConfig()
    if not isinstance(saved, dict):
        raise ConfigError(f"Config {path} must be a mapping, got {type(saved).__name__}")

    defaults = MatchConfig().model_dump(mode="json")
    try:
        return MatchConfig.model_validate(_merge(defaults, saved))
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e


def save_config(config: MatchConfig, path: Path | str) -> bool:
    """Save config to file. Returns True on success."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")
    try:
        with open(path, "w", encoding="utf-8") as f:
            if path.suffix == ".json":
                json.dump(data, f, indent=2)
            else:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        return True
    except IOError:
        return False
