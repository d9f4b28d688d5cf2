"""
Match session: the authority's single entry point.

Builds every service around one session-owned EventBus and one
general-purpose random generator, then exposes the inbound interface the
transport layer calls: connects, disconnects, eliminations, ability use,
start requests and the per-frame tick.

All calls are expected from one thread, inside the authority's tick.
"""

from __future__ import annotations

import logging
import random

from ..state.config import MatchConfig
from ..state.event_bus import EventBus, EventType
from ..state.population import Population, is_npc_id
from ..state.registry import SpawnRegistry
from ..state.schema import (
    MatchPhase,
    PlacementRecord,
    PlayerRole,
    PopulationMember,
    Position,
    Zone,
    generate_id,
)
from .abilities import AbilityBook, AbilityKind, effective_tension
from .allocator import SpawnAllocator
from .loading import GateStatus, LoadingGate
from .phases import PhaseController
from .placement import DeterministicPlacer
from .roles import RoleAssignor
from .tension import TensionAccumulator

logger = logging.getLogger(__name__)


class MatchSession:
    """
    One authority-side match, reusable across rounds.

    Raises:
        ConfigError: at construction, if the config cannot host any match
    """

    def __init__(
        self,
        config: MatchConfig | None = None,
        rng: random.Random | None = None,
        match_id: str | None = None,
    ):
        self.config = config or MatchConfig()
        self.config.check_startup()

        self.match_id = match_id or generate_id()
        self.rng = rng or random.Random()
        self.bus = EventBus(match_id=self.match_id)

        self.registry = SpawnRegistry()
        self.population = Population()
        self.placer = DeterministicPlacer()
        self.roles = RoleAssignor(self.bus, self.rng)
        self.allocator = SpawnAllocator(
            self.registry, self.population, self.bus, self.config, self.rng
        )
        self.tension = TensionAccumulator(self.config.tension, self.bus)
        self.abilities = AbilityBook(self.config.abilities)
        self.phases = PhaseController(
            self.config,
            self.bus,
            self.population,
            self.allocator,
            self.roles,
            self.tension,
            self.placer,
        )
        self.gate = LoadingGate(self.config.min_loading_time, self.config.max_wait_time)

        self._connected: dict[str, str] = {}  # player id -> name, in connection order
        self._now = 0.0

        self.allocator.register_world(self.config.build_zones())

    @property
    def phase(self) -> MatchPhase:
        return self.phases.phase

    @property
    def now(self) -> float:
        return self._now

    @property
    def connected(self) -> list[str]:
        return list(self._connected)

    def register_zone(self, zone: Zone) -> int:
        """Register a zone that finished loading after construction."""
        return self.allocator.register_world([zone])

    # ─── Inbound: players ────────────────────────────────────────

    def player_connected(self, player_id: str, name: str | None = None) -> PopulationMember | None:
        """
        A player joined.

        In LOBBY or ENDED the player waits for the next start. During
        STARTING they are reserved a slot; during PLAYING or CHAOS they
        late-join as an infiltrator.

        Ids in the NPC namespace ("npc-<n>") are refused.

        Returns:
            The spawned member, or None while pending or refused
        """
        if is_npc_id(player_id):
            logger.warning(f"Refusing player id {player_id}: reserved for NPCs")
            return None
        if player_id in self._connected:
            logger.debug(f"{player_id} already connected")
            return self.population.get(player_id)

        self._connected[player_id] = name or player_id
        phase = self.phases.phase

        if phase in (MatchPhase.LOBBY, MatchPhase.ENDED):
            logger.info(f"{player_id} waiting for next match ({len(self._connected)} connected)")
            return None
        if phase == MatchPhase.STARTING:
            return self.phases.spawn_player(player_id, name, PlayerRole.INFILTRATOR)
        return self.phases.spawn_player(player_id, name, PlayerRole.INFILTRATOR, late=True)

    def player_disconnected(self, player_id: str) -> bool:
        """A player left. Their slot frees up; losing the protagonist ends the match."""
        if self._connected.pop(player_id, None) is None:
            logger.debug(f"Unknown player disconnected: {player_id}")
            return False

        member = self.population.get(player_id)
        was_protagonist = member is not None and member.is_protagonist and member.alive
        self.allocator.release_player(player_id)
        logger.info(f"{player_id} disconnected")

        if was_protagonist:
            self.phases.protagonist_disconnected()
        else:
            self.phases.check_hidden_remaining()
        return True

    # ─── Inbound: gameplay ───────────────────────────────────────

    def entity_eliminated(self, entity_id: str, was_hidden: bool = False) -> bool:
        return self.phases.entity_eliminated(entity_id, was_hidden)

    def ability_used(
        self,
        actor_id: str,
        kind: AbilityKind | str,
        position: Position,
        base_amount: float | None = None,
        effect_range: float | None = None,
    ) -> float:
        """
        An infiltrator used a chaos ability at a world position.

        Explicit base_amount/effect_range override the catalog values.
        Uses outside PLAYING, by the protagonist, or while on cooldown are
        absorbed.

        Returns:
            Tension applied (0.0 when absorbed)
        """
        key = kind.value if isinstance(kind, AbilityKind) else kind

        if self.phases.phase != MatchPhase.PLAYING:
            logger.debug(f"Ability {key} ignored during {self.phases.phase.value}")
            return 0.0

        actor = self.population.get(actor_id)
        if actor is not None and (actor.is_protagonist or not actor.alive):
            logger.warning(f"{actor_id} cannot use abilities")
            return 0.0

        spec = self.abilities.spec(key)
        if spec is None and (base_amount is None or effect_range is None):
            logger.warning(f"Unknown ability: {key}")
            return 0.0

        if not self.abilities.is_ready(actor_id, key, self._now):
            remaining = self.abilities.cooldown_remaining(actor_id, key, self._now)
            logger.debug(f"{actor_id} {key} on cooldown ({remaining:.1f}s)")
            return 0.0

        base = base_amount if base_amount is not None else spec.base_amount
        reach = effect_range if effect_range is not None else spec.range

        protagonist = self.population.protagonist()
        target = protagonist.position if protagonist is not None and protagonist.alive else None
        amount = effective_tension(base, reach, position, target, self.config.tension.distant_amount)

        self.abilities.start_cooldown(actor_id, key, self._now)
        self.bus.emit(
            EventType.ABILITY_USED,
            actor_id=actor_id,
            kind=key,
            position=position.model_dump(),
            amount=amount,
        )
        self.tension.add_tension(amount)
        return amount

    # ─── Lifecycle ───────────────────────────────────────────────

    def request_start(self, now: float | None = None) -> GateStatus:
        """
        Arm the loading gate. The match starts on the tick the gate opens.

        Args:
            now: Start of the loading window (defaults to the session clock)
        """
        if self.phases.phase not in (MatchPhase.LOBBY, MatchPhase.ENDED):
            logger.warning(f"Start requested during {self.phases.phase.value}, ignored")
            return self.gate.status
        self.gate.begin(self._now if now is None else now)
        return self.gate.status

    def start_match(self) -> bool:
        """Start immediately with every connected player."""
        started = self.phases.start_match(list(self._connected), dict(self._connected))
        if started:
            self.abilities.reset()
            self.gate.reset()
        return started

    def tick(self, dt: float) -> None:
        """Advance the session clock, the loading gate, tension and the match timer."""
        self._now += dt
        if self.gate.status == GateStatus.WAITING:
            self.gate.poll(self._now, len(self.registry.zone_names))
            if self.gate.is_open:
                self.start_match()
        self.phases.tick(dt)

    def reset(self) -> bool:
        """Back to LOBBY. Connected players stay and join the next start."""
        done = self.phases.reset()
        if done:
            self.abilities.reset()
            self.gate.reset()
        return done

    # ─── Observers ───────────────────────────────────────────────

    def placements(self) -> dict[str, PlacementRecord]:
        """
        Interactable layout as any observer computes it locally.

        Needs only the zone list and the category counts; no match state.
        """
        zones = self.allocator.zones
        overrides = {zone.name: self.config.interactables_for(zone.name) for zone in zones}
        return DeterministicPlacer().place_all(zones, self.config.interactables, overrides)

    def status(self) -> dict:
        """Snapshot for display and the headless runner."""
        protagonist = self.population.protagonist()
        summary = self.phases.summary
        return {
            "match_id": self.match_id,
            "phase": self.phases.phase.value,
            "clock": round(self._now, 3),
            "time_remaining": round(self.phases.time_remaining, 3),
            "tension": self.tension.snapshot().model_dump(),
            "connected": self.connected,
            "protagonist": protagonist.id if protagonist else None,
            "npcs": len(self.population.npcs()),
            "players": len(self.population.players()),
            "hidden_alive": len(self.population.hidden_alive()),
            "occupancy": {k.value: v for k, v in self.registry.occupancy().items()},
            "gate": self.gate.status.value,
            "summary": summary.model_dump(mode="json") if summary else None,
        }
