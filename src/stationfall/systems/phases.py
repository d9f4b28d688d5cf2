"""
Match phase controller.

Owns the match state machine and sequences match start:
    LOBBY → STARTING → PLAYING → CHAOS → ENDED → (STARTING | LOBBY)

- Orchestrates and delegates: slots, roles, tension and placement live in
  their own services.
- Every phase change is broadcast as PHASE_CHANGED.
- Illegal transitions raise InvalidPhaseTransition internally; the public
  entry points log it and return False so a stray message never takes the
  authority down.

Usage:
    controller = PhaseController(config, bus, population, allocator, roles, tension, placer)
    controller.start_match(["p1", "p2"])
    controller.entity_eliminated("npc-4", was_hidden=True)
"""

from __future__ import annotations

import logging

from ..errors import InvalidPhaseTransition, NoSpawnAvailable
from ..state.config import MatchConfig
from ..state.event_bus import EventBus, EventType
from ..state.population import Population, is_npc_id
from ..state.schema import (
    EndReason,
    HighValueSite,
    MatchOutcome,
    MatchPhase,
    MatchSummary,
    PlacementRecord,
    PlayerRole,
    PopulationMember,
    Position,
)
from .allocator import SpawnAllocator
from .placement import DeterministicPlacer
from .roles import RoleAssignor
from .tension import TensionAccumulator

logger = logging.getLogger(__name__)


# Each phase maps to the phases it may move to
VALID_TRANSITIONS: dict[MatchPhase, set[MatchPhase]] = {
    MatchPhase.LOBBY: {MatchPhase.STARTING},
    MatchPhase.STARTING: {MatchPhase.PLAYING},
    MatchPhase.PLAYING: {MatchPhase.CHAOS, MatchPhase.ENDED},
    MatchPhase.CHAOS: {MatchPhase.ENDED},
    MatchPhase.ENDED: {MatchPhase.STARTING, MatchPhase.LOBBY},
}

ACTIVE_PHASES = (MatchPhase.PLAYING, MatchPhase.CHAOS)


class PhaseController:
    """
    Sequences a match. Delegates, never allocates.

    Responsibilities:
    - Phase state machine enforcement
    - Match start pipeline (populate, spawn, roles, placement, sites)
    - Win conditions and the match timer
    - MatchSummary at ENDED
    """

    def __init__(
        self,
        config: MatchConfig,
        bus: EventBus,
        population: Population,
        allocator: SpawnAllocator,
        roles: RoleAssignor,
        tension: TensionAccumulator,
        placer: DeterministicPlacer,
    ):
        self._config = config
        self._bus = bus
        self._population = population
        self._allocator = allocator
        self._roles = roles
        self._tension = tension
        self._placer = placer

        self._phase = MatchPhase.LOBBY
        self._elapsed = 0.0
        self._hidden_eliminated = 0
        self._innocents_eliminated = 0
        self._reached_chaos = False
        self._late_joins = 0
        self._summary: MatchSummary | None = None
        self._placements: dict[str, PlacementRecord] = {}
        self._sites: list[HighValueSite] = []

        self._tension.set_overflow_handler(self.on_tension_maxed)

    # ─── State ───────────────────────────────────────────────────

    @property
    def phase(self) -> MatchPhase:
        return self._phase

    @property
    def elapsed(self) -> float:
        return self._elapsed

    @property
    def time_remaining(self) -> float:
        return max(0.0, self._config.match_duration - self._elapsed)

    @property
    def late_joins(self) -> int:
        return self._late_joins

    @property
    def summary(self) -> MatchSummary | None:
        """Summary of the last finished match, if any."""
        return self._summary

    @property
    def placements(self) -> dict[str, PlacementRecord]:
        return dict(self._placements)

    @property
    def high_value_sites(self) -> list[HighValueSite]:
        return list(self._sites)

    @property
    def is_active(self) -> bool:
        return self._phase in ACTIVE_PHASES

    def _transition(self, to: MatchPhase) -> None:
        """Move to a new phase, enforcing the transition table."""
        if to not in VALID_TRANSITIONS.get(self._phase, set()):
            raise InvalidPhaseTransition(self._phase, f"transition to {to.value}")
        previous = self._phase
        self._phase = to
        logger.info(f"Phase {previous.value} -> {to.value}")
        self._bus.emit(EventType.PHASE_CHANGED, phase=to.value, previous=previous.value)

    # ─── Match start ─────────────────────────────────────────────

    def start_match(
        self,
        player_ids: list[str],
        names: dict[str, str] | None = None,
    ) -> bool:
        """
        Run the start pipeline and enter PLAYING.

        1. Clear whatever the previous match left behind
        2. Populate every empty slot with an NPC
        3. Pick the protagonist and spawn players, protagonist first
        4. Flag hidden roles over the NPCs that survived spawn clearing
        5. Place interactables and pick high-value sites

        Args:
            player_ids: Connected players, in connection order
            names: Optional display names keyed by player id

        Returns:
            True if the match started, False if the phase forbade it
        """
        try:
            self._transition(MatchPhase.STARTING)
        except InvalidPhaseTransition as e:
            logger.warning(f"start_match ignored: {e}")
            return False

        names = names or {}
        self._clear_match_state()

        rejected = [pid for pid in player_ids if is_npc_id(pid)]
        if rejected:
            logger.warning(f"Skipping players with NPC ids: {rejected}")
            player_ids = [pid for pid in player_ids if not is_npc_id(pid)]

        self._allocator.populate_initial_occupants()

        protagonist_id = self._roles.pick_protagonist(player_ids)
        ordered = sorted(player_ids, key=lambda pid: pid != protagonist_id)
        for player_id in ordered:
            role = PlayerRole.PROTAGONIST if player_id == protagonist_id else PlayerRole.INFILTRATOR
            self.spawn_player(player_id, names.get(player_id), role)

        self._roles.assign_roles(self._population.npcs(), self._config.hidden_role_target)

        zones = self._allocator.zones
        overrides = {
            zone.name: self._config.interactables_for(zone.name)
            for zone in zones
        }
        self._placements = self._placer.place_all(zones, self._config.interactables, overrides)
        self._bus.emit(
            EventType.INTERACTABLES_PLACED,
            zones={name: record.by_category() for name, record in self._placements.items()},
        )

        protagonist = self._population.protagonist()
        origin = protagonist.position if protagonist else (self._config.fallback_position or Position())
        self._sites = self._allocator.select_high_value_sites(
            origin,
            self._config.high_value_count,
            self._config.high_value_min_distance,
        )
        self._bus.emit(
            EventType.HIGH_VALUE_SITES_SELECTED,
            sites=[site.model_dump(mode="json") for site in self._sites],
        )

        self._transition(MatchPhase.PLAYING)
        return True

    def spawn_player(
        self,
        player_id: str,
        name: str | None,
        role: PlayerRole,
        late: bool = False,
    ) -> PopulationMember:
        """
        Put one player into the world and give them a role.

        Falls back to the configured fallback position when no slot can be
        had, then clears NPCs standing on top of the spawn point.
        """
        fallback = False
        try:
            if late:
                member = self._allocator.handle_late_join(player_id, name)
            else:
                member = self._allocator.reserve_slot_for_new_player(player_id, name)
        except NoSpawnAvailable as e:
            logger.warning(f"{e} Using fallback position.")
            position = self._config.fallback_position or Position()
            member = self._allocator.place_at_fallback(player_id, name, position)
            fallback = True

        self._allocator.clear_occupants_near(member.position, self._config.clear_radius, keep=member.id)
        self._roles.assign_player_role(member, role)
        if late:
            self._late_joins += 1

        self._bus.emit(
            EventType.PLAYER_SPAWNED,
            player_id=member.id,
            role=role.value,
            slot_id=member.slot_id,
            position=member.position.model_dump(),
            fallback=fallback,
            late=late,
        )
        if late:
            self.check_hidden_remaining()
        return member

    def _clear_match_state(self) -> None:
        self._tension.reset()
        self._roles.reset()
        self._population.clear_roles()
        self._allocator.clear()

        self._elapsed = 0.0
        self._hidden_eliminated = 0
        self._innocents_eliminated = 0
        self._reached_chaos = False
        self._late_joins = 0
        self._summary = None
        self._placements = {}
        self._sites = []

    # ─── In-match transitions ────────────────────────────────────

    def on_tension_maxed(self) -> bool:
        """PLAYING → CHAOS. Ignored in any other phase."""
        if self._phase != MatchPhase.PLAYING:
            logger.info(f"Tension maxed during {self._phase.value}, ignored")
            return False
        self._transition(MatchPhase.CHAOS)
        self._reached_chaos = True
        return True

    def on_terminal_condition(
        self,
        outcome: MatchOutcome,
        reason: EndReason = EndReason.MANUAL,
    ) -> bool:
        """
        End the match. A no-op when it has already ended.

        Returns:
            True if this call ended the match
        """
        if self._phase == MatchPhase.ENDED:
            logger.debug(f"Match already ended, ignoring {reason.value}")
            return False
        try:
            self._transition(MatchPhase.ENDED)
        except InvalidPhaseTransition as e:
            logger.warning(f"End of match ignored: {e}")
            return False

        self._summary = MatchSummary(
            outcome=outcome,
            reason=reason,
            duration=self._elapsed,
            hidden_eliminated=self._hidden_eliminated,
            innocents_eliminated=self._innocents_eliminated,
            reached_chaos=self._reached_chaos,
            late_joins=self._late_joins,
        )
        logger.info(f"Match ended: {outcome.value} ({reason.value}) after {self._elapsed:.1f}s")
        self._bus.emit(EventType.MATCH_ENDED, **self._summary.model_dump(mode="json"))
        return True

    def entity_eliminated(self, entity_id: str, was_hidden: bool = False) -> bool:
        """
        Record a death and check win conditions.

        The member's own hidden flag wins over the reported one when the
        member is known. Protagonist down means the infiltrators win; the
        last hidden member down means the protagonist wins. Otherwise an
        innocent death raises tension and a hidden death relieves it.

        Returns:
            True if the elimination was counted
        """
        if not self.is_active:
            logger.warning(f"Elimination of {entity_id} during {self._phase.value}, ignored")
            return False

        member = self._population.get(entity_id)
        if member is not None:
            if not member.alive:
                logger.debug(f"{entity_id} already eliminated")
                return False
            member.alive = False
            was_hidden = member.hidden_role

        self._bus.emit(EventType.ENTITY_ELIMINATED, entity_id=entity_id, was_hidden=was_hidden)

        if member is not None and member.is_protagonist:
            self.on_terminal_condition(MatchOutcome.INFILTRATORS_WIN, EndReason.PROTAGONIST_ELIMINATED)
            return True

        if was_hidden:
            self._hidden_eliminated += 1
            self._tension.on_hidden_killed()
            self.check_hidden_remaining()
        else:
            self._innocents_eliminated += 1
            self._tension.on_innocent_killed()
        return True

    def protagonist_disconnected(self) -> bool:
        """The astronaut left; the infiltrators take the match."""
        if not self.is_active:
            return False
        return self.on_terminal_condition(
            MatchOutcome.INFILTRATORS_WIN, EndReason.PROTAGONIST_DISCONNECTED
        )

    def check_hidden_remaining(self) -> bool:
        """
        End the match for the protagonist once no hidden member is left.

        Hidden members also leave without being eliminated: infiltrator
        players disconnect and hidden NPCs get evicted by spawns.

        Returns:
            True if this call ended the match
        """
        if not self.is_active or self._population.hidden_alive():
            return False
        logger.info("No hidden members left")
        return self.on_terminal_condition(MatchOutcome.PROTAGONIST_WINS, EndReason.HIDDEN_ELIMINATED)

    def tick(self, dt: float) -> None:
        """Advance tension decay and, during a match, the match timer."""
        self._tension.tick(dt)
        if not self.is_active:
            return
        self._elapsed += dt
        if self._elapsed >= self._config.match_duration:
            logger.info("Match timer expired")
            self.on_terminal_condition(MatchOutcome.INFILTRATORS_WIN, EndReason.TIME_LIMIT)

    # ─── Reset ───────────────────────────────────────────────────

    def reset(self) -> bool:
        """
        Back to LOBBY with a clean slate. Allowed from ENDED or LOBBY.

        Returns:
            True if the reset happened
        """
        if self._phase == MatchPhase.LOBBY:
            self._clear_match_state()
            return True
        try:
            self._transition(MatchPhase.LOBBY)
        except InvalidPhaseTransition as e:
            logger.warning(f"reset ignored: {e}")
            return False
        self._clear_match_state()
        return True
