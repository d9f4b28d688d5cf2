"""
Spawn allocation for NPCs and players.

Every population slot holds exactly one occupant. NPCs fill the slots at
match start; players then take a random empty slot, or evict a random NPC
when none is empty. Late joiners go through the same algorithm and can never
land on a slot that already holds a player.

Eviction destroys the NPC outright (it is not an elimination). Every
occupancy change is announced as SLOT_OCCUPANCY_CHANGED.
"""

from __future__ import annotations

import logging
import random

from ..errors import EntityIdConflict, NoSpawnAvailable
from ..state.config import MatchConfig
from ..state.event_bus import EventBus, EventType
from ..state.population import NPC_ID_PREFIX, Population
from ..state.registry import SpawnRegistry
from ..state.schema import (
    HighValueSite,
    MemberKind,
    OccupantKind,
    PopulationMember,
    Position,
    SpawnSlot,
    Zone,
)
from ..tools.shuffle import fisher_yates

logger = logging.getLogger(__name__)


class SpawnAllocator:
    """
    Reservation and eviction over a SpawnRegistry.

    Not safe for concurrent writers: two interleaved reservations could both
    pick the same empty slot before either commits. The authority calls it
    from its single tick.
    """

    def __init__(
        self,
        registry: SpawnRegistry,
        population: Population,
        bus: EventBus,
        config: MatchConfig,
        rng: random.Random | None = None,
    ):
        self.registry = registry
        self.population = population
        self._bus = bus
        self._config = config
        self._rng = rng or random.Random()
        self._zones: list[Zone] = []

    @property
    def zones(self) -> list[Zone]:
        return list(self._zones)

    def register_world(self, zones: list[Zone]) -> int:
        """Register every zone's population slots. Returns slots added."""
        added = 0
        for zone in zones:
            added += len(self.registry.register_zone_slots(zone))
            if all(z.name != zone.name for z in self._zones):
                self._zones.append(zone)
        logger.info(f"Registered {added} slots from {len(zones)} zones")
        return added

    # ─── NPCs ────────────────────────────────────────────────────

    def populate_initial_occupants(self) -> list[PopulationMember]:
        """
        Create exactly one NPC per empty slot.

        Honors config.population_size as a cap on the total NPC count; slots
        beyond the cap stay empty and are handed to players first.
        """
        cap = self._config.population_size
        existing = len(self.population.npcs())
        created = []

        for slot in self.registry.all_empty_slots():
            if cap is not None and existing + len(created) >= cap:
                break

            number = self.population.next_npc_number()
            npc = PopulationMember(
                id=f"{NPC_ID_PREFIX}{number}",
                name=f"NPC_{slot.zone}_{number}",
                kind=MemberKind.NPC,
                position=slot.position,
                slot_id=slot.id,
            )
            self.population.add(npc)
            self.registry.mark_occupied(slot.id, OccupantKind.NPC, npc.id)
            self._announce(slot)
            created.append(npc)

        logger.info(f"Populated {len(created)} NPCs across {len(self.registry)} slots")
        return created

    def _evict(self, slot: SpawnSlot) -> PopulationMember | None:
        """Destroy the NPC in a slot and free the slot."""
        npc = self.population.remove(slot.occupant_id) if slot.occupant_id else None
        self.registry.mark_empty(slot.id)
        self._announce(slot, evicted=npc)
        if npc:
            logger.debug(f"Evicted {npc.name} from {slot.id}")
        return npc

    def clear_occupants_near(self, position: Position, radius: float, keep: str | None = None) -> int:
        """
        Evict living NPCs closer than radius to a position.

        Used right after a player spawns so nobody starts overlapped. The
        member named by keep is never evicted.

        Returns:
            Number of NPCs evicted
        """
        cleared = 0
        for npc in self.population.npcs():
            if not npc.alive or npc.slot_id is None or npc.id == keep:
                continue
            distance = position.distance_to(npc.position)
            if distance < radius:
                slot = self.registry.get(npc.slot_id)
                if slot is not None and slot.occupant_id == npc.id:
                    logger.debug(f"Removing {npc.name} too close to spawn ({distance:.1f}m)")
                    self._evict(slot)
                    cleared += 1

        if cleared:
            logger.info(f"Cleared {cleared} NPCs near {position}")
        return cleared

    # ─── Players ─────────────────────────────────────────────────

    def reserve_slot_for_new_player(self, player_id: str, name: str | None = None) -> PopulationMember:
        """
        Give a joining player a slot.

        1. A random empty slot, if any.
        2. Otherwise a random NPC slot; the NPC is evicted.
        3. Otherwise NoSpawnAvailable.

        Raises:
            NoSpawnAvailable: no empty or NPC-held slot exists
            EntityIdConflict: player_id already names an NPC
        """
        return self._reserve(player_id, name)

    def handle_late_join(self, player_id: str, name: str | None = None) -> PopulationMember:
        """Same algorithm as reserve_slot_for_new_player, for matches in progress."""
        logger.info(f"Late join: {player_id}")
        return self._reserve(player_id, name)

    def _reserve(self, player_id: str, name: str | None) -> PopulationMember:
        existing = self._existing_player(player_id)
        if existing is not None and existing.slot_id is not None:
            logger.debug(f"{player_id} already holds {existing.slot_id}")
            return existing

        empty = self.registry.all_empty_slots()
        if empty:
            fisher_yates(empty, self._rng)
            chosen = empty[0]
        else:
            npc_slots = self.registry.all_slots_occupied_by(OccupantKind.NPC)
            if not npc_slots:
                raise NoSpawnAvailable(player_id, len(self.registry))
            fisher_yates(npc_slots, self._rng)
            chosen = npc_slots[0]
            self._evict(chosen)

        player = existing or PopulationMember(
            id=player_id,
            name=name or player_id,
            kind=MemberKind.PLAYER,
        )
        player.position = chosen.position
        player.slot_id = chosen.id
        if existing is None:
            self.population.add(player)

        self.registry.mark_occupied(chosen.id, OccupantKind.PLAYER, player.id)
        self._announce(chosen)
        logger.info(f"Reserved {chosen.id} for {player.name} (zone: {chosen.zone})")
        return player

    def _existing_player(self, player_id: str) -> PopulationMember | None:
        existing = self.population.get(player_id)
        if existing is not None and existing.kind != MemberKind.PLAYER:
            raise EntityIdConflict(player_id)
        return existing

    def place_at_fallback(self, player_id: str, name: str | None, position: Position) -> PopulationMember:
        """Register a player who spawned outside any slot."""
        player = self._existing_player(player_id)
        if player is None:
            player = self.population.add(PopulationMember(
                id=player_id,
                name=name or player_id,
                kind=MemberKind.PLAYER,
            ))
        player.position = position
        player.slot_id = None
        return player

    def release_player(self, player_id: str) -> PopulationMember | None:
        """Remove a disconnected player; their slot becomes empty."""
        player = self.population.remove(player_id)
        slot = self.registry.slot_for(player_id)
        if slot is not None:
            self.registry.mark_empty(slot.id)
            self._announce(slot)
        return player

    # ─── High-value sites ────────────────────────────────────────

    def select_high_value_sites(
        self,
        origin: Position,
        count: int,
        min_distance: float,
    ) -> list[HighValueSite]:
        """
        Pick defense points at least min_distance from the protagonist.

        Falls back to four cardinal points just beyond min_distance when no
        configured slot qualifies.
        """
        candidates = [
            HighValueSite(name="", position=anchor.position, slot_id=anchor.id)
            for zone in self._zones
            for anchor in zone.high_value_slots
            if anchor.valid and anchor.position.distance_to(origin) >= min_distance
        ]

        if not candidates:
            logger.info("No valid high-value slots, using fallback sites")
            reach = min_distance + 10.0
            candidates = [
                HighValueSite(name="", position=origin.offset(dx=dx * reach, dz=dz * reach))
                for dx, dz in ((0, 1), (0, -1), (-1, 0), (1, 0))
            ]

        fisher_yates(candidates, self._rng)
        chosen = candidates[:max(0, count)]
        for i, site in enumerate(chosen):
            site.name = f"Defense Point {chr(ord('A') + i)}"

        logger.info(f"Selected {len(chosen)} high-value sites (target: {count})")
        return chosen

    # ─── Housekeeping ────────────────────────────────────────────

    def clear(self) -> None:
        """Empty every slot and drop the whole population."""
        self.registry.clear_occupancy()
        self.population.clear()

    def _announce(self, slot: SpawnSlot, evicted: PopulationMember | None = None) -> None:
        data = {
            "slot_id": slot.id,
            "zone": slot.zone,
            "kind": slot.occupant.value,
            "occupant_id": slot.occupant_id,
        }
        if evicted is not None:
            data["evicted"] = evicted.id
            data["was_hidden"] = evicted.hidden_role
        self._bus.emit(EventType.SLOT_OCCUPANCY_CHANGED, **data)
