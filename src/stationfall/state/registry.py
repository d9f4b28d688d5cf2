"""
Spawn slot registry.

Bookkeeping of every population slot in the world and who currently holds
it. Enforces the exclusivity invariant: one occupant per slot, and an EMPTY
slot never carries an occupant reference. It broadcasts nothing; callers
decide what to announce.

Not safe for concurrent writers. The authority mutates it from its own tick.
"""

import logging

from ..errors import SlotOccupiedError, StaleSlotReference
from .schema import OccupantKind, SpawnSlot, Zone

logger = logging.getLogger(__name__)


class SpawnRegistry:
    """Every population slot, keyed by slot id, in registration order."""

    def __init__(self):
        self._slots: dict[str, SpawnSlot] = {}
        self._zones: list[str] = []

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, slot_id: str) -> bool:
        return slot_id in self._slots

    @property
    def zone_names(self) -> list[str]:
        return list(self._zones)

    def register_zone_slots(self, zone: Zone) -> list[SpawnSlot]:
        """
        Register a zone's population slots.

        Idempotent: slot ids already known are ignored, except that a known
        slot whose anchor went stale is re-anchored in place (occupancy kept).

        Returns:
            The slots that were newly registered
        """
        if zone.name not in self._zones:
            self._zones.append(zone.name)

        fresh = []
        for anchor in zone.population_slots:
            existing = self._slots.get(anchor.id)
            if existing is not None:
                if not existing.valid and anchor.valid:
                    existing.position = anchor.position
                    existing.valid = True
                    logger.debug(f"Re-anchored slot {anchor.id}")
                continue

            slot = SpawnSlot(
                id=anchor.id,
                zone=zone.name,
                position=anchor.position,
                valid=anchor.valid,
            )
            self._slots[slot.id] = slot
            fresh.append(slot)

        logger.debug(f"Zone {zone.name}: {len(fresh)} new slots ({len(self._slots)} total)")
        return fresh

    def invalidate_zone(self, zone_name: str) -> int:
        """Mark every slot in a zone stale (its anchors no longer exist)."""
        count = 0
        for slot in self._slots.values():
            if slot.zone == zone_name and slot.valid:
                slot.valid = False
                count += 1
        return count

    # ─── Queries ─────────────────────────────────────────────────

    def get(self, slot_id: str) -> SpawnSlot | None:
        return self._slots.get(slot_id)

    def all_slots(self) -> list[SpawnSlot]:
        return list(self._slots.values())

    def all_empty_slots(self) -> list[SpawnSlot]:
        """Valid slots with no occupant. Stale slots are never candidates."""
        return [s for s in self._slots.values() if s.valid and s.is_empty]

    def all_slots_occupied_by(self, kind: OccupantKind) -> list[SpawnSlot]:
        """Valid slots held by the given occupant kind."""
        return [s for s in self._slots.values() if s.valid and s.occupant == kind]

    def count_in_zone(self, zone_name: str, kind: OccupantKind) -> int:
        return sum(
            1 for s in self._slots.values()
            if s.zone == zone_name and s.occupant == kind
        )

    def slot_for(self, occupant_id: str) -> SpawnSlot | None:
        """The slot currently held by an occupant, if any."""
        for slot in self._slots.values():
            if slot.occupant_id == occupant_id:
                return slot
        return None

    def occupancy(self) -> dict[OccupantKind, int]:
        counts = {kind: 0 for kind in OccupantKind}
        for slot in self._slots.values():
            counts[slot.occupant] += 1
        return counts

    # ─── Mutators ────────────────────────────────────────────────

    def _require(self, slot_id: str) -> SpawnSlot:
        slot = self._slots.get(slot_id)
        if slot is None:
            raise KeyError(f"Unknown slot: {slot_id}")
        if not slot.valid:
            raise StaleSlotReference(slot_id)
        return slot

    def mark_occupied(self, slot_id: str, kind: OccupantKind, ref: str) -> SpawnSlot:
        """
        Hand an empty slot to an occupant.

        Raises:
            ValueError: kind is EMPTY or ref is missing
            SlotOccupiedError: the slot already holds someone
            StaleSlotReference: the slot's anchor is stale
        """
        if kind == OccupantKind.EMPTY or not ref:
            raise ValueError("mark_occupied needs a non-empty kind and an occupant ref")

        slot = self._require(slot_id)
        if not slot.is_empty:
            raise SlotOccupiedError(slot_id, slot.occupant_id)

        slot.occupant = kind
        slot.occupant_id = ref
        return slot

    def mark_empty(self, slot_id: str) -> SpawnSlot:
        """Free a slot. Stale slots may still be emptied."""
        slot = self._slots.get(slot_id)
        if slot is None:
            raise KeyError(f"Unknown slot: {slot_id}")
        slot.occupant = OccupantKind.EMPTY
        slot.occupant_id = None
        return slot

    def clear_occupancy(self) -> None:
        """Empty every slot. Registrations stay."""
        for slot in self._slots.values():
            slot.occupant = OccupantKind.EMPTY
            slot.occupant_id = None
