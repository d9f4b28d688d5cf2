"""Tests for the spawn slot registry."""

import pytest

from stationfall.errors import SlotOccupiedError, StaleSlotReference
from stationfall.state.config import ZoneConfig
from stationfall.state.registry import SpawnRegistry
from stationfall.state.schema import OccupantKind


@pytest.fixture
def zone():
    return ZoneConfig(name="Alpha", population_slots=3).build_zone()


@pytest.fixture
def registry(zone):
    registry = SpawnRegistry()
    registry.register_zone_slots(zone)
    return registry


def assert_exclusive(registry: SpawnRegistry):
    for slot in registry.all_slots():
        assert (slot.occupant == OccupantKind.EMPTY) == (slot.occupant_id is None)


class TestRegistration:
    """Test zone slot registration."""

    def test_registers_every_population_slot(self, registry):
        """Each population anchor becomes one empty slot."""
        assert len(registry) == 3
        assert len(registry.all_empty_slots()) == 3
        assert registry.zone_names == ["Alpha"]

    def test_registration_is_idempotent(self, registry, zone):
        """Registering the same zone again adds nothing."""
        fresh = registry.register_zone_slots(zone)

        assert fresh == []
        assert len(registry) == 3
        assert registry.zone_names == ["Alpha"]

    def test_slot_ids_follow_zone_name(self, registry):
        """Slot ids are derived from the zone name."""
        assert "Alpha/pop/0" in registry
        assert registry.get("Alpha/pop/2").zone == "Alpha"

    def test_reregistration_keeps_occupancy(self, registry, zone):
        """A known slot keeps its occupant when its zone registers again."""
        registry.mark_occupied("Alpha/pop/0", OccupantKind.NPC, "npc-1")
        registry.register_zone_slots(zone)

        assert registry.get("Alpha/pop/0").occupant_id == "npc-1"


class TestOccupancy:
    """Test marking slots occupied and empty."""

    def test_mark_occupied(self, registry):
        """Occupying a slot removes it from the empty list."""
        slot = registry.mark_occupied("Alpha/pop/1", OccupantKind.NPC, "npc-1")

        assert slot.occupant == OccupantKind.NPC
        assert slot.occupant_id == "npc-1"
        assert len(registry.all_empty_slots()) == 2
        assert_exclusive(registry)

    def test_double_occupation_rejected(self, registry):
        """A slot never holds two occupants."""
        registry.mark_occupied("Alpha/pop/1", OccupantKind.NPC, "npc-1")

        with pytest.raises(SlotOccupiedError):
            registry.mark_occupied("Alpha/pop/1", OccupantKind.PLAYER, "p1")
        assert registry.get("Alpha/pop/1").occupant_id == "npc-1"

    def test_empty_kind_rejected(self, registry):
        """EMPTY is not an occupant kind."""
        with pytest.raises(ValueError):
            registry.mark_occupied("Alpha/pop/0", OccupantKind.EMPTY, "npc-1")

    def test_missing_ref_rejected(self, registry):
        """An occupant needs a reference."""
        with pytest.raises(ValueError):
            registry.mark_occupied("Alpha/pop/0", OccupantKind.NPC, "")

    def test_unknown_slot(self, registry):
        """Unknown slot ids raise KeyError."""
        with pytest.raises(KeyError):
            registry.mark_occupied("Nowhere/pop/0", OccupantKind.NPC, "npc-1")

    def test_mark_empty_clears_reference(self, registry):
        """An emptied slot carries no occupant reference."""
        registry.mark_occupied("Alpha/pop/0", OccupantKind.PLAYER, "p1")
        slot = registry.mark_empty("Alpha/pop/0")

        assert slot.is_empty
        assert slot.occupant_id is None
        assert_exclusive(registry)

    def test_occupied_by_kind(self, registry):
        """Filter slots by occupant kind."""
        registry.mark_occupied("Alpha/pop/0", OccupantKind.NPC, "npc-1")
        registry.mark_occupied("Alpha/pop/1", OccupantKind.PLAYER, "p1")

        assert [s.id for s in registry.all_slots_occupied_by(OccupantKind.NPC)] == ["Alpha/pop/0"]
        assert [s.id for s in registry.all_slots_occupied_by(OccupantKind.PLAYER)] == ["Alpha/pop/1"]
        assert registry.count_in_zone("Alpha", OccupantKind.NPC) == 1

    def test_occupancy_counts(self, registry):
        registry.mark_occupied("Alpha/pop/0", OccupantKind.NPC, "npc-1")

        counts = registry.occupancy()
        assert counts[OccupantKind.NPC] == 1
        assert counts[OccupantKind.EMPTY] == 2
        assert counts[OccupantKind.PLAYER] == 0

    def test_slot_for(self, registry):
        """Look up the slot an occupant holds."""
        registry.mark_occupied("Alpha/pop/2", OccupantKind.PLAYER, "p1")

        assert registry.slot_for("p1").id == "Alpha/pop/2"
        assert registry.slot_for("p2") is None

    def test_clear_occupancy_keeps_slots(self, registry):
        """Clearing empties every slot without unregistering any."""
        registry.mark_occupied("Alpha/pop/0", OccupantKind.NPC, "npc-1")
        registry.mark_occupied("Alpha/pop/1", OccupantKind.PLAYER, "p1")
        registry.clear_occupancy()

        assert len(registry) == 3
        assert len(registry.all_empty_slots()) == 3
        assert_exclusive(registry)


class TestStaleSlots:
    """Test slots whose anchors went away."""

    def test_stale_slots_are_not_candidates(self, registry):
        """Invalidated slots drop out of the empty list."""
        assert registry.invalidate_zone("Alpha") == 3
        assert registry.all_empty_slots() == []

    def test_stale_slot_mutation_raises(self, registry):
        """Occupying a stale slot raises StaleSlotReference."""
        registry.invalidate_zone("Alpha")

        with pytest.raises(StaleSlotReference):
            registry.mark_occupied("Alpha/pop/0", OccupantKind.NPC, "npc-1")

    def test_stale_slot_can_be_emptied(self, registry):
        registry.mark_occupied("Alpha/pop/0", OccupantKind.NPC, "npc-1")
        registry.invalidate_zone("Alpha")

        assert registry.mark_empty("Alpha/pop/0").is_empty

    def test_reregistration_reanchors(self, registry, zone):
        """Registering the zone again revives its stale slots."""
        registry.invalidate_zone("Alpha")
        registry.register_zone_slots(zone)

        assert len(registry.all_empty_slots()) == 3
        assert len(registry) == 3
