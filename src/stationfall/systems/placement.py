"""
Deterministic interactable placement.

Coffee machines, alarm terminals and the like are not networked: every
participant places them locally. The layout is derived only from the zone
name and its slot list, so the authority and every observer arrive at the
same assignment with no message exchange.

Each call builds a private generator from the zone's seed and never touches
the module-level `random` state, so unrelated randomness (role shuffles,
spawn choices) is not perturbed.
"""

import logging

from ..state.schema import PlacementRecord, Zone
from ..tools.shuffle import fisher_yates, seeded_rng, stable_seed

logger = logging.getLogger(__name__)


class DeterministicPlacer:
    """Seeded per-zone placement. Stateless; safe to run on any participant."""

    def place_interactables(
        self,
        zone: Zone,
        category_counts: dict[str, int],
    ) -> PlacementRecord:
        """
        Assign interactable categories to a zone's slots.

        Shuffles the zone's valid interactable slots with a generator seeded
        from the zone name, then walks the shuffled list handing the first
        counts[A] slots to A, the next counts[B] to B, and so on. Counts are
        clamped to the slots remaining; categories keep their mapping order.

        Args:
            zone: The zone to place in
            category_counts: Ordered mapping of category -> slots wanted

        Returns:
            PlacementRecord with (slot_id, category) pairs in assignment order
        """
        seed = stable_seed(zone.name)
        rng = seeded_rng(zone.name)

        slots = [a.id for a in zone.interactable_slots if a.valid]
        fisher_yates(slots, rng)

        assignments: list[tuple[str, str]] = []
        cursor = 0
        for category, wanted in category_counts.items():
            take = max(0, min(wanted, len(slots) - cursor))
            for slot_id in slots[cursor:cursor + take]:
                assignments.append((slot_id, category))
            cursor += take
            if take < wanted:
                logger.debug(
                    f"Zone {zone.name}: wanted {wanted} {category}, only {take} slots left"
                )

        return PlacementRecord(zone=zone.name, seed=seed, assignments=assignments)

    def place_all(
        self,
        zones: list[Zone],
        category_counts: dict[str, int],
        overrides: dict[str, dict[str, int]] | None = None,
    ) -> dict[str, PlacementRecord]:
        """Place interactables in every zone. Overrides are keyed by zone name."""
        overrides = overrides or {}
        records = {}
        for zone in zones:
            counts = overrides.get(zone.name, category_counts)
            records[zone.name] = self.place_interactables(zone, counts)
        return records
