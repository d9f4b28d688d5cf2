"""Tests for hidden-role assignment."""

import random
from collections import Counter

import pytest

from stationfall.state.event_bus import EventBus, EventType
from stationfall.state.schema import MemberKind, PlayerRole, PopulationMember
from stationfall.systems.roles import RoleAssignor


def make_npcs(count: int) -> list[PopulationMember]:
    return [PopulationMember(id=f"npc-{i}", name=f"NPC_{i}") for i in range(count)]


@pytest.fixture
def assignor(bus, rng):
    return RoleAssignor(bus, rng)


class TestAssignRoles:
    """Test hidden-role shuffling."""

    def test_exact_count(self, assignor):
        """Exactly the target number of members is flagged."""
        npcs = make_npcs(10)
        assert assignor.assign_roles(npcs, 3) == 3
        assert sum(1 for n in npcs if n.hidden_role) == 3
        assert sorted(assignor.assigned_ids) == sorted(n.id for n in npcs if n.hidden_role)

    def test_target_larger_than_population(self, assignor):
        """Everyone is flagged when the target exceeds the population."""
        npcs = make_npcs(2)
        assert assignor.assign_roles(npcs, 5) == 2
        assert all(n.hidden_role for n in npcs)

    def test_zero_target(self, assignor):
        npcs = make_npcs(4)
        assert assignor.assign_roles(npcs, 0) == 0
        assert not any(n.hidden_role for n in npcs)
        assert assignor.has_assigned

    def test_empty_population(self, assignor):
        assert assignor.assign_roles([], 3) == 0

    def test_emits_per_member(self, assignor, bus):
        """One ROLE_ASSIGNED per flagged member."""
        assignor.assign_roles(make_npcs(6), 2)

        events = bus.get_history(EventType.ROLE_ASSIGNED)
        assert len(events) == 2
        assert all(e.data["is_hidden"] for e in events)

    def test_duplicate_call_rejected(self, assignor, bus):
        """A second assignment keeps the first one untouched."""
        npcs = make_npcs(10)
        assignor.assign_roles(npcs, 3)
        hidden_before = {n.id for n in npcs if n.hidden_role}

        assert assignor.assign_roles(npcs, 5) == 3
        assert {n.id for n in npcs if n.hidden_role} == hidden_before
        assert len(bus.get_history(EventType.ROLE_ASSIGNED)) == 3

    def test_reset_allows_reassignment(self, assignor):
        npcs = make_npcs(10)
        assignor.assign_roles(npcs, 3)
        assignor.reset()
        for npc in npcs:
            npc.hidden_role = False

        assert not assignor.has_assigned
        assert assignor.assign_roles(npcs, 4) == 4

    def test_selection_uniform(self):
        """Every member is equally likely to be hidden."""
        rng = random.Random(7)
        counts = Counter()
        trials = 5000

        for _ in range(trials):
            npcs = make_npcs(5)
            RoleAssignor(EventBus(), rng).assign_roles(npcs, 2)
            counts.update(n.id for n in npcs if n.hidden_role)

        # Each member: p = 2/5, expected 2000
        assert len(counts) == 5
        for count in counts.values():
            assert abs(count - 2000) < 200


class TestPlayerRoles:
    """Test protagonist pick and player roles."""

    def test_pick_protagonist_from_players(self, assignor):
        players = ["p1", "p2", "p3"]
        assert assignor.pick_protagonist(players) in players

    def test_pick_protagonist_without_players(self, assignor):
        assert assignor.pick_protagonist([]) is None

    def test_pick_protagonist_uniform(self):
        rng = random.Random(3)
        assignor = RoleAssignor(EventBus(), rng)
        counts = Counter(assignor.pick_protagonist(["a", "b", "c"]) for _ in range(3000))

        for count in counts.values():
            assert abs(count - 1000) < 150

    def test_infiltrator_is_hidden(self, assignor, bus):
        member = PopulationMember(id="p2", name="p2", kind=MemberKind.PLAYER)
        assignor.assign_player_role(member, PlayerRole.INFILTRATOR)

        assert member.hidden_role is True
        assert member.player_role == PlayerRole.INFILTRATOR
        assert bus.get_history(EventType.ROLE_ASSIGNED)[-1].data["role"] == "infiltrator"

    def test_protagonist_is_not_hidden(self, assignor):
        member = PopulationMember(id="p1", name="p1", kind=MemberKind.PLAYER)
        assignor.assign_player_role(member, PlayerRole.PROTAGONIST)

        assert member.hidden_role is False
        assert member.is_protagonist
