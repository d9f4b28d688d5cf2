"""Tests for the shared tension resource."""

import pytest

from stationfall.state.config import TensionConfig
from stationfall.state.event_bus import EventType
from stationfall.systems.tension import TensionAccumulator


@pytest.fixture
def tension(bus):
    return TensionAccumulator(TensionConfig(), bus)


class TestBounds:
    """Test clamping and the overflow trigger."""

    def test_add_then_reduce_round_trip(self, tension):
        tension.add_tension(12.5)
        tension.add_tension(30.0)
        tension.reduce_tension(30.0)
        assert tension.level == pytest.approx(12.5)

    def test_clamps_at_zero(self, tension):
        tension.add_tension(5)
        assert tension.reduce_tension(50) == 0.0

    def test_clamps_at_max(self, tension):
        assert tension.add_tension(150) == 100.0
        assert tension.maxed

    def test_scenario_overflow_fires_once(self, tension, bus):
        """60 + 50 clamps to 100 and fires once; a further +10 changes nothing."""
        tension.add_tension(60)
        tension.add_tension(50)

        assert tension.level == 100.0
        assert len(bus.get_history(EventType.TENSION_MAXED)) == 1

        tension.add_tension(10)
        assert tension.level == 100.0
        assert len(bus.get_history(EventType.TENSION_MAXED)) == 1

    def test_overflow_handler_called_once(self, tension):
        calls = []
        tension.set_overflow_handler(lambda: calls.append(tension.level))

        tension.add_tension(150)
        tension.add_tension(10)

        assert calls == [100.0]

    def test_frozen_once_maxed(self, tension):
        """Nothing lowers tension after overflow."""
        tension.add_tension(100)
        tension.reduce_tension(40)
        tension.tick(60.0)
        assert tension.level == 100.0

    def test_emits_changes(self, tension, bus):
        tension.add_tension(10)
        event = bus.get_history(EventType.TENSION_CHANGED)[-1]
        assert event.data["level"] == 10.0
        assert event.data["percent"] == pytest.approx(0.1)

    def test_snapshot(self, tension):
        tension.add_tension(25)
        snap = tension.snapshot()
        assert snap.level == 25.0
        assert snap.percent == pytest.approx(0.25)
        assert snap.maxed is False

    def test_reset_unfreezes(self, tension, bus):
        tension.add_tension(100)
        tension.reset()

        assert tension.level == 0.0
        assert not tension.maxed
        tension.add_tension(100)
        assert len(bus.get_history(EventType.TENSION_MAXED)) == 2


class TestDecay:
    """Test grace-delayed passive decay."""

    def test_no_decay_during_grace(self, tension):
        tension.add_tension(10)
        tension.tick(3.0)
        assert tension.level == 10.0

    def test_decays_after_grace(self, tension):
        tension.add_tension(10)
        tension.tick(3.0)
        tension.tick(1.0)
        assert tension.level == pytest.approx(9.0)

    def test_increase_restarts_grace(self, tension):
        tension.add_tension(10)
        tension.tick(2.5)
        tension.add_tension(1)
        tension.tick(2.5)
        assert tension.level == 11.0

    def test_decay_stops_at_zero(self, tension):
        tension.add_tension(1)
        for _ in range(20):
            tension.tick(1.0)
        assert tension.level == 0.0

    def test_custom_rate(self, bus):
        tension = TensionAccumulator(TensionConfig(decay_rate=2.0, decay_delay=0.0), bus)
        tension.add_tension(10)
        tension.tick(1.0)
        assert tension.level == pytest.approx(8.0)


class TestKillFeed:
    """Test elimination adjustments."""

    def test_innocent_raises(self, tension):
        assert tension.on_innocent_killed() == 25.0

    def test_hidden_relieves(self, tension):
        tension.add_tension(40)
        assert tension.on_hidden_killed() == pytest.approx(25.0)

    def test_four_innocents_trigger_chaos(self, tension, bus):
        for _ in range(4):
            tension.on_innocent_killed()
        assert tension.maxed
        assert len(bus.get_history(EventType.TENSION_MAXED)) == 1
