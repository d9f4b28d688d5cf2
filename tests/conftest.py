"""
Pytest fixtures for Stationfall tests.

Provides small seeded worlds so every test is deterministic.
"""

import random
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stationfall.state.config import MatchConfig, ZoneConfig
from stationfall.state.event_bus import EventBus
from stationfall.state.population import Population
from stationfall.state.registry import SpawnRegistry
from stationfall.state.schema import Position, ZoneType
from stationfall.systems.allocator import SpawnAllocator
from stationfall.systems.session import MatchSession


@pytest.fixture
def rng():
    """Seeded general-purpose generator."""
    return random.Random(42)


@pytest.fixture
def bus():
    return EventBus(match_id="test")


@pytest.fixture
def small_config():
    """Two zones of four population slots each, far apart."""
    return MatchConfig(
        hidden_role_target=2,
        zones=[
            ZoneConfig(
                name="Alpha",
                zone_type=ZoneType.HABITAT,
                origin=Position(x=0, z=0),
                population_slots=4,
                interactable_slots=3,
                high_value_slots=2,
            ),
            ZoneConfig(
                name="Beta",
                zone_type=ZoneType.RESEARCH,
                origin=Position(x=100, z=0),
                population_slots=4,
                interactable_slots=3,
                high_value_slots=2,
            ),
        ],
    )


@pytest.fixture
def allocator(small_config, bus, rng):
    """Allocator over a registered two-zone world."""
    allocator = SpawnAllocator(SpawnRegistry(), Population(), bus, small_config, rng)
    allocator.register_world(small_config.build_zones())
    return allocator


@pytest.fixture
def session(small_config):
    """Session in LOBBY over the two-zone world."""
    return MatchSession(small_config, rng=random.Random(1234), match_id="test")
