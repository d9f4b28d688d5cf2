"""Stationfall: authority-side match orchestration for a hidden-role game."""

from .state.config import MatchConfig, load_config
from .systems.session import MatchSession

__all__ = [
    "MatchConfig",
    "MatchSession",
    "load_config",
]
