"""Randomness helpers for Stationfall."""

from .shuffle import fisher_yates, seeded_rng, stable_seed

__all__ = [
    "fisher_yates",
    "seeded_rng",
    "stable_seed",
]
