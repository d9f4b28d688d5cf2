"""
Shuffling and seeding helpers.

Two kinds of randomness live in a match and must never share state:
- per-zone deterministic generators, seeded from the zone name, so every
  participant derives the same interactable layout;
- one general-purpose generator for roles and spawn choices.

Neither touches the module-level `random` functions.
"""

import hashlib
import random
from typing import MutableSequence, TypeVar

T = TypeVar("T")


def fisher_yates(items: MutableSequence[T], rng: random.Random) -> MutableSequence[T]:
    """
    Shuffle in place with an unbiased Fisher-Yates pass.

    Each of the n! orderings is equally likely given a uniform rng.
    Returns the same sequence for chaining.
    """
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def stable_seed(name: str) -> int:
    """
    Derive a 32-bit seed from a name.

    Stable across processes, unlike the salted built-in hash().
    """
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big")


def seeded_rng(name: str) -> random.Random:
    """A fresh private generator for one deterministic computation."""
    return random.Random(stable_seed(name))
