"""
Infiltrator abilities and the tension they cause.

Four chaos powers, each with a base tension amount, an effective range and a
per-actor cooldown. Tension falls off with the protagonist's distance from
the source, down to half at the edge of the range. Activity out of range, or
when the protagonist's position is unknown, still costs a small fixed
"distant" amount.
"""

from enum import Enum

from ..state.config import AbilitySpec
from ..state.schema import Position


class AbilityKind(str, Enum):
    COLLISION = "collision"  # Shove NPCs
    GLITCH = "glitch"        # Flicker the lights
    SOUND = "sound"          # Fake footsteps, bangs
    WIND = "wind"            # Vent gust, NPCs stumble


def effective_tension(
    base_amount: float,
    effect_range: float,
    source: Position,
    protagonist: Position | None,
    distant_amount: float,
) -> float:
    """
    Tension an ability applies to the protagonist.

    base * (1 - 0.5 * min(1, distance / range)) within range, otherwise the
    distant amount.
    """
    if protagonist is None:
        return distant_amount

    distance = source.distance_to(protagonist)
    if effect_range <= 0:
        return base_amount if distance == 0 else distant_amount
    if distance > effect_range:
        return distant_amount

    return base_amount * (1 - 0.5 * min(1.0, distance / effect_range))


class AbilityBook:
    """Ability catalog plus cooldown bookkeeping per (actor, ability)."""

    def __init__(self, abilities: dict[str, AbilitySpec]):
        self._abilities = abilities
        self._ready_at: dict[tuple[str, str], float] = {}

    def spec(self, kind: str) -> AbilitySpec | None:
        return self._abilities.get(kind)

    def known(self) -> list[str]:
        return list(self._abilities)

    def cooldown_remaining(self, actor_id: str, kind: str, now: float) -> float:
        return max(0.0, self._ready_at.get((actor_id, kind), 0.0) - now)

    def is_ready(self, actor_id: str, kind: str, now: float) -> bool:
        return self.cooldown_remaining(actor_id, kind, now) <= 0

    def start_cooldown(self, actor_id: str, kind: str, now: float) -> None:
        spec = self._abilities.get(kind)
        cooldown = spec.cooldown if spec else 0.0
        if cooldown > 0:
            self._ready_at[(actor_id, kind)] = now + cooldown

    def reset(self) -> None:
        self._ready_at.clear()
