"""
Shared tension resource.

Tension rises with infiltrator abilities and innocent deaths and bleeds off
when things stay calm. The moment it first reaches its maximum, the
accumulator freezes and fires TENSION_MAXED exactly once; nothing moves it
again until reset().

Time is the accumulator's own clock, advanced by tick(dt), so decay is fully
deterministic under test.
"""

import logging
from typing import Callable

from pydantic import BaseModel

from ..state.config import TensionConfig
from ..state.event_bus import EventBus, EventType

logger = logging.getLogger(__name__)


class TensionSnapshot(BaseModel):
    level: float
    max: float
    maxed: bool

    @property
    def percent(self) -> float:
        return self.level / self.max if self.max > 0 else 0.0


class TensionAccumulator:
    """
    Bounded float in [0, max] with grace-delayed decay.

    Invariant: 0 <= level <= max at all times; OnTensionMaxed fires at most
    once between resets.
    """

    def __init__(self, config: TensionConfig, bus: EventBus):
        self._config = config
        self._bus = bus
        self._overflow_handler: Callable[[], object] | None = None
        self._level = 0.0
        self._maxed = False
        self._now = 0.0
        self._last_change = 0.0

    @property
    def level(self) -> float:
        return self._level

    @property
    def max(self) -> float:
        return self._config.max

    @property
    def maxed(self) -> bool:
        return self._maxed

    @property
    def percent(self) -> float:
        return self._level / self.max if self.max > 0 else 0.0

    @property
    def now(self) -> float:
        return self._now

    def snapshot(self) -> TensionSnapshot:
        return TensionSnapshot(level=self._level, max=self.max, maxed=self._maxed)

    def _clamp(self, value: float) -> float:
        return min(max(value, 0.0), self.max)

    def add_tension(self, amount: float) -> float:
        """
        Raise tension, clamped to max. No-op once maxed.

        Resets the decay grace timer. Crossing max fires TENSION_MAXED.

        Returns:
            The new level
        """
        if self._maxed:
            return self._level

        self._level = self._clamp(self._level + amount)
        self._last_change = self._now
        self._bus.emit(EventType.TENSION_CHANGED, level=self._level, percent=self.percent)

        if self._level >= self.max:
            self._trigger_overflow()
        return self._level

    def reduce_tension(self, amount: float) -> float:
        """Lower tension, clamped to 0. No-op once maxed."""
        if self._maxed:
            return self._level

        self._level = self._clamp(self._level - amount)
        self._bus.emit(EventType.TENSION_CHANGED, level=self._level, percent=self.percent)
        return self._level

    def _trigger_overflow(self) -> None:
        if self._maxed:
            return
        self._maxed = True
        logger.info("Tension maxed, triggering chaos")
        self._bus.emit(EventType.TENSION_MAXED, level=self._level)
        if self._overflow_handler is not None:
            self._overflow_handler()

    def set_overflow_handler(self, handler: Callable[[], object] | None) -> None:
        """
        Call handler once when tension first maxes out.

        Runs after TENSION_MAXED is emitted and is not a bus listener, so
        EventBus.clear() leaves it in place.
        """
        self._overflow_handler = handler

    def tick(self, dt: float) -> None:
        """Advance the clock and apply passive decay."""
        self._now += dt
        if self._maxed or self._level <= 0:
            return
        if self._now - self._last_change > self._config.decay_delay:
            self.reduce_tension(self._config.decay_rate * dt)

    # ─── Kill feed ───────────────────────────────────────────────

    def on_innocent_killed(self) -> float:
        logger.debug(f"Innocent killed, tension +{self._config.innocent_kill}")
        return self.add_tension(self._config.innocent_kill)

    def on_hidden_killed(self) -> float:
        logger.debug(f"Infiltrator killed, tension -{self._config.hidden_kill_relief}")
        return self.reduce_tension(self._config.hidden_kill_relief)

    def reset(self) -> None:
        """Back to zero and unfrozen. The clock keeps running."""
        self._level = 0.0
        self._maxed = False
        self._last_change = self._now
        self._bus.emit(EventType.TENSION_CHANGED, level=0.0, percent=0.0)
