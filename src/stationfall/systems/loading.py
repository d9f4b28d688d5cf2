"""
Pre-match loading gate.

The authority refuses to start until a minimum loading time has passed and
zones have registered. Zones that never show up do not block forever: after
max_wait the gate opens in degraded mode and the match proceeds with what it
has. Checked once per tick against explicit deadlines.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class GateStatus(str, Enum):
    IDLE = "idle"          # begin() not called yet
    WAITING = "waiting"
    READY = "ready"
    DEGRADED = "degraded"  # Timed out waiting for zones


class LoadingGate:
    def __init__(self, min_loading_time: float, max_wait_time: float):
        self.min_loading_time = min_loading_time
        self.max_wait_time = max_wait_time
        self._started_at: float | None = None
        self._status = GateStatus.IDLE

    @property
    def status(self) -> GateStatus:
        return self._status

    @property
    def is_open(self) -> bool:
        return self._status in (GateStatus.READY, GateStatus.DEGRADED)

    def begin(self, now: float) -> None:
        self._started_at = now
        self._status = GateStatus.WAITING

    def poll(self, now: float, zone_count: int) -> GateStatus:
        """Re-evaluate the gate. Once open it stays open until reset()."""
        if self._status != GateStatus.WAITING or self._started_at is None:
            return self._status

        elapsed = now - self._started_at
        if elapsed < self.min_loading_time:
            return self._status

        if zone_count > 0:
            self._status = GateStatus.READY
        elif elapsed >= self.max_wait_time:
            logger.warning(f"No zones after {elapsed:.1f}s, proceeding with zero zones")
            self._status = GateStatus.DEGRADED
        return self._status

    def reset(self) -> None:
        self._started_at = None
        self._status = GateStatus.IDLE
