"""TickScheduler — decides when the next tick fires.

The scheduler is clock-driven and owns no simulation state.  A host
(the Pygame loop or the headless runner) reports elapsed wall time via
``advance``; once the accumulated time reaches the current interval the
scheduler fires exactly one tick.  Surplus time is discarded, so a
stalled host delays ticks rather than batching them.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class TickScheduler:
    """Fires ``on_tick`` at ``max(floor, base / speed)`` millisecond intervals.

    Args:
        on_tick: Callback running one pipeline execution.
        is_playing: Returns False while the game sits outside the playing
            phase; no time accumulates and nothing fires then.
        base_interval_ms: Interval at speed 1.
        floor_interval_ms: Shortest allowed interval.
    """

    def __init__(
        self,
        on_tick: Callable[[], object],
        is_playing: Callable[[], bool] = lambda: True,
        *,
        base_interval_ms: float = 1000.0,
        floor_interval_ms: float = 50.0,
    ) -> None:
        self.on_tick = on_tick
        self.is_playing = is_playing
        self.base_interval_ms = base_interval_ms
        self.floor_interval_ms = floor_interval_ms
        self._speed = 1.0
        self._pending_speed: float | None = None
        self._interval_ms = self._interval_for(self._speed)
        self._elapsed_ms = 0.0
        self._running = False
        self._in_tick = False
        self.ticks_fired = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def speed(self) -> float:
        """Multiplier governing the countdown currently in progress."""
        return self._speed

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    def start(self, speed: float = 1.0) -> None:
        """Begin firing at the interval for ``speed``.

        Raises:
            ValueError: If ``speed`` is not positive.
        """
        self._check_speed(speed)
        self._speed = speed
        self._pending_speed = None
        self._interval_ms = self._interval_for(speed)
        self._elapsed_ms = 0.0
        self._running = True
        logger.info("Scheduler started (speed=%g, interval=%.0fms)", speed, self._interval_ms)

    def set_speed(self, speed: float) -> None:
        """Change the multiplier from the next countdown onwards.

        The countdown in progress keeps its interval, and a tick that is
        executing is never interrupted.

        Raises:
            ValueError: If ``speed`` is not positive.
        """
        self._check_speed(speed)
        self._pending_speed = speed

    def stop(self) -> None:
        """Stop firing; a tick that is executing still completes."""
        if self._running:
            logger.info("Scheduler stopped after %d ticks", self.ticks_fired)
        self._running = False
        self._elapsed_ms = 0.0

    def advance(self, elapsed_ms: float) -> bool:
        """Report elapsed wall time and fire a tick if one is due.

        Args:
            elapsed_ms: Milliseconds since the previous call.

        Returns:
            True if a tick fired during this call.
        """
        if not self._running or self._in_tick or not self.is_playing():
            return False
        self._elapsed_ms += elapsed_ms
        if self._elapsed_ms < self._interval_ms:
            return False

        self._elapsed_ms = 0.0
        self._in_tick = True
        try:
            self.on_tick()
        finally:
            self._in_tick = False
        self.ticks_fired += 1

        if self._pending_speed is not None:
            self._speed = self._pending_speed
            self._pending_speed = None
            self._interval_ms = self._interval_for(self._speed)
            logger.debug("Speed now %g (interval=%.0fms)", self._speed, self._interval_ms)
        return True

    def run(
        self,
        max_ticks: int,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """Block until ``max_ticks`` ticks fire or the scheduler stops.

        Args:
            max_ticks: Number of ticks to fire.
            clock: Monotonic clock in seconds.
            sleep: Sleep function taking seconds.

        Returns:
            Number of ticks fired.
        """
        fired = 0
        last = clock()
        while self._running and fired < max_ticks and self.is_playing():
            remaining_ms = max(0.0, self._interval_ms - self._elapsed_ms)
            sleep(remaining_ms / 1000.0)
            now = clock()
            if self.advance((now - last) * 1000.0):
                fired += 1
            last = now
        return fired

    def _interval_for(self, speed: float) -> float:
        return max(self.floor_interval_ms, self.base_interval_ms / speed)

    @staticmethod
    def _check_speed(speed: float) -> None:
        if speed <= 0:
            msg = f"speed must be positive, got {speed}"
            raise ValueError(msg)
