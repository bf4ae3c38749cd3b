"""
Scheduler — the dashboard's recurring refresh trigger.

The timer itself comes from the host (Textual's ``set_interval`` in the app,
a fake in tests), so the scheduler holds no event-loop state of its own.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import structlog

from agentdeck.core.constants import POLL_INTERVAL_SECONDS

logger = structlog.get_logger()


class TimerHandle(Protocol):
    def stop(self) -> object: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


class Scheduler:
    """Fires *tick* every *interval* seconds between ``start()`` and ``stop()``."""

    def __init__(self, tick: Callable[[], None], interval: float = POLL_INTERVAL_SECONDS) -> None:
        self._tick = tick
        self.interval = interval
        self._timer: TimerHandle | None = None
        self._in_tick = False
        self.ticks = 0
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self, timer_factory: TimerFactory) -> None:
        if self._timer is not None:
            return
        self._timer = timer_factory(self.interval, self.fire)
        logger.debug("scheduler_started", interval=self.interval)

    def stop(self) -> None:
        """Cancel the recurring timer. Only the first call after ``start()`` does anything."""
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.stop()
        logger.debug("scheduler_stopped", ticks=self.ticks, skipped=self.skipped)

    def fire(self) -> None:
        """Run one tick now, unless one is already running."""
        if self._in_tick:
            self.skipped += 1
            logger.debug("scheduler_tick_skipped")
            return
        self._in_tick = True
        try:
            self._tick()
            self.ticks += 1
        except Exception:  # noqa: BLE001
            logger.exception("scheduler_tick_failed")
        finally:
            self._in_tick = False
