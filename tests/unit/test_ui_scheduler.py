"""Tests for the dashboard refresh Scheduler."""

from __future__ import annotations

from unittest.mock import patch

from agentdeck.ui.scheduler import Scheduler
from fakes import FakeTimerFactory


class TestLifecycle:
    def test_start_uses_interval(self) -> None:
        factory = FakeTimerFactory()
        scheduler = Scheduler(lambda: None, interval=2.0)
        scheduler.start(factory)
        assert scheduler.running
        assert factory.timers[0].interval == 2.0

    def test_start_twice_creates_one_timer(self) -> None:
        factory = FakeTimerFactory()
        scheduler = Scheduler(lambda: None)
        scheduler.start(factory)
        scheduler.start(factory)
        assert len(factory.timers) == 1

    def test_stop_cancels_once(self) -> None:
        factory = FakeTimerFactory()
        scheduler = Scheduler(lambda: None)
        scheduler.start(factory)
        scheduler.stop()
        scheduler.stop()
        assert not scheduler.running
        assert factory.timers[0].stopped == 1

    def test_stop_before_start(self) -> None:
        Scheduler(lambda: None).stop()

    def test_restart_after_stop(self) -> None:
        factory = FakeTimerFactory()
        scheduler = Scheduler(lambda: None)
        scheduler.start(factory)
        scheduler.stop()
        scheduler.start(factory)
        assert scheduler.running
        assert len(factory.timers) == 2


class TestFire:
    def test_timer_callback_runs_tick(self) -> None:
        calls: list[int] = []
        factory = FakeTimerFactory()
        scheduler = Scheduler(lambda: calls.append(1))
        scheduler.start(factory)
        factory.timers[0].callback()
        factory.timers[0].callback()
        assert calls == [1, 1]
        assert scheduler.ticks == 2

    def test_reentrant_tick_is_skipped(self) -> None:
        calls: list[int] = []

        def tick() -> None:
            calls.append(1)
            scheduler.fire()

        scheduler = Scheduler(tick)
        scheduler.fire()
        assert calls == [1]
        assert scheduler.skipped == 1

    def test_failing_tick_does_not_stop_schedule(self) -> None:
        results: list[str] = []

        def tick() -> None:
            if not results:
                results.append("failed")
                raise RuntimeError("refresh failed")
            results.append("ok")

        factory = FakeTimerFactory()
        scheduler = Scheduler(tick)
        scheduler.start(factory)
        scheduler.fire()
        scheduler.fire()
        assert results == ["failed", "ok"]
        assert scheduler.ticks == 1
        assert scheduler.running

    def test_failing_tick_logs_traceback(self) -> None:
        def tick() -> None:
            raise RuntimeError("refresh failed")

        scheduler = Scheduler(tick)
        with patch("agentdeck.ui.scheduler.logger") as mock_logger:
            scheduler.fire()
        mock_logger.exception.assert_called_once_with("scheduler_tick_failed")
        mock_logger.error.assert_not_called()
        assert scheduler.ticks == 0 and scheduler.skipped == 0
