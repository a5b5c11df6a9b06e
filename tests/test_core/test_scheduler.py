"""Tests for the shared scheduler."""

from __future__ import annotations

import logging
import threading
import time

import pytest

from greenhouse_nodes.core.scheduler import Scheduler

WAIT = 5.0


class TestOneShot:
    """Tests for delayed one-shot tasks."""

    def test_runs_once(self, scheduler: Scheduler) -> None:
        """Task runs once after the delay."""
        done = threading.Event()
        task = scheduler.schedule(done.set, 0.01)

        assert done.wait(WAIT)
        time.sleep(0.05)
        assert task.runs == 1
        assert task.period is None

    def test_order_by_due_time(self, scheduler: Scheduler) -> None:
        """Tasks run in order of their due time."""
        order: list[str] = []
        done = threading.Event()

        def last() -> None:
            order.append("late")
            done.set()

        scheduler.schedule(last, 0.15)
        scheduler.schedule(lambda: order.append("early"), 0.0)

        assert done.wait(WAIT)
        assert order == ["early", "late"]

    def test_cancel_before_due(self, scheduler: Scheduler) -> None:
        """Cancelled task never runs."""
        ran = threading.Event()
        task = scheduler.schedule(ran.set, 0.1)
        task.cancel()

        assert task.cancelled
        assert not ran.wait(0.3)
        assert scheduler.pending() == 0

    def test_negative_delay(self, scheduler: Scheduler) -> None:
        """Negative delay is rejected."""
        with pytest.raises(ValueError, match="non-negative"):
            scheduler.schedule(lambda: None, -1.0)

    def test_named_task(self, scheduler: Scheduler) -> None:
        """Name defaults to the callback's qualified name."""

        def refresh() -> None:
            pass

        assert scheduler.schedule(refresh, 10.0).name.endswith("refresh")
        assert scheduler.schedule(refresh, 10.0, name="custom").name == "custom"


class TestFixedRate:
    """Tests for periodic tasks."""

    def test_runs_repeatedly(self, scheduler: Scheduler) -> None:
        """Periodic task runs until cancelled."""
        count = 0
        enough = threading.Event()

        def tick() -> None:
            nonlocal count
            count += 1
            if count >= 3:
                enough.set()

        task = scheduler.schedule_at_fixed_rate(tick, 0.0, 0.02)
        assert enough.wait(WAIT)
        task.cancel()

        runs = task.runs
        time.sleep(0.1)
        assert task.runs <= runs + 1

    def test_invalid_period(self, scheduler: Scheduler) -> None:
        """Period must be positive."""
        with pytest.raises(ValueError, match="positive"):
            scheduler.schedule_at_fixed_rate(lambda: None, 0.0, 0.0)
        with pytest.raises(ValueError, match="non-negative"):
            scheduler.schedule_at_fixed_rate(lambda: None, -0.1, 1.0)

    def test_failure_does_not_stop_task(self, scheduler: Scheduler) -> None:
        """An exception is logged and the next tick still happens."""
        calls = 0
        recovered = threading.Event()

        def flaky() -> None:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("first tick fails")
            recovered.set()

        task = scheduler.schedule_at_fixed_rate(flaky, 0.0, 0.02)
        assert recovered.wait(WAIT)
        task.cancel()

    def test_no_self_overlap(self, scheduler: Scheduler) -> None:
        """A slow periodic task never runs concurrently with itself."""
        active = 0
        max_active = 0
        lock = threading.Lock()
        enough = threading.Event()
        runs = 0

        def slow() -> None:
            nonlocal active, max_active, runs
            with lock:
                active += 1
                max_active = max(max_active, active)
            time.sleep(0.03)
            with lock:
                active -= 1
                runs += 1
                if runs >= 3:
                    enough.set()

        task = scheduler.schedule_at_fixed_rate(slow, 0.0, 0.005)
        assert enough.wait(WAIT)
        task.cancel()
        assert max_active == 1

    def test_slow_task_does_not_block_others(self, scheduler: Scheduler) -> None:
        """Other tasks keep running while one task is slow."""
        release = threading.Event()
        fast_ran = threading.Event()

        scheduler.schedule(lambda: release.wait(WAIT), 0.0)
        scheduler.schedule(fast_ran.set, 0.02)

        assert fast_ran.wait(WAIT)
        release.set()


class TestShutdown:
    """Tests for scheduler shutdown."""

    def test_shutdown_cancels_pending(self) -> None:
        """Pending tasks are cancelled on shutdown."""
        scheduler = Scheduler()
        ran = threading.Event()
        task = scheduler.schedule(ran.set, 10.0)

        scheduler.shutdown()

        assert scheduler.is_shutdown
        assert task.cancelled
        assert not ran.is_set()

    def test_schedule_after_shutdown(self) -> None:
        """Scheduling on a shut-down scheduler fails."""
        scheduler = Scheduler()
        scheduler.shutdown()
        with pytest.raises(RuntimeError, match="shut down"):
            scheduler.schedule(lambda: None, 0.0)

    def test_shutdown_idempotent(self) -> None:
        """Shutdown may be called more than once, even if never used."""
        scheduler = Scheduler()
        scheduler.shutdown()
        scheduler.shutdown()

    def test_context_manager(self) -> None:
        """Leaving the with block shuts the scheduler down."""
        with Scheduler() as scheduler:
            done = threading.Event()
            scheduler.schedule(done.set, 0.0)
            assert done.wait(WAIT)
        assert scheduler.is_shutdown

    def test_shutdown_from_task(self, caplog: pytest.LogCaptureFixture) -> None:
        """A task may shut down the scheduler it runs on."""
        scheduler = Scheduler()
        done = threading.Event()

        def stop() -> None:
            scheduler.shutdown()
            done.set()

        with caplog.at_level(logging.ERROR):
            scheduler.schedule(stop, 0.0)
            assert done.wait(WAIT)

        assert scheduler.is_shutdown
        assert "failed" not in caplog.text

    def test_invalid_workers(self) -> None:
        """Worker count must be positive."""
        with pytest.raises(ValueError):
            Scheduler(max_workers=0)
