"""Shared task scheduler for periodic and delayed simulation work.

A single timer thread keeps a heap of due times and hands due tasks to a
small worker pool. Every node, periodic actuator and fake channel registers
its jobs with one Scheduler instead of owning a timer thread.

Periodic tasks run at a fixed rate: the next due time is the previous due
time plus the period. A periodic task is re-queued only after its current
run has finished, so a task never overlaps with itself and a slow task
delays only its own later runs.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

logger = logging.getLogger(__name__)

# Worker threads used to run due tasks
DEFAULT_MAX_WORKERS: int = 4


class ScheduledTask:
    """Handle for a job registered with a Scheduler.

    Attributes:
        name: Label used in log messages.
        period: Seconds between runs, or None for a one-shot task.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        period: float | None,
        name: str,
    ) -> None:
        self._callback = callback
        self._period = period
        self._name = name
        self._cancelled = threading.Event()
        self._runs = 0

    @property
    def name(self) -> str:
        """Task label."""
        return self._name

    @property
    def period(self) -> float | None:
        """Seconds between runs (None for one-shot tasks)."""
        return self._period

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._cancelled.is_set()

    @property
    def runs(self) -> int:
        """Number of completed runs."""
        return self._runs

    def cancel(self) -> None:
        """Prevent any further runs. A run already in progress completes."""
        self._cancelled.set()

    def _run(self) -> None:
        try:
            self._callback()
        except Exception:
            logger.exception("Scheduled task '%s' failed", self._name)
        finally:
            self._runs += 1

    def __repr__(self) -> str:
        kind = "one-shot" if self._period is None else f"every {self._period}s"
        state = " cancelled" if self.cancelled else ""
        return f"<ScheduledTask {self._name!r} {kind}{state}>"


class Scheduler:
    """Timer thread plus worker pool running delayed and periodic tasks.

    The timer thread is started lazily on the first scheduled task.
    Use shutdown() (or the scheduler as a context manager) to stop it.
    """

    def __init__(
        self,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        name: str = "greenhouse-scheduler",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize scheduler.

        Args:
            max_workers: Size of the worker pool running due tasks.
            name: Thread name prefix.
            clock: Monotonic time source in seconds.
        """
        if max_workers <= 0:
            msg = f"max_workers must be positive, got {max_workers}"
            raise ValueError(msg)
        self._name = name
        self._worker_prefix = f"{name}-worker"
        self._clock = clock
        self._max_workers = max_workers
        self._queue: list[tuple[float, int, ScheduledTask]] = []
        self._sequence = itertools.count()
        self._condition = threading.Condition()
        self._thread: threading.Thread | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._shutdown = False

    @property
    def is_shutdown(self) -> bool:
        """Whether shutdown() has been called."""
        return self._shutdown

    def schedule(
        self,
        callback: Callable[[], None],
        delay: float,
        *,
        name: str | None = None,
    ) -> ScheduledTask:
        """Run callback once after a delay.

        Args:
            callback: Function to run.
            delay: Delay in seconds (>= 0).
            name: Label for log messages.

        Returns:
            Handle that can cancel the task.

        Raises:
            ValueError: If delay is negative.
            RuntimeError: If the scheduler has been shut down.
        """
        if delay < 0:
            msg = f"Delay must be non-negative, got {delay}"
            raise ValueError(msg)
        task = ScheduledTask(callback, None, name or _callback_name(callback))
        self._enqueue(task, self._clock() + delay)
        return task

    def schedule_at_fixed_rate(
        self,
        callback: Callable[[], None],
        initial_delay: float,
        period: float,
        *,
        name: str | None = None,
    ) -> ScheduledTask:
        """Run callback repeatedly at a fixed rate.

        Args:
            callback: Function to run.
            initial_delay: Seconds before the first run (>= 0).
            period: Seconds between the due times of consecutive runs (> 0).
            name: Label for log messages.

        Returns:
            Handle that can cancel the task.

        Raises:
            ValueError: If initial_delay is negative or period is not positive.
            RuntimeError: If the scheduler has been shut down.
        """
        if initial_delay < 0:
            msg = f"Initial delay must be non-negative, got {initial_delay}"
            raise ValueError(msg)
        if period <= 0:
            msg = f"Period must be positive, got {period}"
            raise ValueError(msg)
        task = ScheduledTask(callback, period, name or _callback_name(callback))
        self._enqueue(task, self._clock() + initial_delay)
        return task

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop the scheduler and cancel all pending tasks.

        Args:
            wait: Wait for running tasks to finish.
        """
        with self._condition:
            if self._shutdown:
                return
            self._shutdown = True
            pending = [task for _, _, task in self._queue]
            self._queue.clear()
            self._condition.notify_all()
        for task in pending:
            task.cancel()

        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        if self._executor is not None:
            # A worker cannot join its own pool
            if threading.current_thread().name.startswith(self._worker_prefix):
                wait = False
            self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.debug("Scheduler '%s' shut down", self._name)

    def pending(self) -> int:
        """Number of queued (not yet due or not yet dispatched) tasks."""
        with self._condition:
            return sum(1 for _, _, task in self._queue if not task.cancelled)

    def __enter__(self) -> Scheduler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _enqueue(self, task: ScheduledTask, due: float) -> None:
        with self._condition:
            if self._shutdown:
                msg = f"Scheduler '{self._name}' has been shut down"
                raise RuntimeError(msg)
            if self._thread is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix=self._worker_prefix,
                )
                self._thread = threading.Thread(
                    target=self._timer_loop,
                    args=(self._executor,),
                    name=self._name,
                    daemon=True,
                )
                self._thread.start()
            heapq.heappush(self._queue, (due, next(self._sequence), task))
            self._condition.notify()

    def _reschedule(self, task: ScheduledTask, due: float) -> None:
        with self._condition:
            if self._shutdown or task.cancelled:
                return
            heapq.heappush(self._queue, (due, next(self._sequence), task))
            self._condition.notify()

    def _timer_loop(self, executor: ThreadPoolExecutor) -> None:
        with self._condition:
            while not self._shutdown:
                if not self._queue:
                    self._condition.wait()
                    continue
                due, _, task = self._queue[0]
                now = self._clock()
                if due > now:
                    self._condition.wait(due - now)
                    continue
                heapq.heappop(self._queue)
                if task.cancelled:
                    continue
                executor.submit(self._dispatch, task, due)

    def _dispatch(self, task: ScheduledTask, due: float) -> None:
        if task.cancelled:
            return
        task._run()
        if task.period is not None:
            self._reschedule(task, due + task.period)


def _callback_name(callback: Callable[[], None]) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)
