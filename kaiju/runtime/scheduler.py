"""
Kaiju Clash - Cooperative Scheduler

One loop, one clock, one heap of timed tasks. Every suspension point in a
turn (pacing delays, yield windows, watchdogs) is a Task scheduled here;
nothing in the engine sleeps or spawns threads.

The clock is virtual milliseconds. ``advance`` and ``run_until_idle`` drive
it deterministically; ``run_forever`` maps it onto wall-clock time for a
live game.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)

POLL_INTERVAL_MS = 100


@dataclass(order=True)
class Task:
    """A scheduled continuation.

    Ordered by due time, then by scheduling order.
    """

    due: int
    seq: int
    callback: Callable[[], None] = field(compare=False)
    label: str = field(default="", compare=False)
    pausable: bool = field(default=True, compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Virtual-clock task heap with a global pause gate.

    While ``is_paused()`` is true, pausable tasks that come due are pushed
    back by ``POLL_INTERVAL_MS`` instead of running, so waits stretch
    rather than elapse.
    """

    def __init__(
        self,
        is_paused: Callable[[], bool] | None = None,
        start_ms: int = 0,
        lock: threading.RLock | None = None,
    ) -> None:
        self._now = start_ms
        self._heap: list[Task] = []
        self._seq = itertools.count()
        self._is_paused = is_paused or (lambda: False)
        # Held around each callback and heap change
        self._lock = lock or threading.RLock()

    def now(self) -> int:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for t in self._heap if not t.cancelled)

    def next_due(self) -> int | None:
        with self._lock:
            self._drop_cancelled()
            return self._heap[0].due if self._heap else None

    def call_later(
        self,
        delay_ms: int,
        callback: Callable[[], None],
        *,
        label: str = "",
        pausable: bool = True,
    ) -> Task:
        """Schedule ``callback`` to run ``delay_ms`` from now."""
        with self._lock:
            task = Task(
                due=self._now + max(0, int(delay_ms)),
                seq=next(self._seq),
                callback=callback,
                label=label,
                pausable=pausable,
            )
            heapq.heappush(self._heap, task)
            return task

    def cancel_all(self) -> None:
        with self._lock:
            for task in self._heap:
                task.cancel()
            self._heap.clear()

    def advance(self, ms: int) -> int:
        """Move the clock forward ``ms``, running every task that comes due.

        Returns:
            Number of tasks run
        """
        return self._run_until(self._now + max(0, int(ms)))

    def run_until_idle(self, limit_ms: int = 3_600_000) -> int:
        """Jump from task to task until none remain or ``limit_ms`` passes."""
        deadline = self._now + limit_ms
        ran = 0
        while True:
            due = self.next_due()
            if due is None or due > deadline or self._stalled():
                break
            ran += self._run_until(due)
        return ran

    def run_forever(self, stop_event: threading.Event, tick_ms: int = 10) -> None:
        """Drive the clock from wall time until ``stop_event`` is set."""
        started = time.monotonic()
        origin = self._now
        while not stop_event.is_set():
            elapsed = int((time.monotonic() - started) * 1000)
            try:
                self._run_until(origin + elapsed)
            except Exception:
                logger.exception("Scheduler loop error")
            stop_event.wait(tick_ms / 1000)

    def _run_until(self, target: int) -> int:
        ran = 0
        with self._lock:
            while self._heap and self._heap[0].due <= target:
                task = heapq.heappop(self._heap)
                if task.cancelled:
                    continue
                self._now = max(self._now, task.due)
                if task.pausable and self._is_paused():
                    task.due = self._now + POLL_INTERVAL_MS
                    task.seq = next(self._seq)
                    heapq.heappush(self._heap, task)
                    continue
                task.callback()
                ran += 1
            self._now = max(self._now, target)
        return ran

    def _stalled(self) -> bool:
        """Paused with nothing but pausable work left."""
        return self._is_paused() and all(t.cancelled or t.pausable for t in self._heap)

    def _drop_cancelled(self) -> None:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
