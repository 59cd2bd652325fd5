"""
Serial request queue for rate-sensitive providers.

Callers from any number of threads hand a zero-argument callable to
`RequestQueue.schedule`. Tasks run one at a time in submission order, and a
task never starts sooner than `min_interval` seconds after the previous one
completed.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RequestQueue:
    def __init__(
        self,
        min_interval: float = 1.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "default",
    ):
        self.min_interval = min_interval
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._cond = threading.Condition()
        self._next_ticket = 0
        self._now_serving = 0
        self._last_completed: Optional[float] = None

    @property
    def pending(self) -> int:
        """Tasks submitted but not yet completed (including the running one)."""
        with self._cond:
            return self._next_ticket - self._now_serving

    def _wait_for_interval(self) -> None:
        if self._last_completed is None:
            return
        delay = self.min_interval - (self._clock() - self._last_completed)
        if delay > 0:
            logger.debug("[%s] throttling request: waiting %.0fms", self.name, delay * 1000)
            self._sleep(delay)

    def schedule(self, task: Callable[[], T]) -> T:
        """Run `task` when its turn comes and return (or raise) its result."""
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._now_serving:
                self._cond.wait()

        # Only the holder of the current ticket reaches this point.
        try:
            self._wait_for_interval()
            return task()
        finally:
            with self._cond:
                self._last_completed = self._clock()
                self._now_serving += 1
                self._cond.notify_all()
