"""Pacing strategies that throttle calls to the embedding service.

A pacer's :meth:`~Pacer.wait` is called immediately before each remote
call.  Pacing only spaces calls out; it never retries anything.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable


class Pacer(ABC):
    """Blocks the calling thread until the next call is allowed."""

    @abstractmethod
    def wait(self) -> None: ...


class NoPacing(Pacer):
    def wait(self) -> None:
        return None


class FixedIntervalPacer(Pacer):
    """Guarantee at least *interval* seconds between consecutive calls.

    The first call goes through immediately.  Time already spent since the
    previous call (e.g. on the remote request itself) counts towards the
    interval.  Thread-safe: concurrent callers sharing one instance are
    spaced against each other.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            if self._last is not None:
                remaining = self.interval - (self._clock() - self._last)
                if remaining > 0:
                    self._sleep(remaining)
            self._last = self._clock()


class TokenBucketPacer(Pacer):
    """Allow bursts of up to *capacity* calls, refilled at *rate* per second.

    Thread-safe, so a single instance can throttle several concurrent
    ingestion tasks against one shared quota.
    """

    def __init__(
        self,
        rate: float,
        capacity: int = 1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate <= 0 or capacity < 1:
            raise ValueError("rate must be > 0 and capacity >= 1")
        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self.capacity, self._tokens + (now - self._updated) * self.rate)
        self._updated = now

    def wait(self) -> None:
        with self._lock:
            self._refill()
            if self._tokens < 1:
                self._sleep((1 - self._tokens) / self.rate)
                self._refill()
            self._tokens -= 1
