"""Client-side sliding window rate limiter.

Outbound calls to a backend go through ``RateLimiter.acquire()``, which admits
at most ``max_requests`` calls in any trailing ``window_ms`` milliseconds and
suspends callers that would exceed the quota until the oldest admission
leaves the window.

Waiters are not queued: each one sleeps until the oldest admission it saw
expires and then re-checks. Two waiters racing for the same freed slot are
admitted in no particular order.
"""

import asyncio
import threading
import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Callable, Deque, Dict, Optional, Set

from jobboard.app.core.logging import get_logger

logger = get_logger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class RateLimiterStats:
    """Point-in-time usage of a rate limiter window."""
    active_requests: int
    max_requests: int
    available_requests: int
    utilization_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RateLimiter:
    """Sliding window limiter backed by a log of admission timestamps.

    The window is checked and appended under a single mutex, so the quota
    holds even when ``get_stats()`` is read from another thread. ``acquire()``
    itself must be awaited on one event loop.

    Example:
        >>> limiter = RateLimiter.per_seconds(max_requests=10, seconds=1)
        >>> await limiter.acquire()
        >>> limiter.get_stats().available_requests
        9
    """

    def __init__(
        self,
        max_requests: int,
        window_ms: int,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Maximum admissions per window, at least 1
            window_ms: Window length in milliseconds, at least 1
            clock: Millisecond clock; defaults to the monotonic clock

        Raises:
            ValueError: If max_requests or window_ms is not positive.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms < 1:
            raise ValueError("window_ms must be at least 1")

        self._max_requests = int(max_requests)
        self._window_ms = int(window_ms)
        self._clock = clock or _monotonic_ms

        self._timestamps: Deque[float] = deque()
        self._lock = threading.Lock()
        self._waiters: Set["asyncio.Future[None]"] = set()

    @classmethod
    def per_seconds(cls, max_requests: int, seconds: int, **kwargs: Any) -> "RateLimiter":
        """Create a limiter admitting ``max_requests`` every ``seconds``."""
        if seconds < 1:
            raise ValueError("seconds must be at least 1")
        return cls(max_requests=max_requests, window_ms=seconds * 1000, **kwargs)

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def pending(self) -> int:
        """Number of callers currently suspended in ``acquire()``."""
        return len(self._waiters)

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self._window_ms:
            self._timestamps.popleft()

    def _try_admit(self) -> Optional[float]:
        """Admit the caller if the window has room.

        Returns:
            None when admitted, otherwise milliseconds until the oldest
            admission leaves the window.
        """
        with self._lock:
            now = self._clock()
            self._prune(now)
            if len(self._timestamps) < self._max_requests:
                self._timestamps.append(now)
                return None
            return self._window_ms - (now - self._timestamps[0])

    async def acquire(self) -> None:
        """Wait until the window has room, then record one admission.

        Never fails and never times out. Cancelling the awaiting task raises
        ``asyncio.CancelledError`` without consuming a slot.
        """
        while True:
            wait_ms = self._try_admit()
            if wait_ms is None:
                return
            logger.debug(
                f"Rate limit reached ({self._max_requests}/{self._window_ms}ms), "
                f"waiting {wait_ms:.0f}ms"
            )
            await self._sleep(wait_ms / 1000.0)

    async def _sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless ``reset()`` wakes the waiter first."""
        waiter: "asyncio.Future[None]" = asyncio.get_running_loop().create_future()
        self._waiters.add(waiter)
        # asyncio.wait, unlike wait_for on 3.10/3.11, never swallows a cancel
        # that lands after reset() has already resolved the waiter
        try:
            await asyncio.wait({waiter}, timeout=max(seconds, 0.0))
        finally:
            if not waiter.done():
                waiter.cancel()
            self._waiters.discard(waiter)

    def get_stats(self) -> RateLimiterStats:
        """Current window usage; expired admissions are pruned first."""
        with self._lock:
            self._prune(self._clock())
            active = len(self._timestamps)

        return RateLimiterStats(
            active_requests=active,
            max_requests=self._max_requests,
            available_requests=self._max_requests - active,
            utilization_percent=active / self._max_requests * 100,
        )

    def reset(self) -> None:
        """Forget all admissions and wake every suspended ``acquire()``.

        Woken callers re-check against the empty window, so at most
        ``max_requests`` of them are admitted; the rest wait again.
        """
        with self._lock:
            self._timestamps.clear()

        for waiter in list(self._waiters):
            if not waiter.done():
                waiter.set_result(None)
