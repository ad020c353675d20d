"""In-memory, per-address request throttling over a fixed window."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from .errors import RateLimited

RATE_LIMIT_MESSAGE = "too many requests, try later"


@dataclass
class RateWindow:
    count: int
    started_at: float


@dataclass(frozen=True)
class RateStatus:
    """Snapshot of a client's window after a request was counted."""

    limit: int
    remaining: int
    reset_after: float


class RateLimiter:
    """Counts requests per client address; a window restarts once it elapses.

    State is process local and lost on restart.
    """

    def __init__(
        self,
        limit: int = 15,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, RateWindow] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock; runs at most once per window.
        if now - self._last_sweep < self.window_seconds:
            return
        self._windows = {
            address: window
            for address, window in self._windows.items()
            if now - window.started_at < self.window_seconds
        }
        self._last_sweep = now

    def hit(self, address: str) -> RateStatus:
        """Count one request for ``address``; raise RateLimited past the quota."""
        now = self._clock()
        with self._lock:
            self._sweep(now)
            window = self._windows.get(address)
            if window is None or now - window.started_at >= self.window_seconds:
                window = RateWindow(count=0, started_at=now)
                self._windows[address] = window
            window.count += 1
            count = window.count
            reset_after = max(0.0, window.started_at + self.window_seconds - now)

        if count > self.limit:
            raise RateLimited(RATE_LIMIT_MESSAGE, retry_after=reset_after)
        return RateStatus(limit=self.limit, remaining=self.limit - count, reset_after=reset_after)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
