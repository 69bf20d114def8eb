"""Per-client fixed-window rate limiting.

Each limiter owns its own window map, so synthesis and report traffic are
counted separately. Limiters are plain objects created with the app and
torn down with it.
"""

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class RateWindow:
    """Request count for one identity within the current window."""

    count: int
    reset_at: float


class RateLimiter:
    """Allow at most ``limit`` attempts per identity per window.

    The first attempt after a window has passed opens a fresh window with a
    count of one. Counts are approximate under races; the map is guarded
    only against corruption.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")

        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, RateWindow] = {}
        self._lock = threading.Lock()

    def check(self, identity: str) -> bool:
        """Record an attempt and return whether it is allowed."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(identity)
            if window is None or now > window.reset_at:
                self._windows[identity] = RateWindow(
                    count=1, reset_at=now + self.window_seconds
                )
                return True

            window.count += 1
            allowed = window.count <= self.limit

        if not allowed:
            logger.warning(f"Rate limit exceeded for {identity} ({self.limit}/window)")
        return allowed

    def retry_after(self, identity: str) -> int:
        """Whole seconds until the identity's window resets (0 if none is open)."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(identity)
            if window is None:
                return 0
            return max(0, math.ceil(window.reset_at - now))

    def prune(self) -> int:
        """Forget windows that have already reset. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, w in self._windows.items() if now > w.reset_at]
            for identity in expired:
                del self._windows[identity]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


@dataclass
class RateLimits:
    """Independent limiters for synthesis and report requests."""

    synthesis: RateLimiter
    report: RateLimiter

    @classmethod
    def create(
        cls,
        synthesis_per_window: int = 30,
        report_per_window: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> "RateLimits":
        return cls(
            synthesis=RateLimiter(synthesis_per_window, window_seconds, clock),
            report=RateLimiter(report_per_window, window_seconds, clock),
        )
