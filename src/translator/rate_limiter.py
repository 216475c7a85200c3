"""In-memory sliding-window rate limiting per client identifier."""

import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, List, Protocol

from config.logging_config import get_logger

logger = get_logger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


class RateLimiter(Protocol):
    """Admission check. ``admit`` returns True when the request must be rejected."""

    def admit(self, identifier: str) -> bool: ...


class SlidingWindowRateLimiter:
    """
    Per-identifier sliding window kept in process memory.

    Not shared between processes and reset on restart. Identifiers whose
    newest timestamp has left the window are swept once per window width,
    or on every admission while more than ``max_identifiers`` are tracked.
    Live windows are never dropped, so the cap is a sweep trigger, not a
    hard bound.
    """

    def __init__(
        self,
        max_requests: int = 3,
        window_ms: int = 60_000,
        max_identifiers: int = 10_000,
        clock: Callable[[], float] = _now_ms,
    ):
        self.max_requests = max_requests
        self.window_ms = window_ms
        self.max_identifiers = max_identifiers
        self._clock = clock
        self._windows: "OrderedDict[str, List[float]]" = OrderedDict()
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def admit(self, identifier: str) -> bool:
        """Record a request for ``identifier``; True means over the limit."""
        with self._lock:
            now = self._clock()
            fresh = [t for t in self._windows.get(identifier, []) if now - t < self.window_ms]
            if len(fresh) >= self.max_requests:
                self._windows[identifier] = fresh
                self._windows.move_to_end(identifier)
                return True
            fresh.append(now)
            self._windows[identifier] = fresh
            self._windows.move_to_end(identifier)
            self._evict(now)
            return False

    def _evict(self, now: float) -> None:
        over_cap = len(self._windows) > self.max_identifiers
        if over_cap or now - self._last_sweep >= self.window_ms:
            stale = [
                key
                for key, stamps in self._windows.items()
                if not stamps or now - stamps[-1] >= self.window_ms
            ]
            for key in stale:
                del self._windows[key]
            self._last_sweep = now
            if stale:
                logger.debug(f"Rate limiter swept {len(stale)} idle identifiers")

    def snapshot(self) -> Dict[str, List[float]]:
        """Copy of the current windows, for inspection."""
        with self._lock:
            return {key: list(stamps) for key, stamps in self._windows.items()}

    def reset(self) -> None:
        """Forget every identifier."""
        with self._lock:
            self._windows.clear()
            self._last_sweep = self._clock()

    def __len__(self) -> int:
        return len(self._windows)
