import threading
import time
from typing import Callable, Dict, List

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    """Sliding window per key; only valid for a single worker process."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._store: Dict[str, List[float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._last_sweep = clock()

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = self._clock()
        window_start = now - window_seconds
        with self._lock:
            # Keys that stopped calling are dropped at most one window after their last request
            if now - self._last_sweep >= window_seconds:
                self._sweep(window_start)
                self._last_sweep = now
            # prune
            times = [t for t in self._store.get(key, []) if t > window_start]
            if len(times) >= max_requests:
                self._store[key] = times
                return False
            times.append(now)
            self._store[key] = times
            return True

    def _sweep(self, window_start: float) -> None:
        for key in list(self._store):
            times = [t for t in self._store[key] if t > window_start]
            if times:
                self._store[key] = times
            else:
                del self._store[key]
