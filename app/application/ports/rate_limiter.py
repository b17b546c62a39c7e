from typing import Protocol


class RateLimiter(Protocol):
    """Fixed-window request budget keyed by an opaque string such as ``ip:<addr>``."""

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """Count one request against ``key``; False once the window's budget is spent."""
        ...
