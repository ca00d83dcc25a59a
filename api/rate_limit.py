"""
Fixed-window request throttling, keyed by client address.

Counters live in process memory (fine for a single instance, not shared
across replicas). Disabled when `RATE_LIMIT_ENABLED` is off, which is the
default in development.
"""
import threading
import time
from typing import Callable

from fastapi import Request

from api.deps import AppSettings
from streamia_backend.errors import RateLimitedError


class RateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        message: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def hit(self, key: str) -> int | None:
        """
        Count one request for `key`.

        Returns None when allowed, otherwise the seconds until the window resets.
        """
        now = self._clock()
        with self._lock:
            self._sweep(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            if count >= self.max_requests:
                return max(1, int(started + self.window_seconds - now + 0.999))
            self._windows[key] = (started, count + 1)
            return None

    def _sweep(self, now: float) -> None:
        # Drop expired windows at most once per window length.
        if now - self._last_sweep < self.window_seconds:
            return
        self._windows = {
            key: (started, count)
            for key, (started, count) in self._windows.items()
            if now - started < self.window_seconds
        }
        self._last_sweep = now

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __call__(self, request: Request, settings: AppSettings) -> None:
        if not settings.rate_limit_enabled:
            return
        key = request.client.host if request.client else "unknown"
        retry_after = self.hit(key)
        if retry_after is not None:
            raise RateLimitedError(self.message, retry_after=retry_after)


login_limiter = RateLimiter(5, 10 * 60, message="Too many login attempts, please try again later")
api_limiter = RateLimiter(100, 15 * 60, message="Too many requests from this IP, please try again later")
