from __future__ import annotations

import time
from collections import defaultdict, deque

from fastapi import HTTPException, Request, status

from app.core.config import get_settings


class RateLimiter:
    def __init__(self, limit: int = 30, window_seconds: int = 60) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.requests: defaultdict[str, deque] = defaultdict(deque)
        self._last_sweep = 0.0

    def check(self, request: Request, key: str | None = None, now: float | None = None) -> None:
        if key is None:
            key = request.client.host if request.client else "unknown"
        now = time.time() if now is None else now
        self._sweep(now)
        window = self.requests[key]
        while window and now - window[0] > self.window_seconds:
            window.popleft()
        if len(window) >= self.limit:
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded")
        window.append(now)

    def _sweep(self, now: float) -> None:
        # Drops clients whose newest hit has left the window, at most once per window.
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        stale = [key for key, window in self.requests.items() if not window or now - window[-1] > self.window_seconds]
        for key in stale:
            del self.requests[key]

    def reset(self) -> None:
        self.requests.clear()
        self._last_sweep = 0.0


_settings = get_settings()
functions_rate_limiter = RateLimiter(_settings.functions_rate_limit, _settings.functions_rate_window_seconds)
