"""In-process fixed-window request limiter keyed by scope and client address."""
from __future__ import annotations

import math
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import Request

from .errors import Throttled

# Windows are pruned once the table grows past this many keys.
_PRUNE_THRESHOLD = 10_000


class WindowLimiter:
    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int) -> Optional[float]:
        """Count one hit; return seconds to wait when over ``limit``, else None."""
        now = self._clock()
        with self._lock:
            if len(self._windows) > _PRUNE_THRESHOLD:
                self._windows = {k: v for k, v in self._windows.items() if v[1] > now}
            count, closes_at = self._windows.get(key, (0, now + window_seconds))
            if now >= closes_at:
                count, closes_at = 0, now + window_seconds
            count += 1
            self._windows[key] = (count, closes_at)
        if count > limit:
            return closes_at - now
        return None

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


_limiter = WindowLimiter()


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int) -> None:
    wait = _limiter.hit(f"{scope}:{client_address(request)}", limit, window_seconds)
    if wait is not None:
        raise Throttled(f"Too many requests. Try again in {max(1, math.ceil(wait))} seconds.")


def reset_rate_limits() -> None:
    _limiter.clear()
