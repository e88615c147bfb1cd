"""Read-through cache shared by every read of reference data.

A single :class:`CachePolicy` describes how long an entry is fresh (``ttl_seconds``)
and how long Redis keeps it at all (``gc_seconds``). Entries older than the ttl are
reloaded on the next read; Redis drops them after the gc window.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.redis import redis_client

logger = get_logger()


@dataclass(frozen=True)
class CachePolicy:
    ttl_seconds: int
    gc_seconds: int

    def __post_init__(self) -> None:
        if self.ttl_seconds < 0 or self.gc_seconds < self.ttl_seconds:
            raise ValueError("gc_seconds must be >= ttl_seconds >= 0")

    def is_fresh(self, fetched_at: float, now: float) -> bool:
        return now - fetched_at <= self.ttl_seconds


def default_policy() -> CachePolicy:
    settings = get_settings()
    return CachePolicy(ttl_seconds=settings.cache_ttl_seconds, gc_seconds=settings.cache_gc_seconds)


async def cached_read(
    key: str,
    policy: CachePolicy,
    loader: Callable[[], Awaitable[Any]],
    clock: Callable[[], float] = time.time,
) -> Any:
    """Return the cached value for ``key`` or load, store and return it.

    ``loader`` must return JSON-serialisable data.
    """
    raw = await redis_client.client.get(key)
    if raw:
        entry = json.loads(raw)
        if policy.is_fresh(entry["fetched_at"], clock()):
            return entry["value"]
        logger.debug("cache_stale", key=key)

    value = await loader()
    entry = {"fetched_at": clock(), "value": value}
    await redis_client.client.set(key, json.dumps(entry, default=str), ex=policy.gc_seconds)
    return value


async def invalidate(prefix: str) -> int:
    removed = 0
    async for key in redis_client.client.scan_iter(match=f"{prefix}*"):
        await redis_client.client.delete(key)
        removed += 1
    return removed
