from __future__ import annotations

import redis.asyncio as redis

from app.core.config import get_settings


class RedisClient:
    def __init__(self) -> None:
        self._client: redis.Redis | None = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            settings = get_settings()
            self._client = redis.from_url(settings.redis_url, decode_responses=True)
        return self._client

    def use(self, client) -> None:
        self._client = client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


redis_client = RedisClient()
