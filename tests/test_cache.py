import pytest

from app.core.cache import CachePolicy, cached_read, invalidate
from app.core.redis import redis_client


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiry[key] = ex

    async def delete(self, key):
        self.store.pop(key, None)

    async def scan_iter(self, match=None):
        prefix = (match or "*").rstrip("*")
        for key in list(self.store):
            if key.startswith(prefix):
                yield key


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def fake_redis():
    fake = FakeRedis()
    redis_client.use(fake)
    yield fake
    redis_client.use(None)


def counting_loader(value):
    calls = []

    async def loader():
        calls.append(1)
        return value

    return loader, calls


def test_policy_validation():
    with pytest.raises(ValueError):
        CachePolicy(ttl_seconds=60, gc_seconds=30)
    with pytest.raises(ValueError):
        CachePolicy(ttl_seconds=-1, gc_seconds=10)


@pytest.mark.asyncio
async def test_fresh_entry_is_served_from_cache(fake_redis):
    policy = CachePolicy(ttl_seconds=120, gc_seconds=300)
    clock = Clock()
    loader, calls = counting_loader({"rate": "2.5"})

    assert await cached_read("rates:CN:OM", policy, loader, clock) == {"rate": "2.5"}
    clock.now += 60
    assert await cached_read("rates:CN:OM", policy, loader, clock) == {"rate": "2.5"}

    assert len(calls) == 1
    assert fake_redis.expiry["rates:CN:OM"] == 300


@pytest.mark.asyncio
async def test_stale_entry_is_reloaded(fake_redis):
    policy = CachePolicy(ttl_seconds=120, gc_seconds=300)
    clock = Clock()
    loader, calls = counting_loader([1, 2])

    await cached_read("profiles:1", policy, loader, clock)
    clock.now += 121
    await cached_read("profiles:1", policy, loader, clock)

    assert len(calls) == 2


@pytest.mark.asyncio
async def test_invalidate_by_prefix(fake_redis):
    policy = CachePolicy(ttl_seconds=10, gc_seconds=10)
    loader, _ = counting_loader("x")
    for key in ("agreements:a", "agreements:b", "profiles:a"):
        await cached_read(key, policy, loader)

    assert await invalidate("agreements:") == 2
    assert set(fake_redis.store) == {"profiles:a"}
