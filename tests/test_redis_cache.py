import pytest

from app.settings import Settings
from app.stores.redis import TTL_POST_DEFAULT, RedisCache, post_cache_key


class FakeRedis:
    """The subset of redis.asyncio.Redis used by RedisCache."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.closed = False

    async def get(self, key):
        return self.values.get(key)

    async def setex(self, key, ttl, value):
        self.values[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        existed = key in self.values
        self.values.pop(key, None)
        self.ttls.pop(key, None)
        return int(existed)

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True


def test_post_cache_key() -> None:
    assert post_cache_key(42) == "post:42"


@pytest.mark.asyncio
async def test_get_returns_none_on_miss() -> None:
    cache = RedisCache(FakeRedis())

    assert await cache.get("post:1") is None


@pytest.mark.asyncio
async def test_set_uses_configured_ttl_and_overwrites() -> None:
    fake = FakeRedis()
    cache = RedisCache(fake, ttl=120)

    await cache.set("post:1", "first")
    await cache.set("post:1", "second")

    assert await cache.get("post:1") == "second"
    assert fake.ttls["post:1"] == 120


@pytest.mark.asyncio
async def test_set_accepts_explicit_ttl() -> None:
    fake = FakeRedis()
    cache = RedisCache(fake)

    await cache.set("post:1", "v", ttl=5)

    assert fake.ttls["post:1"] == 5
    assert cache.ttl == TTL_POST_DEFAULT


@pytest.mark.asyncio
async def test_set_passes_zero_ttl_through() -> None:
    fake = FakeRedis()
    cache = RedisCache(fake, ttl=120)

    await cache.set("post:1", "v", ttl=0)

    assert fake.ttls["post:1"] == 0


@pytest.mark.asyncio
async def test_delete_is_idempotent() -> None:
    cache = RedisCache(FakeRedis())
    await cache.set("post:1", "v")

    await cache.delete("post:1")
    await cache.delete("post:1")

    assert await cache.get("post:1") is None


@pytest.mark.asyncio
async def test_from_settings_takes_ttl_from_settings() -> None:
    cache = RedisCache.from_settings(Settings(CACHE_TTL_SECONDS=42, redis_url="redis://cache.test:6379/1"))

    assert cache.ttl == 42
    await cache.close()
