import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from autoblog.domain.repositories.product_detail_cache_repo import ProductDetailCacheRepo

from tests.fakes import detail


class DummyRedis:
    def __init__(self, fail=False):
        self.store = {}
        self.ttls = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("down")
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self.fail:
            raise RedisConnectionError("down")
        self.store[key] = value
        self.ttls[key] = ex

    async def delete(self, key):
        if self.fail:
            raise RedisConnectionError("down")
        return 1 if self.store.pop(key, None) is not None else 0


@pytest.mark.asyncio
async def test_upsert_then_get_with_ttl():
    redis = DummyRedis()
    repo = ProductDetailCacheRepo(redis, prefix="pdetail", ttl=60)
    d = detail("B0CACHE001", "Security Camera", rank=None)

    await repo.upsert(d)

    assert redis.ttls["pdetail:B0CACHE001"] == 60
    assert await repo.get("B0CACHE001") == d


@pytest.mark.asyncio
async def test_invalidate_forces_a_miss():
    repo = ProductDetailCacheRepo(DummyRedis())
    await repo.upsert(detail("A", "Camera"))
    assert await repo.invalidate("A") == 1
    assert await repo.get("A") is None
    assert await repo.invalidate("A") == 0


@pytest.mark.asyncio
async def test_missing_or_failing_redis_is_a_miss():
    d = detail("A", "Camera")
    for repo in (ProductDetailCacheRepo(None), ProductDetailCacheRepo(DummyRedis(fail=True))):
        await repo.upsert(d)
        assert await repo.get("A") is None


@pytest.mark.asyncio
async def test_corrupt_entry_is_a_miss():
    redis = DummyRedis()
    redis.store["pdetail:A"] = "{not json"
    assert await ProductDetailCacheRepo(redis).get("A") is None


@pytest.mark.asyncio
async def test_invalidate_during_outage_deletes_nothing():
    assert await ProductDetailCacheRepo(DummyRedis(fail=True)).invalidate("A") == 0
