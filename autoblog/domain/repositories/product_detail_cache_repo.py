# autoblog/domain/repositories/product_detail_cache_repo.py
from __future__ import annotations
from typing import Optional, Protocol
from redis.asyncio import Redis
from redis.exceptions import RedisError
import logging

from autoblog.domain.models.product import ProductDetail

"""
Note:
    - Adapter for the product Detail Cache (keyed by ASIN) in Redis.
    - No business logic here, just cache access (get/upsert/invalidate).
    - Entries expire after `ttl` seconds so prices/availability are refreshed;
      within the TTL a cached detail is treated as immutable.
"""

logger = logging.getLogger(__name__)


class DetailCache(Protocol):
    async def get(self, product_id: str) -> Optional[ProductDetail]: ...
    async def upsert(self, detail: ProductDetail) -> None: ...


class ProductDetailCacheRepo:
    """
    Redis-backed DetailCache. A missing Redis client (not configured) behaves
    as an always-miss cache; Redis errors are logged and treated as a miss.
    """
    def __init__(self, redis: Optional[Redis], prefix: str = "pdetail", ttl: int = 24 * 3600):
        self.redis = redis
        self.prefix = prefix
        self.ttl = ttl

    def key(self, product_id: str) -> str:
        return f"{self.prefix}:{product_id}"

    async def get(self, product_id: str) -> Optional[ProductDetail]:
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(self.key(product_id))
        except RedisError as e:
            logger.warning("detail cache get error id=%s err=%s", product_id, e)
            return None
        if not raw:
            return None
        try:
            return ProductDetail.model_validate_json(raw)
        except ValueError as e:
            logger.warning("detail cache decode error id=%s err=%s", product_id, e)
            return None

    async def upsert(self, detail: ProductDetail) -> None:
        """Last write wins; concurrent writers store the same immutable detail."""
        if self.redis is None:
            return
        try:
            await self.redis.set(self.key(detail.id), detail.model_dump_json(), ex=self.ttl)
        except RedisError as e:
            logger.warning("detail cache set error id=%s err=%s", detail.id, e)

    async def invalidate(self, product_id: str) -> int:
        """
        Remove a cached detail (e.g. after a price complaint).
        Returns the number of keys deleted (0 or 1).
        """
        if self.redis is None:
            return 0
        try:
            return await self.redis.delete(self.key(product_id))
        except RedisError as e:
            logger.warning("detail cache delete error id=%s err=%s", product_id, e)
            return 0
