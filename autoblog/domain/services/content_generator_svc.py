# autoblog/domain/services/content_generator_svc.py
"""
Keyword -> products -> article pipeline.

    1) search the catalog for `products_per_article` eligible products
    2) write the article (outline -> body -> snippet)
    3) persist the article (draft) and its affiliate products
    4) keyword -> completed, activity 'article_generated'

Any failure marks the keyword 'failed', logs a 'generation_failed' activity
and re-raises so the caller decides what to do with it.
"""
from __future__ import annotations
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Awaitable, Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from autoblog.core.config import Settings
from autoblog.domain.models.content import (
    ACTIVITY_ARTICLE_GENERATED,
    ACTIVITY_GENERATION_FAILED,
    Article,
    Keyword,
)
from autoblog.domain.models.product import ArticleProduct
from autoblog.domain.repositories.activity_repo import ActivityRepo
from autoblog.domain.repositories.settings_repo import SettingsRepo
from autoblog.domain.repositories.article_repo import ArticleProductRepo, ArticleRepo
from autoblog.domain.repositories.keyword_repo import KeywordRepo
from autoblog.domain.repositories.product_detail_cache_repo import ProductDetailCacheRepo
from autoblog.domain.services.article_svc import ArticleWriter
from autoblog.domain.services.catalog_svc import CatalogClient
from autoblog.domain.services.credentials import resolve_catalog_credentials, resolve_openai_key
from autoblog.domain.services.paapi_transport import PaapiTransport
from autoblog.utils.locks import RedisLock

logger = logging.getLogger(__name__)

CatalogFactory = Callable[[], AsyncContextManager[CatalogClient]]
WriterFactory = Callable[[], Awaitable[ArticleWriter]]


class ContentGenerator:
    def __init__(
        self,
        *,
        keywords: KeywordRepo,
        articles: ArticleRepo,
        article_products: ArticleProductRepo,
        activities: ActivityRepo,
        catalog_factory: CatalogFactory,
        writer_factory: WriterFactory,
        redis: Optional[Redis] = None,
        products_per_article: int = 5,
        lock_ttl: int = 900,
    ):
        self.keywords = keywords
        self.articles = articles
        self.article_products = article_products
        self.activities = activities
        self.catalog_factory = catalog_factory
        self.writer_factory = writer_factory
        self.redis = redis
        self.products_per_article = products_per_article
        self.lock_ttl = lock_ttl

    async def _lock(self, keyword: Keyword) -> Optional[RedisLock]:
        """RedisLock held for the keyword, None when Redis is off. Raises LookupError if taken."""
        if self.redis is None:
            return None
        lock = RedisLock(self.redis, f"keyword:{keyword.id}", ttl=self.lock_ttl)
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            logger.warning("Keyword lock unavailable keyword_id=%s err=%s, continuing unlocked", keyword.id, e)
            return None
        if not acquired:
            raise LookupError(f"Keyword {keyword.id} is already being generated")
        return lock

    async def generate(self, keyword: Keyword) -> Optional[Article]:
        """
        Run the pipeline for one keyword. Returns None when another worker
        already holds the keyword lock.
        """
        try:
            lock = await self._lock(keyword)
        except LookupError as e:
            logger.info("Skip generation: %s", e)
            return None

        t0 = time.perf_counter()
        logger.info("Content generation start keyword_id=%s keyword=%r", keyword.id, keyword.primary_keyword)
        try:
            async with self.catalog_factory() as catalog:
                products = await catalog.search_products(keyword.primary_keyword, self.products_per_article)

            writer = await self.writer_factory()
            generated = await writer.write(keyword.primary_keyword, products)

            article = await self.articles.add(
                keyword_id=keyword.id,
                title=generated.title,
                content=generated.content,
                snippet=generated.snippet,
            )
            await self.article_products.add_many(
                [ArticleProduct.from_detail(article.id, p) for p in products]
            )
            await self.keywords.update_status(keyword.id, "completed")
            await self.activities.add(
                ACTIVITY_ARTICLE_GENERATED,
                f'Article "{article.title}" was successfully generated for keyword "{keyword.primary_keyword}"',
            )
            logger.info(
                "Content generation done keyword_id=%s article_id=%s products=%s in %.2fs",
                keyword.id, article.id, len(products), time.perf_counter() - t0,
            )
            return article
        except Exception as e:
            logger.error("Content generation failed keyword_id=%s: %s", keyword.id, e)
            await self.keywords.update_status(keyword.id, "failed")
            await self.activities.add(
                ACTIVITY_GENERATION_FAILED,
                f'Failed to generate content for "{keyword.primary_keyword}": {e}',
            )
            raise
        finally:
            if lock is not None:
                await lock.release()


def build_content_generator(db, redis: Optional[Redis], settings: Settings) -> ContentGenerator:
    """
    Wire the generator against Mongo/Redis. Credentials are resolved on each
    run, so keys saved through the settings endpoint apply without a restart.
    """
    settings_repo = SettingsRepo(db)
    cache = ProductDetailCacheRepo(redis, prefix=settings.detail_cache_prefix, ttl=settings.detail_cache_ttl)

    @asynccontextmanager
    async def catalog_factory() -> AsyncIterator[CatalogClient]:
        creds = resolve_catalog_credentials(settings, await settings_repo.get())
        async with PaapiTransport(creds, settings) as transport:
            yield CatalogClient.from_settings(settings, transport, cache)

    async def writer_factory() -> ArticleWriter:
        return ArticleWriter.from_settings(settings, resolve_openai_key(settings, await settings_repo.get()))

    return ContentGenerator(
        keywords=KeywordRepo(db),
        articles=ArticleRepo(db),
        article_products=ArticleProductRepo(db),
        activities=ActivityRepo(db),
        catalog_factory=catalog_factory,
        writer_factory=writer_factory,
        redis=redis,
        products_per_article=settings.products_per_article,
        lock_ttl=settings.keyword_lock_ttl,
    )
