# autoblog/api/deps.py
from typing import Optional
from fastapi import Depends, HTTPException, Request
from autoblog.core.config import Settings, get_settings
from autoblog.core.errors import ConfigurationError
from autoblog.db.mongo import get_db
from autoblog.db.redis import get_redis
from autoblog.domain.models.content import ApiSettings
from autoblog.domain.repositories.settings_repo import SettingsRepo
from autoblog.domain.repositories.product_detail_cache_repo import ProductDetailCacheRepo
from autoblog.domain.services.catalog_svc import CatalogClient
from autoblog.domain.services.credentials import resolve_catalog_credentials, resolve_wordpress_credentials
from autoblog.domain.services.paapi_transport import PaapiTransport
from autoblog.domain.services.scheduler_svc import Scheduler
from autoblog.domain.services.wordpress_svc import WordPressPublisher

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    return db

# Dependency for injecting the Redis client (None when Redis is off)
def redis_dep():
    return get_redis()

def settings_dep() -> Settings:
    return get_settings()

async def stored_settings(db = Depends(mongo_db)) -> Optional[ApiSettings]:
    return await SettingsRepo(db).get()

async def catalog_client(
    stored: Optional[ApiSettings] = Depends(stored_settings),
    redis = Depends(redis_dep),
    settings: Settings = Depends(settings_dep),
):
    try:
        creds = resolve_catalog_credentials(settings, stored)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    cache = ProductDetailCacheRepo(redis, prefix=settings.detail_cache_prefix, ttl=settings.detail_cache_ttl)
    async with PaapiTransport(creds, settings) as transport:
        yield CatalogClient.from_settings(settings, transport, cache)

def scheduler_dep(request: Request) -> Scheduler:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Content scheduler is not running")
    return scheduler

# One publisher (and HTTP client) per request, closed when the response is done
async def wordpress_publisher(
    stored: Optional[ApiSettings] = Depends(stored_settings),
    settings: Settings = Depends(settings_dep),
):
    try:
        creds = resolve_wordpress_credentials(settings, stored)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    publisher = WordPressPublisher(
        creds,
        default_category_id=settings.wp_default_category_id,
        timeout_s=settings.wp_timeout_s,
    )
    try:
        yield publisher
    finally:
        await publisher.aclose()
