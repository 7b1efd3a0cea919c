# autoblog/db/redis.py
import logging
import redis.asyncio as redis
from autoblog.core.config import get_settings

logger = logging.getLogger(__name__)
redis_client: redis.Redis | None = None


async def connect():
    """
    Connect Redis if REDIS_URL is set.
    If unset or unreachable, log a warning and keep going: the detail cache
    then behaves as an always-miss cache and keyword locks are skipped.
    """
    global redis_client
    settings = get_settings()
    if not settings.REDIS_URL:
        logger.warning("No REDIS_URL configured, skipping Redis connection.")
        redis_client = None
        return

    try:
        logger.info("Connecting to Redis at %s", settings.REDIS_URL)
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        await redis_client.ping()
        logger.info("Redis connection successful")
    except Exception as e:
        logger.warning("Failed to connect to Redis: %s", e)
        redis_client = None  # fallback: Redis disabled


async def disconnect():
    """Close the Redis connection if any."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis disconnected")


def get_redis() -> redis.Redis | None:
    """
    Redis getter. Returns None if Redis is not configured or unavailable.
    Callers must handle None.
    """
    return redis_client
