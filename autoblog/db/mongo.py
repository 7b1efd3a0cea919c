# autoblog/db/mongo.py
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from autoblog.core.config import get_settings
import certifi
import logging

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_client() -> AsyncIOMotorClient:
    assert _client is not None, "Mongo client not initialized"
    return _client


def get_db() -> AsyncIOMotorDatabase:
    assert _db is not None, "Mongo DB not initialized"
    return _db


async def connect():
    """
    Create Motor client with explicit CA bundle.
    Do not crash the app if the initial ping fails: keep a lazy client so
    requests (and the scheduler) can retry once the network is OK.
    """
    global _client, _db
    settings = get_settings()

    def _new_client() -> AsyncIOMotorClient:
        tls = settings.MONGO_URI.startswith("mongodb+srv://")
        kwargs = {"tls": True, "tlsCAFile": certifi.where()} if tls else {}
        return AsyncIOMotorClient(
            settings.MONGO_URI,
            uuidRepresentation="standard",
            serverSelectionTimeoutMS=6000,
            connectTimeoutMS=6000,
            **kwargs,
        )

    _client = _new_client()
    _db = _client[settings.MONGO_DB]
    try:
        # Soft fail-fast: try a ping, but don't abort on failure
        await _client.admin.command("ping")
        logger.info("Mongo connected (ping ok) db=%s", settings.MONGO_DB)
    except Exception as e:
        logger.warning("Mongo ping at startup failed, will connect lazily on first query: %s", e)

    await ensure_indexes(_db)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    try:
        await db["keywords"].create_index("id", unique=True)
        await db["keywords"].create_index([("status", 1), ("scheduled_date", 1), ("scheduled_time", 1)])
        await db["articles"].create_index("id", unique=True)
        await db["articles"].create_index("keyword_id")
        await db["article_products"].create_index("article_id")
        await db["activities"].create_index([("created_at", -1)])
    except Exception as e:
        logger.warning("Mongo index creation skipped: %s", e)


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None
