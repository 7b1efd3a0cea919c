# autoblog/core/lifespan.py
from contextlib import asynccontextmanager
from fastapi import FastAPI
from autoblog.db import mongo, redis as r
from autoblog.core.config import get_settings
from autoblog.domain.repositories.keyword_repo import KeywordRepo
from autoblog.domain.services.content_generator_svc import build_content_generator
from autoblog.domain.services.scheduler_svc import Scheduler
import logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.scheduler = None

    # --- Startup ---
    # Mongo required (when a URI is configured)
    if settings.MONGO_URI:
        try:
            await mongo.connect()
        except Exception as e:
            logger.error("Mongo connection failed: %s", e)
            raise
    else:
        logger.warning("No MONGO_URI provided, skipping Mongo connection")

    # Redis optional: connect() logs and degrades to None on failure
    await r.connect()

    if settings.MONGO_URI and settings.scheduler_enabled:
        db = mongo.get_db()
        scheduler = Scheduler(
            KeywordRepo(db),
            build_content_generator(db, r.get_redis(), settings),
            interval_s=settings.scheduler_interval_s,
        )
        scheduler.start()
        app.state.scheduler = scheduler

    # Application runs
    yield

    # --- Shutdown ---
    if app.state.scheduler is not None:
        await app.state.scheduler.stop()
        app.state.scheduler = None

    try:
        await r.disconnect()
    except Exception as e:
        logger.warning("Redis disconnect failed: %s", e)

    try:
        if settings.MONGO_URI:
            await mongo.disconnect()
            logger.info("Mongo disconnected")
    except Exception as e:
        logger.warning("Mongo disconnect failed: %s", e)
