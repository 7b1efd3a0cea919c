from fastapi import FastAPI
from autoblog.core.config import get_settings
from autoblog.core.lifespan import lifespan
from autoblog.api.v1.routers.health import router as health_router
from autoblog.api.v1.routers.dashboard import router as dashboard_router
from autoblog.api.v1.routers.keywords import router as keywords_router
from autoblog.api.v1.routers.articles import router as articles_router
from autoblog.api.v1.routers.products import router as products_router
from autoblog.api.v1.routers.settings import router as settings_router
from autoblog.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware
import logging, os

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV list, e.g. "https://blog-admin.example.com,http://localhost:5173"
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = [o.strip() for o in allowed_origins_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins if allowed_origins else ["http://localhost:5173"],
    allow_credentials=False,                        # keep False for a simple preflight
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(dashboard_router)         # stats + activity feed
app.include_router(keywords_router)          # scheduled keywords, CSV upload, manual trigger
app.include_router(articles_router)          # generated articles, WordPress publish
app.include_router(products_router)          # catalog search preview
app.include_router(settings_router)          # stored API credentials
