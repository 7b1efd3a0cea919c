from functools import lru_cache
from typing import Literal, Optional
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "AutoBlog"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Mongo
    MONGO_URI: str = ""
    MONGO_DB: str = "autoblog"

    # Redis
    REDIS_URL: str = ""

    # Amazon PA-API (fallback: stored settings document)
    AMAZON_PARTNER_ID: Optional[str] = None
    AMAZON_ACCESS_KEY: Optional[str] = None
    AMAZON_SECRET_KEY: Optional[str] = None
    amazon_host: str = "webservices.amazon.com"
    amazon_region: str = "us-east-1"
    amazon_marketplace: str = "www.amazon.com"
    amazon_product_base_url: str = "https://www.amazon.com/dp/"

    # Catalog search tuning
    catalog_page_size: int = 10                # items per SearchItems page (PA-API max is 10)
    catalog_max_pages: int = 5
    catalog_max_candidates: int = 50           # hard cap on raw candidates
    catalog_batch_size: int = 10               # ids per GetItems call (PA-API max is 10)
    catalog_min_interval_s: float = 1.1        # PA-API allows ~1 request/second
    catalog_timeout_s: float = 15.0
    catalog_max_retries: int = 2
    catalog_retry_backoff: float = 2.0

    # Cache config
    detail_cache_ttl: int = 24 * 3600          # 24 hours
    detail_cache_prefix: str = "pdetail"
    keyword_lock_ttl: int = 15 * 60            # seconds; one generation per keyword

    # OpenAI
    OPENAI_API_KEY: Optional[str] = None
    openai_timeout_s: int = 120  # seconds
    OPENAI_ARTICLE_MODEL: str = "gpt-4o-mini"
    article_max_tokens: int = 4000
    article_temperature: float = 0.7

    # WordPress (fallback: stored settings document)
    WP_BASE_URL: Optional[str] = None
    WP_USERNAME: Optional[str] = None
    WP_PASSWORD: Optional[str] = None
    wp_default_category_id: int = 1
    wp_timeout_s: float = 30.0

    # Scheduler
    scheduler_enabled: bool = True
    scheduler_interval_s: int = 5 * 60          # check every 5 minutes
    products_per_article: int = 5

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True, extra="ignore")

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
