# api/v1/schemas/content.py
from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional

from autoblog.domain.models.content import Activity, Article, Keyword
from autoblog.domain.models.product import ArticleProduct


class KeywordPage(BaseModel):
    items: List[Keyword]
    total: int
    page: int
    page_size: int


class ArticlePage(BaseModel):
    items: List[Article]
    total: int
    page: int
    page_size: int


class ArticleDetailOut(BaseModel):
    article: Article
    products: List[ArticleProduct]


class InvalidRowOut(BaseModel):
    line: int
    errors: List[str]


class UploadResult(BaseModel):
    message: str
    valid_count: int
    invalid_count: int
    invalid_rows: List[InvalidRowOut] = []


class GenerateAccepted(BaseModel):
    keyword_id: str
    status: str


class DashboardStats(BaseModel):
    total_articles: int
    pending_keywords: int
    affiliate_links: int


class ActivityList(BaseModel):
    items: List[Activity]


class ApiSettingsIn(BaseModel):
    amazon_partner_id: Optional[str] = None
    amazon_access_key: Optional[str] = None
    amazon_secret_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    wp_base_url: Optional[str] = None
    wp_username: Optional[str] = None
    wp_password: Optional[str] = None


class ApiSettingsOut(BaseModel):
    """Secrets are masked; only the last 4 chars are shown."""
    amazon_partner_id: Optional[str] = None
    amazon_access_key: Optional[str] = None
    amazon_secret_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    wp_base_url: Optional[str] = None
    wp_username: Optional[str] = None
    wp_password: Optional[str] = None
    updated_at: Optional[datetime] = None


class WordPressConnectionOut(BaseModel):
    connected: bool
    user: str = ""
