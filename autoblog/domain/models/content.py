from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime, timezone

KeywordStatus = Literal["pending", "processing", "completed", "failed"]
ArticleStatus = Literal["draft", "published"]

# Activity types shown on the dashboard feed
ACTIVITY_KEYWORD_ADDED = "keyword_added"
ACTIVITY_CSV_IMPORTED = "csv_imported"
ACTIVITY_ARTICLE_GENERATED = "article_generated"
ACTIVITY_GENERATION_FAILED = "generation_failed"
ACTIVITY_ARTICLE_PUBLISHED = "article_published"
ACTIVITY_PUBLISH_FAILED = "publish_failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeywordIn(BaseModel):
    primary_keyword: str = Field(..., min_length=1)
    scheduled_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")   # YYYY-MM-DD
    scheduled_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")         # HH:MM


class Keyword(KeywordIn):
    id: str
    status: KeywordStatus = "pending"
    created_at: datetime = Field(default_factory=_utcnow)

    def scheduled_at(self) -> datetime:
        """Naive local datetime, same as the CSV author wrote it."""
        return datetime.strptime(f"{self.scheduled_date} {self.scheduled_time}", "%Y-%m-%d %H:%M")


class Article(BaseModel):
    id: str
    keyword_id: str
    title: str
    content: str
    snippet: Optional[str] = None
    status: ArticleStatus = "draft"
    wordpress_id: Optional[int] = None
    created_at: datetime = Field(default_factory=_utcnow)


class Activity(BaseModel):
    activity_type: str
    message: str
    created_at: datetime = Field(default_factory=_utcnow)


class ApiSettings(BaseModel):
    """Credentials saved from the settings endpoint; env vars take precedence."""
    amazon_partner_id: Optional[str] = None
    amazon_access_key: Optional[str] = None
    amazon_secret_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    wp_base_url: Optional[str] = None
    wp_username: Optional[str] = None
    wp_password: Optional[str] = None
    updated_at: Optional[datetime] = None
