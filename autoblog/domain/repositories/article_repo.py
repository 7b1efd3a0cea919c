# autoblog/domain/repositories/article_repo.py

from __future__ import annotations
from typing import List, Optional, Tuple
from datetime import datetime, timezone
import re
import uuid
from motor.motor_asyncio import AsyncIOMotorDatabase
from autoblog.domain.models.content import Article, ArticleStatus
from autoblog.domain.models.product import ArticleProduct

_PROJECTION = {"_id": 0}


class ArticleRepo:
    """Generated articles ('articles' collection)."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "articles"):
        self.col = db[collection_name]

    async def get(self, article_id: str) -> Optional[Article]:
        doc = await self.col.find_one({"id": article_id}, _PROJECTION)
        return Article.model_validate(doc) if doc else None

    async def list(
        self,
        limit: int,
        offset: int,
        search: str = "",
        status: str = "all",
        keyword_id: Optional[str] = None,
    ) -> Tuple[List[Article], int]:
        q: dict = {}
        if search:
            rx = {"$regex": re.escape(search), "$options": "i"}
            q["$or"] = [{"title": rx}, {"content": rx}]
        if status and status != "all":
            q["status"] = status
        if keyword_id:
            q["keyword_id"] = keyword_id
        cursor = self.col.find(q, _PROJECTION).sort("created_at", -1).skip(offset).limit(limit)
        items = [Article.model_validate(d) async for d in cursor]
        total = await self.col.count_documents(q)
        return items, total

    async def add(self, *, keyword_id: str, title: str, content: str, snippet: Optional[str]) -> Article:
        article = Article(
            id=uuid.uuid4().hex,
            keyword_id=keyword_id,
            title=title,
            content=content,
            snippet=snippet,
            status="draft",  # stays draft until published to WordPress
        )
        await self.col.insert_one(article.model_dump())
        return article

    async def update_status(self, article_id: str, status: ArticleStatus, *, wordpress_id: Optional[int] = None) -> None:
        fields: dict = {"status": status}
        if wordpress_id is not None:
            fields["wordpress_id"] = wordpress_id
        await self.col.update_one({"id": article_id}, {"$set": fields})

    async def count(self) -> int:
        return await self.col.count_documents({})


class ArticleProductRepo:
    """Affiliate products attached to an article ('article_products' collection)."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "article_products"):
        self.col = db[collection_name]

    async def add_many(self, products: List[ArticleProduct]) -> None:
        if not products:
            return
        now = datetime.now(timezone.utc)
        await self.col.insert_many([{**p.model_dump(), "created_at": p.created_at or now} for p in products])

    async def by_article(self, article_id: str) -> List[ArticleProduct]:
        cursor = self.col.find({"article_id": article_id}, _PROJECTION)
        return [ArticleProduct.model_validate(d) async for d in cursor]

    async def count(self) -> int:
        return await self.col.count_documents({})
