# autoblog/api/v1/routers/articles.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Literal, Optional

from autoblog.api.deps import mongo_db, wordpress_publisher
from autoblog.api.v1.schemas.content import ArticleDetailOut, ArticlePage
from autoblog.core.errors import PublishError
from autoblog.domain.models.content import Article
from autoblog.domain.repositories.activity_repo import ActivityRepo
from autoblog.domain.repositories.article_repo import ArticleProductRepo, ArticleRepo
from autoblog.domain.services.wordpress_svc import WordPressPublisher, publish_article

import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["articles"])


@router.get("", response_model=ArticlePage)
async def list_articles(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    search: str = Query(""),
    status: Literal["all", "draft", "published"] = Query("all"),
    keyword_id: Optional[str] = Query(None),
    db = Depends(mongo_db),
):
    items, total = await ArticleRepo(db).list(page_size, (page - 1) * page_size, search, status, keyword_id)
    return ArticlePage(items=items, total=total, page=page, page_size=page_size)


@router.get("/{article_id}", response_model=ArticleDetailOut)
async def get_article(article_id: str, db = Depends(mongo_db)):
    article = await ArticleRepo(db).get(article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    products = await ArticleProductRepo(db).by_article(article_id)
    return ArticleDetailOut(article=article, products=products)


@router.post("/{article_id}/publish", response_model=Article)
async def publish(
    article_id: str,
    db = Depends(mongo_db),
    publisher: WordPressPublisher = Depends(wordpress_publisher),
):
    try:
        return await publish_article(
            article_id,
            articles=ArticleRepo(db),
            article_products=ArticleProductRepo(db),
            activities=ActivityRepo(db),
            publisher=publisher,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PublishError as e:
        raise HTTPException(status_code=502, detail=str(e))
