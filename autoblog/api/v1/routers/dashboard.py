# autoblog/api/v1/routers/dashboard.py

from fastapi import APIRouter, Depends, Query
import asyncio

from autoblog.api.deps import mongo_db
from autoblog.api.v1.schemas.content import ActivityList, DashboardStats
from autoblog.domain.repositories.activity_repo import ActivityRepo
from autoblog.domain.repositories.article_repo import ArticleProductRepo, ArticleRepo
from autoblog.domain.repositories.keyword_repo import KeywordRepo

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(db = Depends(mongo_db)):
    total_articles, pending, links = await asyncio.gather(
        ArticleRepo(db).count(),
        KeywordRepo(db).count_pending(),
        ArticleProductRepo(db).count(),
    )
    return DashboardStats(total_articles=total_articles, pending_keywords=pending, affiliate_links=links)


@router.get("/activities", response_model=ActivityList)
async def recent_activities(limit: int = Query(10, ge=1, le=100), db = Depends(mongo_db)):
    return ActivityList(items=await ActivityRepo(db).latest(limit))
