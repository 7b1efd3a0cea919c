# autoblog/domain/repositories/keyword_repo.py

from __future__ import annotations
from typing import List, Optional, Tuple
from datetime import datetime
import re
import uuid
from motor.motor_asyncio import AsyncIOMotorDatabase
from autoblog.domain.models.content import Keyword, KeywordIn, KeywordStatus

_PROJECTION = {"_id": 0}


class KeywordRepo:
    """
    Scheduled keywords backed by the 'keywords' collection.
    Lifecycle: pending -> processing -> completed | failed.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "keywords"):
        self.col = db[collection_name]

    @staticmethod
    def _filter(search: str = "", status: str = "all") -> dict:
        q: dict = {}
        if search:
            q["primary_keyword"] = {"$regex": re.escape(search), "$options": "i"}
        if status and status != "all":
            q["status"] = status
        return q

    async def get(self, keyword_id: str) -> Optional[Keyword]:
        doc = await self.col.find_one({"id": keyword_id}, _PROJECTION)
        return Keyword.model_validate(doc) if doc else None

    async def list(
        self, limit: int, offset: int, search: str = "", status: str = "all"
    ) -> Tuple[List[Keyword], int]:
        q = self._filter(search, status)
        cursor = self.col.find(q, _PROJECTION).sort("created_at", -1).skip(offset).limit(limit)
        items = [Keyword.model_validate(d) async for d in cursor]
        total = await self.col.count_documents(q)
        return items, total

    async def upcoming(self, limit: int = 4) -> List[Keyword]:
        # YYYY-MM-DD / HH:MM strings sort chronologically
        cursor = (
            self.col.find({"status": "pending"}, _PROJECTION)
            .sort([("scheduled_date", 1), ("scheduled_time", 1)])
            .limit(limit)
        )
        return [Keyword.model_validate(d) async for d in cursor]

    async def due(self, now: datetime, limit: int = 100) -> List[Keyword]:
        """Pending keywords whose schedule is at or before `now` (naive local time)."""
        cursor = (
            self.col.find({"status": "pending"}, _PROJECTION)
            .sort([("scheduled_date", 1), ("scheduled_time", 1)])
            .limit(limit)
        )
        pending = [Keyword.model_validate(d) async for d in cursor]
        return [k for k in pending if k.scheduled_at() <= now]

    async def add(self, keyword: KeywordIn) -> Keyword:
        return (await self.add_many([keyword]))[0]

    async def add_many(self, keywords: List[KeywordIn]) -> List[Keyword]:
        if not keywords:
            return []
        docs = [Keyword(id=uuid.uuid4().hex, **k.model_dump()) for k in keywords]
        await self.col.insert_many([d.model_dump() for d in docs])
        return docs

    async def update_status(self, keyword_id: str, status: KeywordStatus) -> None:
        await self.col.update_one({"id": keyword_id}, {"$set": {"status": status}})

    async def claim(self, keyword_id: str) -> bool:
        """Atomically move pending -> processing. False if someone else got it."""
        res = await self.col.update_one(
            {"id": keyword_id, "status": "pending"},
            {"$set": {"status": "processing"}},
        )
        return res.modified_count == 1

    async def count_pending(self) -> int:
        return await self.col.count_documents({"status": "pending"})
