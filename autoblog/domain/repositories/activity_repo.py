# autoblog/domain/repositories/activity_repo.py
from __future__ import annotations
from typing import List
from motor.motor_asyncio import AsyncIOMotorDatabase
from autoblog.domain.models.content import Activity


class ActivityRepo:
    """Dashboard activity feed ('activities' collection)."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "activities"):
        self.col = db[collection_name]

    async def add(self, activity_type: str, message: str) -> Activity:
        activity = Activity(activity_type=activity_type, message=message)
        await self.col.insert_one(activity.model_dump())
        return activity

    async def latest(self, limit: int = 10) -> List[Activity]:
        cursor = self.col.find({}, {"_id": 0}).sort("created_at", -1).limit(limit)
        return [Activity.model_validate(d) async for d in cursor]
