# autoblog/domain/repositories/settings_repo.py
from __future__ import annotations
from typing import Optional
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorDatabase
from autoblog.domain.models.content import ApiSettings


class SettingsRepo:
    """Single stored 'api_settings' document (credential fallback for env vars)."""

    _DOC_ID = "api_settings"

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "api_settings"):
        self.col = db[collection_name]

    async def get(self) -> Optional[ApiSettings]:
        doc = await self.col.find_one({"_id": self._DOC_ID})
        if not doc:
            return None
        doc.pop("_id", None)
        return ApiSettings.model_validate(doc)

    async def save(self, settings: ApiSettings) -> ApiSettings:
        """Partial update: None fields keep the stored value."""
        data = settings.model_dump(exclude={"updated_at"}, exclude_none=True)
        data["updated_at"] = datetime.now(timezone.utc)
        await self.col.update_one({"_id": self._DOC_ID}, {"$set": data}, upsert=True)
        return await self.get() or ApiSettings(**data)
