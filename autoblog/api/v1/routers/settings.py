# autoblog/api/v1/routers/settings.py

from fastapi import APIRouter, Depends, HTTPException
from typing import Optional

from autoblog.api.deps import mongo_db, wordpress_publisher
from autoblog.api.v1.schemas.content import ApiSettingsIn, ApiSettingsOut, WordPressConnectionOut
from autoblog.core.errors import PublishError
from autoblog.domain.models.content import ApiSettings
from autoblog.domain.repositories.settings_repo import SettingsRepo
from autoblog.domain.services.wordpress_svc import WordPressPublisher

router = APIRouter(prefix="/settings", tags=["settings"])

SECRET_FIELDS = ("amazon_access_key", "amazon_secret_key", "openai_api_key", "wp_password")


def mask(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    return "*" * max(len(value) - 4, 4) + value[-4:] if len(value) > 4 else "****"


def to_out(stored: Optional[ApiSettings]) -> ApiSettingsOut:
    data = (stored or ApiSettings()).model_dump()
    for f in SECRET_FIELDS:
        data[f] = mask(data.get(f))
    return ApiSettingsOut(**data)


@router.get("", response_model=ApiSettingsOut)
async def get_api_settings(db = Depends(mongo_db)):
    return to_out(await SettingsRepo(db).get())


@router.post("", response_model=ApiSettingsOut)
async def save_api_settings(body: ApiSettingsIn, db = Depends(mongo_db)):
    # blank fields keep the stored value
    data = {k: (v.strip() if v else None) or None for k, v in body.model_dump().items()}
    saved = await SettingsRepo(db).save(ApiSettings(**data))
    return to_out(saved)


@router.post("/wordpress/test", response_model=WordPressConnectionOut)
async def test_wordpress_connection(publisher: WordPressPublisher = Depends(wordpress_publisher)):
    try:
        user = await publisher.test_connection()
    except PublishError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return WordPressConnectionOut(connected=True, user=user)
