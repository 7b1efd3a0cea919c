# autoblog/api/v1/routers/keywords.py

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, UploadFile
from typing import Literal

from autoblog.api.deps import mongo_db, scheduler_dep
from autoblog.api.v1.schemas.content import GenerateAccepted, InvalidRowOut, KeywordPage, UploadResult
from autoblog.domain.models.content import ACTIVITY_CSV_IMPORTED, Keyword
from autoblog.domain.repositories.activity_repo import ActivityRepo
from autoblog.domain.repositories.keyword_repo import KeywordRepo
from autoblog.domain.services.csv_import_svc import CsvFormatError, parse_keywords_csv
from autoblog.domain.services.scheduler_svc import KeywordNotFound, KeywordNotPending, Scheduler

import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/keywords", tags=["keywords"])

StatusFilter = Literal["all", "pending", "processing", "completed", "failed"]


@router.get("", response_model=KeywordPage)
async def list_keywords(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    search: str = Query(""),
    status: StatusFilter = Query("all"),
    db = Depends(mongo_db),
):
    items, total = await KeywordRepo(db).list(page_size, (page - 1) * page_size, search, status)
    return KeywordPage(items=items, total=total, page=page, page_size=page_size)


@router.get("/upcoming", response_model=list[Keyword])
async def upcoming_keywords(limit: int = Query(4, ge=1, le=50), db = Depends(mongo_db)):
    return await KeywordRepo(db).upcoming(limit)


@router.post("/upload", response_model=UploadResult)
async def upload_keywords(file: UploadFile = File(...), db = Depends(mongo_db)):
    data = await file.read()
    logger.info("File upload received name=%s type=%s size=%s", file.filename, file.content_type, len(data))
    try:
        parsed = parse_keywords_csv(data)
    except CsvFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not parsed.valid:
        raise HTTPException(
            status_code=400,
            detail="No valid rows found in the uploaded file. Expected columns: "
                   "primary_keyword, scheduled_date (YYYY-MM-DD), scheduled_time (HH:MM)",
        )

    added = await KeywordRepo(db).add_many(parsed.valid)
    message = f"Successfully imported {len(added)} keywords from CSV"
    await ActivityRepo(db).add(ACTIVITY_CSV_IMPORTED, message)
    return UploadResult(
        message=message,
        valid_count=parsed.valid_count,
        invalid_count=parsed.invalid_count,
        invalid_rows=[InvalidRowOut(line=r.line, errors=r.errors) for r in parsed.invalid],
    )


@router.post("/{keyword_id}/generate", response_model=GenerateAccepted, status_code=202)
async def generate_keyword(
    keyword_id: str,
    background: BackgroundTasks,
    scheduler: Scheduler = Depends(scheduler_dep),
):
    try:
        keyword = await scheduler.trigger(keyword_id)
    except KeywordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except KeywordNotPending as e:
        raise HTTPException(status_code=409, detail=str(e))
    background.add_task(scheduler.run, keyword)
    return GenerateAccepted(keyword_id=keyword.id, status=keyword.status)
