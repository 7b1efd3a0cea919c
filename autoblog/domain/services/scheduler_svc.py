# autoblog/domain/services/scheduler_svc.py
from __future__ import annotations
import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

from autoblog.domain.models.content import Keyword
from autoblog.domain.repositories.keyword_repo import KeywordRepo
from autoblog.domain.services.content_generator_svc import ContentGenerator

logger = logging.getLogger(__name__)


class KeywordNotFound(LookupError):
    pass


class KeywordNotPending(ValueError):
    pass


class Scheduler:
    """
    Polls for due pending keywords every `interval_s` seconds (first check at start).
    `is_processing` keeps ticks from overlapping; keywords are claimed
    pending -> processing before generation.
    """

    def __init__(
        self,
        keywords: KeywordRepo,
        generator: ContentGenerator,
        *,
        interval_s: float = 300,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.keywords = keywords
        self.generator = generator
        self.interval_s = interval_s
        self.clock = clock
        self.is_processing = False
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._loop(), name="keyword-scheduler")
        logger.info("Content scheduler started interval=%ss", self.interval_s)

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Content scheduler stopped")

    async def _loop(self) -> None:
        while True:
            await self.check_schedules()
            await asyncio.sleep(self.interval_s)

    async def run(self, keyword: Keyword) -> None:
        """Generate one claimed keyword. The generator already records the failure."""
        try:
            await self.generator.generate(keyword)
        except Exception:
            logger.exception("Error processing keyword_id=%s", keyword.id)

    async def check_schedules(self) -> List[str]:
        """One tick. Returns the ids of the keywords processed."""
        if self.is_processing:
            logger.debug("Scheduler tick skipped, previous tick still running")
            return []
        self.is_processing = True
        processed: List[str] = []
        try:
            due = await self.keywords.due(self.clock())
            if due:
                logger.info("Found %s due keywords", len(due))
            for keyword in due:
                if not await self.keywords.claim(keyword.id):
                    continue
                logger.info("Processing scheduled keyword_id=%s keyword=%r", keyword.id, keyword.primary_keyword)
                await self.run(keyword)
                processed.append(keyword.id)
        except Exception:
            logger.exception("Error in scheduler check")
        finally:
            self.is_processing = False
        return processed

    async def trigger(self, keyword_id: str) -> Keyword:
        """
        Claim a keyword for manual generation. The caller runs `run(keyword)`
        (typically as a background task).
        """
        keyword = await self.keywords.get(keyword_id)
        if keyword is None:
            raise KeywordNotFound(f"Keyword {keyword_id} not found")
        if keyword.status != "pending" or not await self.keywords.claim(keyword_id):
            raise KeywordNotPending(f"Keyword is in {keyword.status} state and cannot be processed")
        return keyword.model_copy(update={"status": "processing"})
