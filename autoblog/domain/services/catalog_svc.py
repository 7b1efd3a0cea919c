# autoblog/domain/services/catalog_svc.py
"""
Catalog client: product search-and-ranking on top of the PA-API transport.

    search_products(keyword, desired_count)
      1) paged SearchItems collection (paced, stops on short page / hard cap)
      2) dedupe by ASIN, first occurrence wins
      3) cheap pre-filter on raw hits (price, availability, accessory titles)
      4) detail resolution: Detail Cache first, then paced GetItems batches
      5) score + annotate, 6) strict eligibility filter, 7) composite sort
      8) top-N

    get_items_details(ids)
      cache-or-fetch with sequential batches, upserting every fetched detail.

Per-page / per-batch transport failures are logged and skipped; only a failure
that leaves us with no data at all (first search page, or every detail batch
with nothing cached) reaches the caller.
"""
from __future__ import annotations
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from autoblog.core.config import Settings
from autoblog.core.errors import NoCandidatesFound, NoEligibleCandidates, TransportFailure
from autoblog.domain.models.product import ProductDetail, ScoredCandidate, SearchCandidate
from autoblog.domain.repositories.product_detail_cache_repo import DetailCache
from autoblog.domain.services.constants import OP_GET_DETAILS, OP_SEARCH, REASON_MISSING_TITLE
from autoblog.domain.services.filters import eligibility_reasons, prefilter_reasons
from autoblog.domain.services.pacing import Pacer
from autoblog.domain.services.paapi_transport import CatalogTransport
from autoblog.domain.services.ranking import annotate, rank_candidates

logger = logging.getLogger(__name__)


def _chunks(seq: Sequence[str], size: int):
    for i in range(0, len(seq), size):
        yield list(seq[i:i + size])


def _unique(ids: Sequence[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for i in ids:
        if i and i not in seen:
            seen.add(i)
            out.append(i)
    return out


class CatalogClient:
    def __init__(
        self,
        transport: CatalogTransport,
        cache: DetailCache,
        *,
        page_size: int = 10,
        max_pages: int = 5,
        max_candidates: int = 50,
        batch_size: int = 10,
        min_interval: float = 1.1,
        search_filters: Optional[Dict[str, Any]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if page_size < 1 or max_pages < 1 or batch_size < 1:
            raise ValueError("page_size, max_pages and batch_size must be >= 1")
        self.transport = transport
        self.cache = cache
        self.page_size = page_size
        self.max_pages = max_pages
        self.max_candidates = max_candidates
        self.batch_size = batch_size
        self.min_interval = min_interval
        self.search_filters = search_filters or {}
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, transport: CatalogTransport, cache: DetailCache) -> "CatalogClient":
        return cls(
            transport,
            cache,
            page_size=settings.catalog_page_size,
            max_pages=settings.catalog_max_pages,
            max_candidates=settings.catalog_max_candidates,
            batch_size=settings.catalog_batch_size,
            min_interval=settings.catalog_min_interval_s,
        )

    def new_pacer(self) -> Pacer:
        return Pacer(self.min_interval, sleep=self._sleep)

    # ---------------------------------------------------------------- search --

    async def search_products(self, keyword: str, desired_count: int = 5) -> List[ScoredCandidate]:
        """
        Up to `desired_count` eligible products, best first. A short list is a
        normal outcome; NoCandidatesFound / NoEligibleCandidates are raised for
        the two empty outcomes.
        """
        if desired_count < 1:
            raise ValueError("desired_count must be >= 1")
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValueError("keyword must not be empty")

        t0 = time.perf_counter()
        logger.info("catalog search start keyword=%r desired=%s", keyword, desired_count)
        pacer = self.new_pacer()  # one pacer for search pages + detail batches

        # ---- 1) paged collection -----------------------------------------
        raw = await self._collect(keyword, pacer)
        if not raw:
            logger.warning("catalog search keyword=%r no raw candidates", keyword)
            raise NoCandidatesFound(keyword)

        # ---- 2) dedupe ---------------------------------------------------
        by_id: Dict[str, SearchCandidate] = {}
        for c in raw:
            by_id.setdefault(c.id, c)
        logger.info("catalog search keyword=%r raw=%s unique=%s", keyword, len(raw), len(by_id))

        # ---- 3) pre-filter -----------------------------------------------
        rejections: Dict[str, List[str]] = {}
        survivors: List[str] = []
        for cid, cand in by_id.items():
            reasons = prefilter_reasons(cand, keyword)
            if reasons:
                rejections[cid] = reasons
                logger.debug("catalog prefilter drop id=%s title=%r reasons=%s", cid, cand.raw_title, reasons)
            else:
                survivors.append(cid)
        logger.info("catalog prefilter kept=%s dropped=%s", len(survivors), len(rejections))

        # ---- 4) detail resolution ----------------------------------------
        details = await self.get_items_details(survivors, pacer=pacer) if survivors else []
        detail_by_id = {d.id: d for d in details}

        # ---- 5) score + annotate, 6) eligibility -------------------------
        eligible: List[ScoredCandidate] = []
        for cid in survivors:
            detail = detail_by_id.get(cid)
            if detail is None or not (detail.title or "").strip():
                rejections[cid] = [REASON_MISSING_TITLE]
                continue
            scored = annotate(detail, keyword)
            reasons = eligibility_reasons(scored)
            if reasons:
                rejections[cid] = reasons
                logger.debug("catalog reject id=%s score=%s rank=%s reasons=%s",
                             cid, scored.score, scored.sales_rank, reasons)
            else:
                eligible.append(scored)

        if not eligible:
            logger.warning("catalog search keyword=%r no eligible candidates rejected=%s", keyword, len(rejections))
            raise NoEligibleCandidates(keyword, rejections)

        # ---- 7) sort, 8) select ------------------------------------------
        ranked = rank_candidates(eligible)
        selected = ranked[:desired_count]
        if len(selected) < desired_count:
            logger.warning("catalog search keyword=%r only %s of %s requested products qualified",
                           keyword, len(selected), desired_count)
        logger.info(
            "catalog search done keyword=%r eligible=%s returned=%s ids=%s paced=%.1fs total_time=%.3fs",
            keyword, len(eligible), len(selected), [c.id for c in selected],
            pacer.total_waited, time.perf_counter() - t0,
        )
        return selected

    async def _collect(self, keyword: str, pacer: Pacer) -> List[SearchCandidate]:
        collected: List[SearchCandidate] = []
        for page in range(1, self.max_pages + 1):
            await pacer.wait()
            payload = {
                "keyword": keyword,
                "page": page,
                "page_size": self.page_size,
                "filters": self.search_filters,
            }
            try:
                resp = await self.transport.send(OP_SEARCH, payload)
            except TransportFailure as e:
                if page == 1:
                    logger.error("catalog search first page failed keyword=%r err=%s", keyword, e)
                    raise
                logger.warning("catalog search page=%s skipped keyword=%r err=%s", page, keyword, e)
                continue

            items = list(resp.get("items") or [])
            collected.extend(items)
            logger.debug("catalog search page=%s items=%s collected=%s", page, len(items), len(collected))
            if len(items) < self.page_size:
                break  # short page: end of results
            if len(collected) >= self.max_candidates:
                break
        return collected[: self.max_candidates]

    # --------------------------------------------------------------- details --

    async def get_items_details(self, ids: Sequence[str], *, pacer: Optional[Pacer] = None) -> List[ProductDetail]:
        """
        Details for `ids`, cached ones first. Output order is not significant and
        ids whose batch failed are simply absent.
        """
        ids = _unique(ids)
        if not ids:
            return []

        # Cache reads are independent; run them together
        cached = await asyncio.gather(*(self.cache.get(i) for i in ids))
        out: List[ProductDetail] = [d for d in cached if d is not None]
        uncached = [i for i, d in zip(ids, cached) if d is None]
        logger.info("catalog details ids=%s cache_hits=%s to_fetch=%s", len(ids), len(out), len(uncached))

        pacer = pacer or self.new_pacer()
        first_failure: Optional[TransportFailure] = None
        ok_batches = 0
        for n, batch in enumerate(_chunks(uncached, self.batch_size), start=1):
            await pacer.wait()
            try:
                resp = await self.transport.send(OP_GET_DETAILS, {"ids": batch})
            except TransportFailure as e:
                logger.warning("catalog details batch=%s skipped ids=%s err=%s", n, batch, e)
                first_failure = first_failure or e
                continue
            ok_batches += 1
            fetched = list(resp.get("items") or [])
            for detail in fetched:
                await self.cache.upsert(detail)
                out.append(detail)
            missing = set(batch) - {d.id for d in fetched}
            if missing:
                logger.info("catalog details batch=%s missing ids=%s", n, sorted(missing))

        if first_failure is not None and ok_batches == 0 and not out:
            raise first_failure
        return out
