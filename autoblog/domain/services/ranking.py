# autoblog/domain/services/ranking.py
"""
Eligibility & ranking policy for catalog products. Pure functions only.

Order of importance when recommending: relevance (keyword score) over
popularity (sales rank) over fulfilment convenience (Prime).
"""
from __future__ import annotations
import math
import re
from typing import Iterable, List, Tuple, Union

from autoblog.domain.models.product import ProductDetail, ScoredCandidate
from autoblog.domain.services.constants import ACCESSORY_INDICATORS, PRIME_ELIGIBLE_FIRST

Titled = Union[str, ProductDetail]

# Whole words only, optional plural: "Cover" but not "Coverage", "case" but not "suitcase"
_INDICATOR_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(i) for i in ACCESSORY_INDICATORS) + r")s?\b",
    re.IGNORECASE,
)


def _title_of(product: Titled) -> str:
    return product if isinstance(product, str) else (product.title or "")


def keyword_signals_accessory(keyword: str) -> bool:
    return bool(_INDICATOR_RE.search(keyword or ""))


def score_product(product: Titled, keyword: str) -> int:
    """Number of distinct keyword words found (as substrings) in the title."""
    title = _title_of(product).lower()
    words = set((keyword or "").lower().split())
    return sum(1 for w in words if w in title)


def is_main_product(product: Titled, keyword: str) -> bool:
    """
    False for accessories (mounts, cases, ...) unless the keyword itself asks
    for an accessory, in which case every product counts as main.
    """
    if keyword_signals_accessory(keyword):
        return True
    return not _INDICATOR_RE.search(_title_of(product))


def annotate(detail: ProductDetail, keyword: str) -> ScoredCandidate:
    """Attach score/is_main and normalise the fields the filter reads."""
    rank = detail.sales_rank
    data = detail.model_dump()
    data["condition"] = (detail.condition or "").strip().lower()
    data["availability_type"] = (detail.availability_type or "").strip().upper()
    return ScoredCandidate(
        **data,
        score=score_product(detail.title, keyword),
        is_main=is_main_product(detail.title, keyword),
        rank=float(rank) if rank is not None else math.inf,
    )


def sort_key(c: ScoredCandidate) -> Tuple[int, float, int]:
    prime_bucket = 0 if c.is_prime_eligible == PRIME_ELIGIBLE_FIRST else 1
    return (-c.score, c.rank, prime_bucket)


def rank_candidates(candidates: Iterable[ScoredCandidate]) -> List[ScoredCandidate]:
    """Best-first. sorted() is stable so full ties keep their input order."""
    return sorted(candidates, key=sort_key)
