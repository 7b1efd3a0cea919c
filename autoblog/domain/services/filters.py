import math
import re
from typing import List

from autoblog.domain.models.product import SearchCandidate, ScoredCandidate
from autoblog.domain.services.constants import (
    ACCESSORY_TITLE_PATTERN,
    AVAILABLE_NOW,
    MAX_SALES_RANK,
    REQUIRED_CONDITION,
    REASON_ACCESSORY_TITLE,
    REASON_NO_MATCH,
    REASON_NO_PRICE,
    REASON_NO_RANK,
    REASON_NOT_AVAILABLE,
    REASON_NOT_BUY_BOX,
    REASON_NOT_MAIN,
    REASON_NOT_NEW,
    REASON_RANK_TOO_HIGH,
)
from autoblog.domain.services.ranking import keyword_signals_accessory

_ACCESSORY_RE = re.compile(ACCESSORY_TITLE_PATTERN, re.IGNORECASE)


def _normalize_availability(a):
    """
    Normalize availability strings: 'Now' / 'now ' -> 'NOW'.
    Returns '' if empty/unknown.
    """
    if a is None:
        return ""
    return str(a).strip().upper()


def prefilter_reasons(candidate: SearchCandidate, keyword: str) -> List[str]:
    """
    Cheap checks on a raw search hit (no extra network cost).
    Empty list means the candidate is worth a detail fetch.
    """
    reasons: List[str] = []
    if not candidate.has_price:
        reasons.append(REASON_NO_PRICE)
    if _normalize_availability(candidate.availability_type) not in AVAILABLE_NOW:
        reasons.append(REASON_NOT_AVAILABLE)
    # An explicit accessory search keeps accessory titles; is_main_product agrees
    if not keyword_signals_accessory(keyword) and _ACCESSORY_RE.search(candidate.raw_title or ""):
        reasons.append(REASON_ACCESSORY_TITLE)
    return reasons


def eligibility_reasons(c: ScoredCandidate) -> List[str]:
    """
    Hard business rules, strict AND: a candidate is eligible iff this is empty.
    Every failed rule is reported, not just the first one.
    """
    reasons: List[str] = []
    if c.score <= 0:
        reasons.append(REASON_NO_MATCH)
    if not c.is_main:
        reasons.append(REASON_NOT_MAIN)
    if not c.is_buy_box_winner:
        reasons.append(REASON_NOT_BUY_BOX)
    if c.condition != REQUIRED_CONDITION:
        reasons.append(REASON_NOT_NEW)
    if not math.isfinite(c.rank):
        reasons.append(REASON_NO_RANK)
    elif c.rank >= MAX_SALES_RANK:
        reasons.append(REASON_RANK_TOO_HIGH)
    if _normalize_availability(c.availability_type) not in AVAILABLE_NOW:
        reasons.append(REASON_NOT_AVAILABLE)
    return reasons
