# autoblog/domain/services/paapi_parser.py
"""
PA-API 5.0 item JSON -> our product models.

SearchItems hits become SearchCandidate (pre-filter fields only);
GetItems hits become ProductDetail (everything the ranking reads).
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from autoblog.domain.models.product import ProductDetail, SearchCandidate

logger = logging.getLogger(__name__)


def _deep_get(d: Any, *keys: str):
    """Safe nested lookup; returns None as soon as a level is missing."""
    for key in keys:
        if not isinstance(d, dict):
            return None
        d = d.get(key)
    return d


def _listing(item: Dict[str, Any]) -> Dict[str, Any]:
    """The buy-box listing when there is one, else the first listing."""
    listings = _deep_get(item, "Offers", "Listings") or []
    if not isinstance(listings, list) or not listings:
        return {}
    for lst in listings:
        if isinstance(lst, dict) and lst.get("IsBuyBoxWinner"):
            return lst
    return listings[0] if isinstance(listings[0], dict) else {}


def _price(listing: Dict[str, Any]) -> Optional[str]:
    price = listing.get("Price") or {}
    if price.get("DisplayAmount"):
        return str(price["DisplayAmount"])
    if price.get("Amount") is not None:
        return str(price["Amount"])
    return None


def _sales_rank(item: Dict[str, Any]) -> Optional[int]:
    rank = _deep_get(item, "BrowseNodeInfo", "WebsiteSalesRank", "SalesRank")
    try:
        return int(rank) if rank is not None else None
    except (TypeError, ValueError):
        return None


def affiliate_link(asin: str, partner_tag: str, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/{asin}?tag={partner_tag}"


def parse_search_item(item: Dict[str, Any]) -> Optional[SearchCandidate]:
    asin = item.get("ASIN")
    if not asin:
        return None
    listing = _listing(item)
    return SearchCandidate(
        id=asin,
        raw_title=_deep_get(item, "ItemInfo", "Title", "DisplayValue") or "",
        availability_type=_deep_get(listing, "Availability", "Type"),
        has_price=_price(listing) is not None,
        condition=_deep_get(listing, "Condition", "Value"),
    )


def parse_detail_item(item: Dict[str, Any], *, partner_tag: str, base_url: str) -> Optional[ProductDetail]:
    asin = item.get("ASIN")
    if not asin:
        return None
    listing = _listing(item)
    features = _deep_get(item, "ItemInfo", "Features", "DisplayValues") or []
    return ProductDetail(
        id=asin,
        title=_deep_get(item, "ItemInfo", "Title", "DisplayValue") or "",
        description=" ".join(str(f).strip() for f in features if f),
        image_url=_deep_get(item, "Images", "Primary", "Large", "URL") or "",
        price=_price(listing),
        is_buy_box_winner=bool(listing.get("IsBuyBoxWinner", False)),
        is_prime_eligible=bool(_deep_get(listing, "DeliveryInfo", "IsPrimeEligible") or False),
        condition=str(_deep_get(listing, "Condition", "Value") or "").lower(),
        availability_type=str(_deep_get(listing, "Availability", "Type") or "").upper(),
        sales_rank=_sales_rank(item),
        affiliate_link=affiliate_link(asin, partner_tag, base_url),
    )


def parse_items(raw_items: List[Dict[str, Any]], parse, **kwargs) -> list:
    out = []
    for raw in raw_items or []:
        try:
            parsed = parse(raw, **kwargs)
        except (TypeError, ValueError) as e:
            logger.warning("paapi parse skipped asin=%s err=%s", (raw or {}).get("ASIN"), e)
            continue
        if parsed is not None:
            out.append(parsed)
    return out
