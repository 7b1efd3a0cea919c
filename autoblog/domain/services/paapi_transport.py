# autoblog/domain/services/paapi_transport.py
"""
Signer/Transport for the Amazon Product Advertising API 5.0.

Interface used by the catalog client (nothing else knows about signing):
    await transport.send("search", {"keyword", "page", "page_size", "filters"}) -> {"items": [SearchCandidate]}
    await transport.send("getDetails", {"ids": [...]})                          -> {"items": [ProductDetail]}
Any non-success outcome raises TransportFailure.

Requests are signed with AWS Signature V4 (HMAC-SHA256) and retried with
exponential backoff on throttling / transient server errors.
"""
from __future__ import annotations
import asyncio
import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

import httpx

from autoblog.core.config import Settings
from autoblog.core.errors import TransportFailure
from autoblog.domain.services.constants import (
    DETAIL_RESOURCES,
    OP_GET_DETAILS,
    OP_SEARCH,
    SEARCH_RESOURCES,
)
from autoblog.domain.services.credentials import CatalogCredentials
from autoblog.domain.services.paapi_parser import parse_detail_item, parse_items, parse_search_item
from autoblog.domain.services.pacing import backoff_delay

logger = logging.getLogger(__name__)

SERVICE = "ProductAdvertisingAPI"
ALGORITHM = "AWS4-HMAC-SHA256"
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

# operation -> (path, x-amz-target)
_ENDPOINTS = {
    OP_SEARCH: ("/paapi5/searchitems", "com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems"),
    OP_GET_DETAILS: ("/paapi5/getitems", "com.amazon.paapi5.v1.ProductAdvertisingAPIv1.GetItems"),
}


class CatalogTransport(Protocol):
    async def send(self, operation: str, payload: Dict[str, Any]) -> Dict[str, Any]: ...


# =============================================================================
#                               SIGV4 SIGNING
# =============================================================================

def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def sign_headers(
    *,
    credentials: CatalogCredentials,
    host: str,
    region: str,
    path: str,
    target: str,
    body: bytes,
    now: Optional[datetime] = None,
) -> Dict[str, str]:
    """Return the full header set (including Authorization) for one POST."""
    now = now or datetime.now(timezone.utc)
    amz_date = now.strftime("%Y%m%dT%H%M%SZ")
    date_stamp = amz_date[:8]

    headers = {
        "content-encoding": "amz-1.0",
        "content-type": "application/json; charset=utf-8",
        "host": host,
        "x-amz-date": amz_date,
        "x-amz-target": target,
    }
    signed_headers = ";".join(sorted(headers))
    canonical_headers = "".join(f"{k}:{headers[k]}\n" for k in sorted(headers))
    canonical_request = "\n".join([
        "POST",
        path,
        "",
        canonical_headers,
        signed_headers,
        hashlib.sha256(body).hexdigest(),
    ])
    scope = f"{date_stamp}/{region}/{SERVICE}/aws4_request"
    string_to_sign = "\n".join([
        ALGORITHM,
        amz_date,
        scope,
        hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
    ])

    k_date = _hmac(f"AWS4{credentials.secret_key}".encode("utf-8"), date_stamp)
    k_signing = _hmac(_hmac(_hmac(k_date, region), SERVICE), "aws4_request")
    signature = hmac.new(k_signing, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

    headers["Authorization"] = (
        f"{ALGORITHM} Credential={credentials.access_key}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )
    return headers


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return (resp.text or "")[:300] or resp.reason_phrase
    errors = data.get("Errors") if isinstance(data, dict) else None
    if errors:
        return "; ".join(f"{e.get('Code')}: {e.get('Message')}" for e in errors)
    return json.dumps(data)[:300]


# =============================================================================
#                               TRANSPORT
# =============================================================================

class PaapiTransport:
    def __init__(
        self,
        credentials: CatalogCredentials,
        settings: Settings,
        *,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.credentials = credentials
        self.settings = settings
        # one pooled client per transport; keep-alive spans pages and batches
        self.client = client or httpx.AsyncClient(timeout=settings.catalog_timeout_s)
        self._owns_client = client is None
        self._sleep = sleep

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "PaapiTransport":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # ----- payload mapping ----------------------------------------------------

    def _body(self, operation: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        common = {
            "PartnerTag": self.credentials.partner_tag,
            "PartnerType": "Associates",
            "Marketplace": self.settings.amazon_marketplace,
        }
        if operation == OP_SEARCH:
            body = {
                **common,
                "Keywords": payload["keyword"],
                "ItemPage": int(payload.get("page", 1)),
                "ItemCount": int(payload.get("page_size", self.settings.catalog_page_size)),
                "Condition": "New",
                "SearchIndex": "All",
                "Resources": SEARCH_RESOURCES,
            }
            body.update(payload.get("filters") or {})
            return body
        if operation == OP_GET_DETAILS:
            return {**common, "ItemIds": list(payload["ids"]), "Resources": DETAIL_RESOURCES}
        raise ValueError(f"Unknown catalog operation: {operation}")

    def _parse(self, operation: str, data: Dict[str, Any]) -> Dict[str, Any]:
        errors = data.get("Errors") or []
        for e in errors:
            logger.warning("paapi %s partial error code=%s msg=%s", operation, e.get("Code"), e.get("Message"))
        if operation == OP_SEARCH:
            raw = (data.get("SearchResult") or {}).get("Items") or []
            total = (data.get("SearchResult") or {}).get("TotalResultCount")
            return {"items": parse_items(raw, parse_search_item), "total": total}
        raw = (data.get("ItemsResult") or {}).get("Items") or []
        items = parse_items(
            raw,
            parse_detail_item,
            partner_tag=self.credentials.partner_tag,
            base_url=self.settings.amazon_product_base_url,
        )
        return {"items": items}

    # ----- send ---------------------------------------------------------------

    async def send(self, operation: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if operation not in _ENDPOINTS:
            raise ValueError(f"Unknown catalog operation: {operation}")
        path, target = _ENDPOINTS[operation]
        body = json.dumps(self._body(operation, payload), separators=(",", ":")).encode("utf-8")
        url = f"https://{self.settings.amazon_host}{path}"
        page = payload.get("page") if operation == OP_SEARCH else None
        ids = payload.get("ids") or ()

        return await self._send_with_retry(operation, url, path, target, body, page, ids)

    async def _send_with_retry(self, operation, url, path, target, body, page, ids):
        max_retries = max(0, self.settings.catalog_max_retries)
        for attempt in range(max_retries + 1):
            headers = sign_headers(
                credentials=self.credentials,
                host=self.settings.amazon_host,
                region=self.settings.amazon_region,
                path=path,
                target=target,
                body=body,
            )
            try:
                resp = await self.client.post(url, content=body, headers=headers, timeout=self.settings.catalog_timeout_s)
            except httpx.RequestError as e:
                # Timeouts land here too: they fail this page/batch only
                if attempt < max_retries:
                    delay = backoff_delay(attempt, self.settings.catalog_retry_backoff)
                    logger.warning("paapi %s network error, retry in %.1fs (attempt %d/%d): %s",
                                   operation, delay, attempt + 1, max_retries, e)
                    await self._sleep(delay)
                    continue
                raise TransportFailure(operation, f"network error: {e}", page=page, ids=ids) from e

            if resp.status_code in RETRY_STATUS_CODES and attempt < max_retries:
                delay = backoff_delay(attempt, self.settings.catalog_retry_backoff)
                logger.warning("paapi %s status=%s, backing off %.1fs (attempt %d/%d)",
                               operation, resp.status_code, delay, attempt + 1, max_retries)
                await self._sleep(delay)
                continue

            if resp.status_code == 404 and operation == OP_SEARCH and "NoResults" in resp.text:
                # PA-API answers an empty search with 404/NoResults
                logger.info("paapi search page=%s no results", page)
                return {"items": [], "total": 0}

            if resp.status_code >= 400:
                raise TransportFailure(
                    operation, _error_message(resp), status_code=resp.status_code, page=page, ids=ids,
                )

            try:
                data = resp.json()
            except ValueError as e:
                raise TransportFailure(operation, f"invalid JSON body: {e}", status_code=resp.status_code,
                                       page=page, ids=ids) from e
            return self._parse(operation, data if isinstance(data, dict) else {})

        raise RuntimeError("Unexpected fall-through in PaapiTransport._send_with_retry")
