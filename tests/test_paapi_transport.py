import json
from datetime import datetime, timezone

import httpx
import pytest

from autoblog.core.errors import ConfigurationError, TransportFailure
from autoblog.domain.services.credentials import CatalogCredentials, resolve_catalog_credentials
from autoblog.domain.services.paapi_transport import PaapiTransport, sign_headers

from tests.fakes import no_sleep

CREDS = CatalogCredentials(partner_tag="test-20", access_key="AKIDEXAMPLE", secret_key="secret")

SEARCH_BODY = {
    "SearchResult": {
        "TotalResultCount": 1,
        "Items": [
            {
                "ASIN": "B0TEST0001",
                "ItemInfo": {"Title": {"DisplayValue": "Wireless Earbuds"}},
                "Offers": {"Listings": [{
                    "Availability": {"Type": "Now"},
                    "Condition": {"Value": "New"},
                    "Price": {"Amount": 29.99, "DisplayAmount": "$29.99"},
                }]},
            }
        ],
    }
}

DETAIL_BODY = {
    "ItemsResult": {
        "Items": [
            {
                "ASIN": "B0TEST0001",
                "ItemInfo": {
                    "Title": {"DisplayValue": "Wireless Earbuds"},
                    "Features": {"DisplayValues": ["Bluetooth 5.3", "30h battery"]},
                },
                "Images": {"Primary": {"Large": {"URL": "https://m.media-amazon.com/images/I/x.jpg"}}},
                "BrowseNodeInfo": {"WebsiteSalesRank": {"SalesRank": 321}},
                "Offers": {"Listings": [
                    {"IsBuyBoxWinner": False, "Condition": {"Value": "Used"}},
                    {
                        "IsBuyBoxWinner": True,
                        "Availability": {"Type": "Now"},
                        "Condition": {"Value": "New"},
                        "DeliveryInfo": {"IsPrimeEligible": True},
                        "Price": {"DisplayAmount": "$29.99"},
                    },
                ]},
            }
        ]
    }
}


def transport_with(handler, settings):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PaapiTransport(CREDS, settings, client=client, sleep=no_sleep)


def test_sign_headers_has_sigv4_fields():
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    headers = sign_headers(
        credentials=CREDS,
        host="webservices.amazon.com",
        region="us-east-1",
        path="/paapi5/searchitems",
        target="com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems",
        body=b"{}",
        now=now,
    )
    assert headers["x-amz-date"] == "20240102T030405Z"
    assert headers["x-amz-target"].endswith("SearchItems")
    assert headers["Authorization"].startswith(
        "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/20240102/us-east-1/ProductAdvertisingAPI/aws4_request"
    )
    assert "SignedHeaders=content-encoding;content-type;host;x-amz-date;x-amz-target" in headers["Authorization"]
    # deterministic for a fixed time and body
    assert sign_headers(
        credentials=CREDS, host="webservices.amazon.com", region="us-east-1",
        path="/paapi5/searchitems", target=headers["x-amz-target"], body=b"{}", now=now,
    ) == headers


@pytest.mark.asyncio
async def test_search_request_is_signed_and_parsed(settings):
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=SEARCH_BODY)

    resp = await transport_with(handler, settings).send(
        "search", {"keyword": "wireless earbuds", "page": 2, "page_size": 10, "filters": {"MinPrice": 1000}}
    )

    assert seen["url"] == "https://webservices.amazon.com/paapi5/searchitems"
    assert "Authorization" in seen["headers"]
    assert seen["headers"]["x-amz-target"].endswith("SearchItems")
    assert seen["body"]["Keywords"] == "wireless earbuds"
    assert seen["body"]["ItemPage"] == 2
    assert seen["body"]["PartnerTag"] == "test-20"
    assert seen["body"]["MinPrice"] == 1000

    [item] = resp["items"]
    assert item.id == "B0TEST0001"
    assert item.has_price is True
    assert item.availability_type == "Now"


@pytest.mark.asyncio
async def test_get_details_parses_buy_box_listing(settings):
    def handler(request):
        assert json.loads(request.content)["ItemIds"] == ["B0TEST0001"]
        return httpx.Response(200, json=DETAIL_BODY)

    resp = await transport_with(handler, settings).send("getDetails", {"ids": ["B0TEST0001"]})

    [d] = resp["items"]
    assert d.title == "Wireless Earbuds"
    assert d.description == "Bluetooth 5.3 30h battery"
    assert d.is_buy_box_winner is True
    assert d.is_prime_eligible is True
    assert d.condition == "new"
    assert d.availability_type == "NOW"
    assert d.sales_rank == 321
    assert d.price == "$29.99"
    assert d.affiliate_link == "https://www.amazon.com/dp/B0TEST0001?tag=test-20"


@pytest.mark.asyncio
async def test_throttled_request_is_retried(settings):
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) == 1:
            return httpx.Response(429, json={"Errors": [{"Code": "TooManyRequests", "Message": "slow down"}]})
        return httpx.Response(200, json=SEARCH_BODY)

    resp = await transport_with(handler, settings).send("search", {"keyword": "x", "page": 1})

    assert len(calls) == 2
    assert len(resp["items"]) == 1


@pytest.mark.asyncio
async def test_failure_after_retries_carries_status_and_page(settings):
    def handler(request):
        return httpx.Response(503, text="unavailable")

    with pytest.raises(TransportFailure) as exc:
        await transport_with(handler, settings).send("search", {"keyword": "x", "page": 3})

    assert exc.value.status_code == 503
    assert exc.value.page == 3


@pytest.mark.asyncio
async def test_client_error_is_not_retried(settings):
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(400, json={"Errors": [{"Code": "InvalidParameterValue", "Message": "bad"}]})

    with pytest.raises(TransportFailure) as exc:
        await transport_with(handler, settings).send("getDetails", {"ids": ["A", "B"]})

    assert len(calls) == 1
    assert exc.value.ids == ["A", "B"]
    assert "InvalidParameterValue" in str(exc.value)


@pytest.mark.asyncio
async def test_no_results_is_an_empty_page(settings):
    def handler(request):
        return httpx.Response(404, json={"Errors": [{"Code": "NoResults", "Message": "none"}]})

    resp = await transport_with(handler, settings).send("search", {"keyword": "zzzz", "page": 1})
    assert resp["items"] == []


def test_missing_credentials_raise_configuration_error(settings):
    bare = settings.model_copy(update={"AMAZON_ACCESS_KEY": None, "AMAZON_SECRET_KEY": None})
    with pytest.raises(ConfigurationError) as exc:
        resolve_catalog_credentials(bare)
    assert "access key" in str(exc.value)
    assert "secret key" in str(exc.value)


@pytest.mark.asyncio
async def test_sends_share_one_client_and_owned_client_is_closed(settings):
    transport = PaapiTransport(CREDS, settings, sleep=no_sleep)
    client = transport.client

    async with transport:
        assert transport.client is client
    assert client.is_closed


@pytest.mark.asyncio
async def test_injected_client_is_left_open(settings):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=SEARCH_BODY)

    transport = transport_with(handler, settings)
    async with transport:
        await transport.send("search", {"keyword": "earbuds", "page": 1})
        await transport.send("search", {"keyword": "earbuds", "page": 2})

    assert len(calls) == 2
    assert not transport.client.is_closed
