import httpx
import pytest
from fastapi.testclient import TestClient

from autoblog.api.deps import catalog_client, wordpress_publisher
from autoblog.api.v1.routers.settings import mask, to_out
from autoblog.domain.models.content import ApiSettings
from autoblog.domain.services.catalog_svc import CatalogClient
from autoblog.domain.services.credentials import WordPressCredentials
from autoblog.domain.services.wordpress_svc import WordPressPublisher
from autoblog.main import app

from tests.fakes import FakeCache, FakeTransport, detail, hit, no_sleep


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_catalog(transport):
    app.dependency_overrides[catalog_client] = lambda: CatalogClient(
        transport, FakeCache(), min_interval=0.0, sleep=no_sleep
    )


def test_product_search_preview(client):
    use_catalog(FakeTransport(
        pages={1: [hit("A", "Security Camera"), hit("B", "Camera")]},
        details={"A": detail("A", "Security Camera", rank=None), "B": detail("B", "Camera", rank=20)},
    ))

    resp = client.get("/products/search", params={"keyword": "camera", "count": 2})

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["items"][0]["id"] == "B"
    assert body["items"][0]["affiliate_link"].endswith("?tag=test-20")


def test_product_search_no_eligible_returns_rejections(client):
    use_catalog(FakeTransport(pages={1: [hit("A", "Camera")]}, details={"A": detail("A", "Camera", buy_box=False)}))

    resp = client.get("/products/search", params={"keyword": "camera"})

    assert resp.status_code == 404
    assert resp.json()["detail"]["rejections"] == {"A": ["not_buy_box_winner"]}


def test_product_search_no_candidates(client):
    use_catalog(FakeTransport(pages={}))
    assert client.get("/products/search", params={"keyword": "camera"}).status_code == 404


def test_product_search_requires_keyword(client):
    use_catalog(FakeTransport())
    assert client.get("/products/search").status_code == 422


def test_settings_secrets_are_masked():
    out = to_out(ApiSettings(amazon_partner_id="tag-20", amazon_secret_key="abcdefghijkl", wp_password="abc"))
    assert out.amazon_partner_id == "tag-20"
    assert out.amazon_secret_key == "********ijkl"
    assert out.wp_password == "****"
    assert out.openai_api_key is None
    assert mask("") == ""


def use_wordpress(handler):
    creds = WordPressCredentials(base_url="https://blog.example.com", username="editor", password="app-pass")
    app.dependency_overrides[wordpress_publisher] = lambda: WordPressPublisher(
        creds, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


def test_wordpress_connection_check(client):
    use_wordpress(lambda request: httpx.Response(200, json={"name": "Editor Jane"}))

    resp = client.post("/settings/wordpress/test")

    assert resp.status_code == 200
    assert resp.json() == {"connected": True, "user": "Editor Jane"}


def test_wordpress_connection_check_reports_rejection(client):
    use_wordpress(lambda request: httpx.Response(401, json={}))
    assert client.post("/settings/wordpress/test").status_code == 502
