# autoblog/domain/services/wordpress_svc.py
"""
WordPress publishing over the REST API (basic auth / application password).

    publish(article, products)
      1) resolve a category: existing one whose name appears in the title,
         else create one from the first two title words, else the default
      2) POST /wp-json/wp/v2/posts (leading <h1> stripped, status=publish)
      3) best effort: 2x2 composite of up to 4 product images uploaded to
         /wp-json/wp/v2/media and set as the post's featured_media
"""
from __future__ import annotations
import asyncio
import io
import logging
import re
from typing import List, Optional

import httpx
from PIL import Image, ImageOps, UnidentifiedImageError

from autoblog.core.errors import PublishError
from autoblog.domain.models.content import ACTIVITY_ARTICLE_PUBLISHED, ACTIVITY_PUBLISH_FAILED, Article
from autoblog.domain.models.product import ArticleProduct
from autoblog.domain.services.credentials import WordPressCredentials

logger = logging.getLogger(__name__)

FEATURED_WIDTH = 1200
FEATURED_HEIGHT = 630
MAX_FEATURED_IMAGES = 4

_H1_RE = re.compile(r"<h1[^>]*>.*?</h1>\s*", re.IGNORECASE | re.DOTALL)


def strip_h1(content: str) -> str:
    """WordPress renders the post title itself; drop the first <h1>."""
    return _H1_RE.sub("", content, count=1)


def category_name_from_title(title: str) -> str:
    return " ".join(title.split()[:2])


def compose_featured_image(images: List[bytes]) -> Optional[bytes]:
    """2x2 JPEG grid on a white background; unreadable images are skipped."""
    tiles = []
    for raw in images[:MAX_FEATURED_IMAGES]:
        try:
            tiles.append(Image.open(io.BytesIO(raw)).convert("RGB"))
        except (UnidentifiedImageError, OSError) as e:
            logger.warning("Skip unreadable product image: %s", e)
    if not tiles:
        return None

    cell_w, cell_h = FEATURED_WIDTH // 2, FEATURED_HEIGHT // 2
    canvas = Image.new("RGB", (FEATURED_WIDTH, FEATURED_HEIGHT), (255, 255, 255))
    for i, tile in enumerate(tiles):
        fitted = ImageOps.contain(tile, (cell_w, cell_h))
        left = (i % 2) * cell_w + (cell_w - fitted.width) // 2
        top = (i // 2) * cell_h + (cell_h - fitted.height) // 2
        canvas.paste(fitted, (left, top))

    buf = io.BytesIO()
    canvas.save(buf, format="JPEG", quality=85)
    return buf.getvalue()


class WordPressPublisher:
    def __init__(
        self,
        credentials: WordPressCredentials,
        *,
        client: Optional[httpx.AsyncClient] = None,
        default_category_id: int = 1,
        timeout_s: float = 30.0,
    ):
        self.creds = credentials
        self.default_category_id = default_category_id
        self.client = client or httpx.AsyncClient(
            auth=(credentials.username, credentials.password),
            timeout=timeout_s,
            follow_redirects=True,
        )
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.creds.base_url}/wp-json/wp/v2/{path.lstrip('/')}"

    async def test_connection(self) -> str:
        """Display name of the authenticated user. Raises PublishError when WordPress refuses or is unreachable."""
        try:
            resp = await self.client.get(self._url("users/me"))
        except httpx.HTTPError as e:
            raise PublishError(f"Failed to connect to WordPress: {e}") from e
        if resp.status_code >= 400:
            raise PublishError("Failed to connect to WordPress", status_code=resp.status_code)
        return resp.json().get("name", "")

    async def resolve_categories(self, title: str) -> List[int]:
        lowered = title.lower()
        try:
            resp = await self.client.get(self._url("categories"), params={"per_page": 100})
            resp.raise_for_status()
            for cat in resp.json():
                name = (cat.get("name") or "").strip().lower()
                if name and name in lowered:
                    return [int(cat["id"])]

            created = await self.client.post(self._url("categories"), json={"name": category_name_from_title(title)})
            created.raise_for_status()
            return [int(created.json()["id"])]
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning("Category resolution failed title=%r, using default: %s", title, e)
            return [self.default_category_id]

    async def _download(self, url: str) -> Optional[bytes]:
        try:
            resp = await self.client.get(url, auth=None)
            resp.raise_for_status()
            return resp.content
        except httpx.HTTPError as e:
            logger.warning("Image download failed url=%s: %s", url, e)
            return None

    async def set_featured_image(self, post_id: int, products: List[ArticleProduct]) -> Optional[int]:
        urls = [p.image_url for p in products if p.image_url][:MAX_FEATURED_IMAGES]
        if not urls:
            logger.info("No product images for post_id=%s, skipping featured image", post_id)
            return None
        images = [b for b in await asyncio.gather(*(self._download(u) for u in urls)) if b]
        composite = compose_featured_image(images)
        if composite is None:
            return None

        try:
            upload = await self.client.post(
                self._url("media"),
                content=composite,
                headers={
                    "Content-Type": "image/jpeg",
                    "Content-Disposition": "attachment; filename=header.jpg",
                },
            )
            upload.raise_for_status()
            media_id = int(upload.json()["id"])
            linked = await self.client.post(self._url(f"posts/{post_id}"), json={"featured_media": media_id})
            linked.raise_for_status()
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning("Featured image failed post_id=%s: %s", post_id, e)
            return None
        return media_id

    async def publish(self, article: Article, products: List[ArticleProduct]) -> int:
        """Create the post and return its WordPress id. Raises PublishError."""
        payload = {
            "title": article.title,
            "content": strip_h1(article.content),
            "status": "publish",
            "categories": await self.resolve_categories(article.title),
        }
        try:
            resp = await self.client.post(self._url("posts"), json=payload)
        except httpx.HTTPError as e:
            raise PublishError(f"WordPress request failed: {e}") from e
        if resp.status_code >= 400:
            raise PublishError(
                f"Failed to publish to WordPress: {resp.status_code} {resp.text[:300]}",
                status_code=resp.status_code,
            )
        post_id = int(resp.json()["id"])
        logger.info("Published article_id=%s wordpress_id=%s", article.id, post_id)

        await self.set_featured_image(post_id, products)
        return post_id


async def publish_article(
    article_id: str,
    *,
    articles,
    article_products,
    activities,
    publisher: WordPressPublisher,
) -> Article:
    """Publish a stored article and mark it 'published'. LookupError if unknown."""
    article = await articles.get(article_id)
    if article is None:
        raise LookupError(f"Article {article_id} not found")

    products = await article_products.by_article(article_id)
    try:
        wp_id = await publisher.publish(article, products)
    except PublishError as e:
        await activities.add(ACTIVITY_PUBLISH_FAILED, f'Failed to publish "{article.title}": {e}')
        raise

    await articles.update_status(article_id, "published", wordpress_id=wp_id)
    await activities.add(ACTIVITY_ARTICLE_PUBLISHED, f'Article "{article.title}" was published to WordPress')
    return article.model_copy(update={"status": "published", "wordpress_id": wp_id})
