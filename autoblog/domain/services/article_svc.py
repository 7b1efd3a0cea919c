# autoblog/domain/services/article_svc.py

from __future__ import annotations
from typing import List, Optional
import json
import re
import logging
from time import monotonic as _now

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, Field, ValidationError

from autoblog.core.config import Settings
from autoblog.core.errors import ArticleGenerationError
from autoblog.domain.models.product import ProductDetail
from autoblog.domain.services.prompts import (
    content_prompt,
    outline_prompt,
    outline_system_prompt,
    snippet_prompt,
)

logger = logging.getLogger(__name__)

SNIPPET_MAX_TOKENS = 150

# =============================================================================
#                               VALIDATION SCHEMA
# =============================================================================

class OutlineSection(BaseModel):
    heading: str = Field(..., min_length=1)
    asin: Optional[str] = None
    points: List[str] = Field(default_factory=list)

class Outline(BaseModel):
    """
    Expected LLM outline:
      {"title": "...", "sections": [{"heading": "...", "asin": "...", "points": [...]}]}
    """
    title: str = Field(..., min_length=1)
    sections: List[OutlineSection] = Field(default_factory=list)

class GeneratedArticle(BaseModel):
    title: str
    content: str
    snippet: str

    model_config = {"frozen": True}

# Regex to strip code fences (``` or ```json) from LLM output
_CODE_FENCE_RE = re.compile(r"^```(?:json|html)?\s*|\s*```$", re.MULTILINE)

def _strip_fences(s: str) -> str:
    """Remove ``` / ```json / ```html fences the LLM might add."""
    return _CODE_FENCE_RE.sub("", s).strip()

def parse_outline(json_text: str) -> Outline:
    """Parse and validate the outline. Raises ValueError on any issue."""
    try:
        raw = _strip_fences(json_text)
        return Outline.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Invalid outline JSON: {e}") from e

# =============================================================================
#                               LLM CALLS
# =============================================================================

class ArticleWriter:
    """
    Three-step generation: outline JSON -> HTML body -> snippet.
    `client` is any object with `chat.completions.create` (AsyncOpenAI in prod).
    """

    def __init__(
        self,
        client,
        *,
        model: str = "gpt-4o-mini",
        timeout_s: int = 120,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        max_retries: int = 2,
    ):
        self.client = client
        self.model = model
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max_retries

    @classmethod
    def from_settings(cls, settings: Settings, api_key: str) -> "ArticleWriter":
        return cls(
            AsyncOpenAI(api_key=api_key),
            model=settings.OPENAI_ARTICLE_MODEL,
            timeout_s=settings.openai_timeout_s,
            max_tokens=settings.article_max_tokens,
            temperature=settings.article_temperature,
        )

    async def _call(self, messages: List[dict], *, max_tokens: int, json_mode: bool = False) -> str:
        kwargs = {"response_format": {"type": "json_object"}} if json_mode else {}
        t0 = _now()
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=self.temperature,
                timeout=self.timeout_s,
                **kwargs,
            )
        except OpenAIError as e:
            raise ArticleGenerationError(f"OpenAI call failed: {e}") from e
        dt = _now() - t0
        u = getattr(resp, "usage", None)
        logger.info(
            "LLM call model=%s duration=%.3fs tokens(prompt=%s, completion=%s)",
            getattr(resp, "model", self.model), dt,
            getattr(u, "prompt_tokens", None), getattr(u, "completion_tokens", None),
        )
        return resp.choices[0].message.content or ""

    async def _outline_with_schema_retry(self, messages: List[dict]) -> Outline:
        """
        Ask for the outline JSON and validate strictly.
        On parse/validation error, retry with a stricter instruction and the JSON Schema.
        """
        schema = Outline.model_json_schema()
        for attempt in range(self.max_retries + 1):
            content = await self._call(messages, max_tokens=self.max_tokens, json_mode=True)
            try:
                return parse_outline(content)
            except ValueError as e:
                logger.warning("Outline rejected attempt=%s error=%s", attempt + 1, e)
                if attempt == self.max_retries:
                    raise ArticleGenerationError(
                        f"Outline invalid after {self.max_retries + 1} attempts: {e}"
                    ) from e
                messages = messages + [
                    {"role": "system",
                     "content": (
                         "Your previous response did not conform to the required JSON format. "
                         "You MUST return JSON that matches the provided JSON Schema exactly. "
                         "No prose, no code fences, no comments."
                     )},
                    {"role": "user",
                     "content": f"Validation error was:\n{e}\n\nJSON Schema:\n{json.dumps(schema)}"},
                ]
        raise ArticleGenerationError("Unexpected fall-through in outline retry")

    async def write(self, keyword: str, products: List[ProductDetail]) -> GeneratedArticle:
        if not products:
            raise ArticleGenerationError(f"No products to write about for keyword={keyword!r}")

        outline = await self._outline_with_schema_retry([
            {"role": "system", "content": outline_system_prompt()},
            {"role": "user", "content": outline_prompt(keyword, products)},
        ])
        logger.debug("Outline title=%r sections=%s", outline.title, len(outline.sections))

        body = await self._call(
            [{"role": "user", "content": content_prompt(outline.model_dump_json(), products)}],
            max_tokens=self.max_tokens,
        )
        body = _strip_fences(body)
        if not body:
            raise ArticleGenerationError(f"Empty article body for keyword={keyword!r}")

        snippet = await self._call(
            [{"role": "user", "content": snippet_prompt(outline.title)}],
            max_tokens=SNIPPET_MAX_TOKENS,
        )
        return GeneratedArticle(title=outline.title, content=body, snippet=snippet.strip())
