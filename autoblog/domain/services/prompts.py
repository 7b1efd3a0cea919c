from typing import List
from autoblog.domain.models.product import ProductDetail

STYLE_GUIDELINES = (
    "- Vary sentence length: mostly short sentences, then a longer one to land the point\n"
    "- Grade 6 reading level, warm and conversational tone\n"
    "- Start directly with HTML (<h2>, <p>), no preamble or meta commentary\n"
    "- No greetings, never mention yourself or the writing process\n"
    "- Never mention checking prices or affiliate links\n"
    "- Minimal emoji, only if truly needed\n"
    "- Use the main keyword naturally, matching the reader's search intent"
)

OUTLINE_FORMAT = '{"title":"<article title>","sections":[{"heading":"<product title>","asin":"<ASIN>","points":["..."]}]}'


def outline_system_prompt() -> str:
    return "You plan product round-up blog posts. Return strict JSON only."


def outline_prompt(keyword: str, products: List[ProductDetail]) -> str:
    lines = "\n".join(f"- {p.title} (ASIN: {p.id})" for p in products)
    return (
        f"Plan a helpful, informative and engaging blog post about: {keyword}.\n\n"
        "The outline MUST use these exact Amazon products as the main H2 sections, in this order:\n"
        f"{lines}\n\n"
        "RULES:\n" + STYLE_GUIDELINES + "\n\n"
        "OUTPUT FORMAT: " + OUTLINE_FORMAT
    )


def content_prompt(outline_json: str, products: List[ProductDetail]) -> str:
    links = "\n".join(f"- {p.title}: {p.affiliate_link}" for p in products)
    return (
        f"Write a detailed HTML article using this outline: {outline_json}\n\n"
        "Include a short review for each product and link its H2 heading to:\n"
        f"{links}\n\n"
        "RULES:\n" + STYLE_GUIDELINES
    )


def snippet_prompt(title: str) -> str:
    return f'Write a catchy, 1-2 sentence excerpt for this article title: "{title}"'
