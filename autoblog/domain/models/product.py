from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class SearchCandidate(BaseModel):
    """Raw SearchItems hit, only good enough for the cheap pre-filter."""
    id: str
    raw_title: str = ""
    availability_type: Optional[str] = None
    has_price: bool = False
    condition: Optional[str] = None

    model_config = {"frozen": True}  # immuable = safe

class ProductDetail(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    image_url: str = ""
    price: Optional[str] = None
    is_buy_box_winner: bool = False
    is_prime_eligible: bool = False
    condition: str = ""
    availability_type: str = ""
    sales_rank: Optional[int] = None
    affiliate_link: str = ""

    model_config = {"frozen": True}  # cached detail is never mutated

class ScoredCandidate(ProductDetail):
    score: int = Field(ge=0)
    is_main: bool
    # +inf when the catalog has no rank, so it sorts last
    rank: float = float("inf")

class ArticleProduct(BaseModel):
    article_id: str
    asin: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    affiliate_link: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_detail(cls, article_id: str, detail: ProductDetail) -> "ArticleProduct":
        return cls(
            article_id=article_id,
            asin=detail.id,
            title=detail.title,
            description=detail.description or None,
            image_url=detail.image_url or None,
            affiliate_link=detail.affiliate_link,
        )

class ProductSearchResult(BaseModel):
    keyword: str
    items: List[ScoredCandidate]
    count: int
    model_config = {"frozen": True}
