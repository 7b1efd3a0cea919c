# autoblog/core/errors.py
from __future__ import annotations
from typing import Dict, List, Optional, Sequence


class ConfigurationError(RuntimeError):
    """Required credentials or identifiers are missing. Never retried."""


class TransportFailure(RuntimeError):
    """
    One catalog request (a search page or a detail batch) failed.
    Carries enough context to answer "which page / which ids".
    """
    def __init__(
        self,
        operation: str,
        reason: str,
        *,
        status_code: Optional[int] = None,
        page: Optional[int] = None,
        ids: Sequence[str] = (),
    ):
        self.operation = operation
        self.reason = reason
        self.status_code = status_code
        self.page = page
        self.ids = list(ids)
        where = f" page={page}" if page is not None else ""
        if self.ids:
            where += f" ids={','.join(self.ids)}"
        status = f" status={status_code}" if status_code is not None else ""
        super().__init__(f"{operation} failed{status}{where}: {reason}")


class CatalogSearchError(RuntimeError):
    """Base for the expected 'nothing to recommend' outcomes of a search."""
    def __init__(self, keyword: str, message: str):
        self.keyword = keyword
        super().__init__(message)


class NoCandidatesFound(CatalogSearchError):
    def __init__(self, keyword: str):
        super().__init__(keyword, f'No products found for keyword "{keyword}"')


class NoEligibleCandidates(CatalogSearchError):
    def __init__(self, keyword: str, rejections: Dict[str, List[str]]):
        self.rejections = rejections
        super().__init__(
            keyword,
            f'No qualifying products for keyword "{keyword}" ({len(rejections)} rejected)',
        )


class ArticleGenerationError(RuntimeError):
    """The text-generation API returned unusable output."""


class PublishError(RuntimeError):
    """The content-management backend rejected a publish request."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
