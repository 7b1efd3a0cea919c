"""Pytest fixtures shared by the catalog and pipeline tests."""

import pytest

from autoblog.core.config import Settings


@pytest.fixture
def settings():
    """Settings built from explicit values only (no .env file)."""
    return Settings(
        _env_file=None,
        AMAZON_PARTNER_ID="test-20",
        AMAZON_ACCESS_KEY="AKIDEXAMPLE",
        AMAZON_SECRET_KEY="secret",
        OPENAI_API_KEY="sk-test",
        catalog_retry_backoff=0.01,
    )
