# autoblog/domain/services/credentials.py
"""
Credential resolution for the outbound integrations.

Each integration resolves its credentials ONCE, at construction time, in this order:
  1) explicit values passed by the caller
  2) environment / .env file (pydantic-settings `Settings`)
  3) the stored `api_settings` document saved through the settings endpoint
Missing values raise ConfigurationError immediately.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from autoblog.core.config import Settings
from autoblog.core.errors import ConfigurationError
from autoblog.domain.models.content import ApiSettings


def _first(*values: Optional[str]) -> Optional[str]:
    for v in values:
        if v and str(v).strip():
            return str(v).strip()
    return None


@dataclass(frozen=True)
class CatalogCredentials:
    partner_tag: str
    access_key: str
    secret_key: str


@dataclass(frozen=True)
class WordPressCredentials:
    base_url: str
    username: str
    password: str


def resolve_catalog_credentials(
    settings: Settings,
    stored: Optional[ApiSettings] = None,
    *,
    explicit: Optional[CatalogCredentials] = None,
) -> CatalogCredentials:
    if explicit is not None:
        return explicit
    stored = stored or ApiSettings()
    partner = _first(settings.AMAZON_PARTNER_ID, stored.amazon_partner_id)
    access = _first(settings.AMAZON_ACCESS_KEY, stored.amazon_access_key)
    secret = _first(settings.AMAZON_SECRET_KEY, stored.amazon_secret_key)
    missing = [n for n, v in (("partner id", partner), ("access key", access), ("secret key", secret)) if not v]
    if missing:
        raise ConfigurationError(f"Amazon API credentials missing: {', '.join(missing)}")
    return CatalogCredentials(partner_tag=partner, access_key=access, secret_key=secret)


def resolve_openai_key(settings: Settings, stored: Optional[ApiSettings] = None) -> str:
    key = _first(settings.OPENAI_API_KEY, (stored or ApiSettings()).openai_api_key)
    if not key:
        raise ConfigurationError("OpenAI API key not configured")
    return key


def resolve_wordpress_credentials(
    settings: Settings,
    stored: Optional[ApiSettings] = None,
) -> WordPressCredentials:
    stored = stored or ApiSettings()
    base = _first(settings.WP_BASE_URL, stored.wp_base_url)
    user = _first(settings.WP_USERNAME, stored.wp_username)
    pwd = _first(settings.WP_PASSWORD, stored.wp_password)
    if not (base and user and pwd):
        raise ConfigurationError("WordPress credentials not configured")
    return WordPressCredentials(base_url=base.rstrip("/"), username=user, password=pwd)
