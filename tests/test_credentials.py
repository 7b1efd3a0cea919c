import pytest

from autoblog.core.config import Settings
from autoblog.core.errors import ConfigurationError
from autoblog.domain.models.content import ApiSettings
from autoblog.domain.services.credentials import (
    CatalogCredentials,
    resolve_catalog_credentials,
    resolve_openai_key,
    resolve_wordpress_credentials,
)

STORED = ApiSettings(
    amazon_partner_id="stored-20",
    amazon_access_key="STOREDKEY",
    amazon_secret_key="stored-secret",
    openai_api_key="sk-stored",
    wp_base_url="https://blog.example.com/",
    wp_username="editor",
    wp_password="app-pass",
)


def bare_settings(**kw):
    base = dict(
        AMAZON_PARTNER_ID=None, AMAZON_ACCESS_KEY=None, AMAZON_SECRET_KEY=None,
        OPENAI_API_KEY=None, WP_BASE_URL=None, WP_USERNAME=None, WP_PASSWORD=None,
    )
    base.update(kw)
    return Settings(_env_file=None, **base)


def test_explicit_credentials_win():
    explicit = CatalogCredentials(partner_tag="explicit-20", access_key="E", secret_key="S")
    got = resolve_catalog_credentials(bare_settings(AMAZON_PARTNER_ID="env-20"), STORED, explicit=explicit)
    assert got is explicit


def test_environment_beats_stored_settings():
    s = bare_settings(AMAZON_PARTNER_ID="env-20", AMAZON_ACCESS_KEY="ENVKEY", AMAZON_SECRET_KEY="env-secret")
    got = resolve_catalog_credentials(s, STORED)
    assert got == CatalogCredentials(partner_tag="env-20", access_key="ENVKEY", secret_key="env-secret")


def test_stored_settings_fill_the_gaps():
    got = resolve_catalog_credentials(bare_settings(AMAZON_PARTNER_ID="env-20"), STORED)
    assert got.partner_tag == "env-20"
    assert got.access_key == "STOREDKEY"


def test_blank_values_count_as_missing():
    with pytest.raises(ConfigurationError):
        resolve_catalog_credentials(bare_settings(AMAZON_PARTNER_ID="  "), ApiSettings())


def test_openai_key_resolution():
    assert resolve_openai_key(bare_settings(OPENAI_API_KEY="sk-env"), STORED) == "sk-env"
    assert resolve_openai_key(bare_settings(), STORED) == "sk-stored"
    with pytest.raises(ConfigurationError):
        resolve_openai_key(bare_settings())


def test_wordpress_base_url_is_normalised():
    creds = resolve_wordpress_credentials(bare_settings(), STORED)
    assert creds.base_url == "https://blog.example.com"
    with pytest.raises(ConfigurationError):
        resolve_wordpress_credentials(bare_settings())
