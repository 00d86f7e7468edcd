"""
Pytest configuration and fixtures
"""

import os

# Tests never talk to Keycloak or Redis
os.environ.setdefault("AUTH_AUTH_ENABLED", "false")
os.environ.setdefault("CACHE_PRESENCE_ENABLED", "false")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402

from taskmarket.api.config import (  # noqa: E402
    get_api_settings,
    get_auth_settings,
    get_cache_settings,
    get_database_settings,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Re-read settings from the environment in every test"""
    for getter in (get_auth_settings, get_database_settings, get_cache_settings, get_api_settings):
        getter.cache_clear()
    yield
    for getter in (get_auth_settings, get_database_settings, get_cache_settings, get_api_settings):
        getter.cache_clear()
