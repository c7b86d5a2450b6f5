"""Unit tests for core/config.py -- SECRET_KEY policy and defaults.

Settings() is constructed directly rather than through get_settings() so the
cached singleton the app was built with is never disturbed.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DEBUG", "SECRET_KEY", "TOKEN_EXPIRE_SECONDS", "BCRYPT_ROUNDS", "LOGIN_RATE_LIMIT"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_production_requires_secret_key(clean_env):
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None)


def test_debug_generates_secret_key(clean_env):
    clean_env.setenv("DEBUG", "true")
    settings = Settings(_env_file=None)
    assert len(settings.secret_key) >= 32


def test_short_secret_key_rejected(clean_env):
    clean_env.setenv("SECRET_KEY", "too-short")
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(_env_file=None)


def test_explicit_secret_key_kept(clean_env):
    key = "k" * 40
    clean_env.setenv("SECRET_KEY", key)
    assert Settings(_env_file=None).secret_key == key


def test_defaults(clean_env):
    clean_env.setenv("DEBUG", "true")
    settings = Settings(_env_file=None)
    assert settings.token_expire_seconds == 3600
    assert settings.bcrypt_rounds == 12
    assert settings.login_rate_limit == "10/minute"
    assert settings.guest_logout_redirect == "/"
    assert settings.auth_db_url.startswith("sqlite:///")


def test_bcrypt_rounds_bounds(clean_env):
    clean_env.setenv("DEBUG", "true")
    clean_env.setenv("BCRYPT_ROUNDS", "3")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_token_lifetime_must_be_positive(clean_env):
    clean_env.setenv("DEBUG", "true")
    clean_env.setenv("TOKEN_EXPIRE_SECONDS", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
