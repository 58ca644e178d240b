"""Unit tests for core/config.py -- SECRET_KEY and token lifetime validation."""

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_debug_generates_secret_key() -> None:
    settings = Settings(debug=True, secret_key="")
    assert len(settings.secret_key) >= 32


def test_production_requires_secret_key() -> None:
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(debug=False, secret_key="")


def test_short_secret_key_rejected() -> None:
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(debug=True, secret_key="too-short")


def test_non_positive_token_lifetime_rejected() -> None:
    with pytest.raises(ValidationError, match="TOKEN_EXPIRE_SECONDS"):
        Settings(debug=True, secret_key="x" * 32, token_expire_seconds=0)


def test_explicit_values_are_kept() -> None:
    settings = Settings(debug=False, secret_key="x" * 40, token_expire_seconds=60, seed_demo_users=True)
    assert settings.secret_key == "x" * 40
    assert settings.token_expire_seconds == 60
    assert settings.seed_demo_users is True
