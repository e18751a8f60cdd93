"""
tests/test_config.py -- Unit tests for core.config.Settings.

Settings() is constructed directly (not via get_settings()) so each test sees
its own monkeypatched environment without clearing the lru_cache.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings

GOOD_KEY = "k" * 40


def test_production_requires_secret_key(monkeypatch) -> None:
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None)


def test_debug_generates_secret_key(monkeypatch) -> None:
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    settings = Settings(_env_file=None)
    assert len(settings.secret_key) >= 32


def test_short_secret_key_rejected(monkeypatch) -> None:
    monkeypatch.setenv("SECRET_KEY", "too-short")
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(_env_file=None)


def test_defaults(monkeypatch) -> None:
    monkeypatch.setenv("SECRET_KEY", GOOD_KEY)
    for name in ("BCRYPT_ROUNDS", "TOKEN_EXPIRE_SECONDS", "JWT_ALGORITHM", "ADMIN_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.bcrypt_rounds == 12
    assert settings.token_expire_seconds == 3600
    assert settings.jwt_algorithm == "HS256"
    assert settings.admin_password == ""


def test_jwt_algorithm_normalized_and_restricted(monkeypatch) -> None:
    monkeypatch.setenv("SECRET_KEY", GOOD_KEY)
    monkeypatch.setenv("JWT_ALGORITHM", "hs512")
    assert Settings(_env_file=None).jwt_algorithm == "HS512"

    monkeypatch.setenv("JWT_ALGORITHM", "none")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize("rounds", ["4", "20"])
def test_bcrypt_rounds_bounds(monkeypatch, rounds: str) -> None:
    monkeypatch.setenv("SECRET_KEY", GOOD_KEY)
    monkeypatch.setenv("BCRYPT_ROUNDS", rounds)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_list_settings_parse_from_json_env(monkeypatch) -> None:
    monkeypatch.setenv("SECRET_KEY", GOOD_KEY)
    monkeypatch.setenv("ALLOWED_HOSTS", '["api.example.org"]')
    assert Settings(_env_file=None).allowed_hosts == ["api.example.org"]
