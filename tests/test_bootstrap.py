"""
tests/test_bootstrap.py -- Tests for first-run admin creation (auth.bootstrap).

Covers:
  - empty store + ADMIN_PASSWORD -> one admin created and able to log in
  - a padded ADMIN_USERNAME is stored trimmed
  - empty store without ADMIN_PASSWORD -> nothing created
  - non-empty store -> nothing created, even with ADMIN_PASSWORD
"""

from __future__ import annotations

from auth.bootstrap import ensure_default_admin
from auth.models import Role
from auth.service import AuthService
from core.config import Settings

KEY = "bootstrap-test-secret-key-0123456789ab"


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, secret_key=KEY, **overrides)


def test_creates_admin_on_empty_store(service: AuthService) -> None:
    created = ensure_default_admin(service, _settings(admin_username="boss", admin_password="bosspass1"))
    assert created is not None
    assert created.username == "boss"
    assert created.role is Role.ADMIN

    _, user = service.login("boss", "bosspass1")
    assert user.id == created.id


def test_skips_without_password(service: AuthService) -> None:
    assert ensure_default_admin(service, _settings(admin_password="")) is None
    assert service.store.count_users() == 0


def test_skips_when_users_exist(service: AuthService) -> None:
    service.register("alice", "alice@example.com", "secret1")
    assert ensure_default_admin(service, _settings(admin_password="bosspass1")) is None
    assert service.store.count_by_role()[Role.ADMIN] == 0


def test_admin_username_is_trimmed(service: AuthService) -> None:
    created = ensure_default_admin(service, _settings(admin_username="boss ", admin_password="bosspass1"))
    assert created.username == "boss"
    assert service.store.get_by_username("boss ") is None
    _, user = service.login("boss", "bosspass1")
    assert user.id == created.id
