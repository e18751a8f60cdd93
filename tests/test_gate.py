"""
tests/test_gate.py -- Unit tests for auth.gate.

Covers:
  - authenticate(): missing, expired and forged tokens all raise Unauthorized
    with the same message; a good token yields its claims
  - authorize(): admin passes everything, user passes only USER routes
  - guard_self_demotion() / guard_self_deletion()
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from auth.errors import Forbidden, SelfDeletion, SelfDemotion, Unauthorized
from auth.gate import authenticate, authorize, guard_self_deletion, guard_self_demotion, is_permitted
from auth.models import Role, SubjectClaims, User, UserPatch
from auth.tokens import TokenCodec

ADMIN = SubjectClaims(id=1, username="root", role=Role.ADMIN)
USER = SubjectClaims(id=2, username="bob", role=Role.USER)


def _user(user_id: int, role: Role) -> User:
    return User(id=user_id, username=f"u{user_id}", email=f"u{user_id}@example.com", hashed_password="x", role=role)


class TestAuthenticate:
    def test_missing_token(self, codec: TokenCodec) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            authenticate(codec, None)
        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    def test_valid_token(self, codec: TokenCodec) -> None:
        assert authenticate(codec, codec.issue(USER)) == USER

    def test_expired_and_forged_tokens_look_the_same(self, codec: TokenCodec) -> None:
        expired = codec.issue(USER, ttl=timedelta(seconds=-5))
        forged = TokenCodec(secret_key="not-the-server-secret-but-long-enough-00").issue(ADMIN)
        with pytest.raises(Unauthorized) as expired_info:
            authenticate(codec, expired)
        with pytest.raises(Unauthorized) as forged_info:
            authenticate(codec, forged)
        with pytest.raises(Unauthorized) as missing_info:
            authenticate(codec, None)
        assert expired_info.value.message == forged_info.value.message == missing_info.value.message
        assert expired_info.value.code == forged_info.value.code


class TestAuthorize:
    def test_admin_permitted_everywhere(self) -> None:
        assert is_permitted(ADMIN, Role.ADMIN)
        assert is_permitted(ADMIN, Role.USER)

    def test_user_permitted_only_for_user_role(self) -> None:
        assert is_permitted(USER, Role.USER)
        assert not is_permitted(USER, Role.ADMIN)

    def test_authorize_raises_forbidden(self) -> None:
        with pytest.raises(Forbidden) as exc_info:
            authorize(USER, Role.ADMIN)
        assert exc_info.value.status_code == 403

    def test_authorize_passes_silently(self) -> None:
        assert authorize(ADMIN, Role.ADMIN) is None


class TestGuards:
    def test_self_demotion_blocked(self) -> None:
        with pytest.raises(SelfDemotion):
            guard_self_demotion(ADMIN, _user(1, Role.ADMIN), UserPatch(role=Role.USER))

    def test_self_update_keeping_admin_allowed(self) -> None:
        guard_self_demotion(ADMIN, _user(1, Role.ADMIN), UserPatch(role=Role.ADMIN))
        guard_self_demotion(ADMIN, _user(1, Role.ADMIN), UserPatch(username="newroot"))

    def test_demoting_someone_else_allowed(self) -> None:
        guard_self_demotion(ADMIN, _user(3, Role.ADMIN), UserPatch(role=Role.USER))

    def test_self_deletion_blocked(self) -> None:
        with pytest.raises(SelfDeletion):
            guard_self_deletion(ADMIN, _user(1, Role.ADMIN))

    def test_deleting_someone_else_allowed(self) -> None:
        guard_self_deletion(ADMIN, _user(2, Role.USER))
