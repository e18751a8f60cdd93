"""
auth/tokens.py -- Session token issuance and validation (JWT).

Security design decisions:
  JWT: python-jose with an HMAC algorithm (HS256 by default). Tokens are signed
       with SECRET_KEY and carry the subject's id, username and role plus
       iat/exp. Nothing is persisted server-side: validity is a pure function
       of the token bytes and the secret, so validation needs no store round
       trip and is safe to run fully in parallel.

  Signature before expiry: python-jose verifies the signature before it looks
       at any claim, so a forged token is always TokenInvalid, even when its
       exp is in the past. Only a correctly signed, stale token is
       TokenExpired. Callers can tell "forged" from "stale" for diagnostics.

  Revocation: none by default. Each token carries a random jti; an optional
       revocation_check(jti) callable can be supplied to reject specific
       tokens before expiry. Without it, changing SECRET_KEY is the only way
       to invalidate outstanding tokens.

  SECRET_KEY: passed in by the caller (see TokenCodec.from_settings). Never
       logged.

Layer rule: no imports from api/. Import from core/ is allowed -- core/ is
the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import TokenExpired, TokenInvalid
from auth.models import Role, SubjectClaims

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("userdesk.auth.tokens")

DEFAULT_TTL = timedelta(hours=1)


class TokenCodec:
    """Issue and validate signed, expiring session tokens.

    Usage:
        codec = TokenCodec(secret_key="...")
        token = codec.issue(SubjectClaims(id=1, username="alice", role=Role.USER))
        claims = codec.validate(token)   # raises TokenInvalid / TokenExpired
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        default_ttl: timedelta = DEFAULT_TTL,
        revocation_check: Callable[[str], bool] | None = None,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must be non-empty")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.default_ttl = default_ttl
        self._revocation_check = revocation_check

    @classmethod
    def from_settings(cls, settings: Settings, revocation_check: Callable[[str], bool] | None = None) -> TokenCodec:
        return cls(
            secret_key=settings.secret_key,
            algorithm=settings.jwt_algorithm,
            default_ttl=timedelta(seconds=settings.token_expire_seconds),
            revocation_check=revocation_check,
        )

    def __repr__(self) -> str:
        # Keep the secret out of reprs, tracebacks and log lines.
        return f"TokenCodec(algorithm={self.algorithm!r}, default_ttl={self.default_ttl!r})"

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, claims: SubjectClaims, ttl: timedelta | None = None) -> str:
        """Encode a signed JWT for claims, expiring ttl from now (default 1 hour)."""
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "user": {
                "id": claims.id,
                "username": claims.username,
                "role": claims.role.value,
            },
            "iat": now,
            "exp": now + (ttl if ttl is not None else self.default_ttl),
            "jti": secrets.token_hex(16),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    # ------------------------------------------------------------------
    # Validate
    # ------------------------------------------------------------------

    def validate(self, token: str) -> SubjectClaims:
        """Verify signature, then expiry, then claim shape.

        Raises TokenExpired for a correctly signed token past its exp, and
        TokenInvalid for everything else that is wrong with it.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpired("token has expired") from exc
        except JWTError as exc:
            raise TokenInvalid(str(exc)) from exc

        if "exp" not in payload:
            raise TokenInvalid("token has no expiry")

        if self._revocation_check is not None:
            jti = payload.get("jti")
            if not isinstance(jti, str) or self._revocation_check(jti):
                raise TokenInvalid("token has been revoked")

        return _claims_from_payload(payload)


def _claims_from_payload(payload: dict[str, Any]) -> SubjectClaims:
    user = payload.get("user")
    if not isinstance(user, dict):
        raise TokenInvalid("token has no user claim")
    user_id = user.get("id")
    username = user.get("username")
    # bool is an int subclass; a token with "id": true is not a user id.
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise TokenInvalid("user id claim is not an integer")
    if not isinstance(username, str) or not username:
        raise TokenInvalid("username claim is missing")
    try:
        role = Role(user.get("role"))
    except ValueError as exc:
        raise TokenInvalid("role claim is not a known role") from exc
    return SubjectClaims(id=user_id, username=username, role=role)
