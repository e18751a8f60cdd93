"""
auth/gate.py -- Authorization decisions and domain guards.

authenticate() turns a raw token into SubjectClaims or a uniform Unauthorized.
The invalid/expired distinction is logged for diagnostics and then dropped:
callers see the same 401 either way.

authorize() is the RBAC rule. USER is satisfied by any authenticated subject;
ADMIN only by an admin subject. Denial is Forbidden, never Unauthorized.

The guards protect an admin from locking themselves out. They run after
authorize() and after the target record is loaded, and before any mutating
store call, so the store never sees a forbidden mutation.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from auth.errors import Forbidden, SelfDeletion, SelfDemotion, TokenExpired, TokenInvalid, Unauthorized
from auth.models import Role, SubjectClaims, User, UserPatch
from auth.tokens import TokenCodec

logger = logging.getLogger("userdesk.auth.gate")


def authenticate(codec: TokenCodec, raw_token: str | None) -> SubjectClaims:
    """Validate raw_token and return its claims. Raises Unauthorized on any failure."""
    if not raw_token:
        raise Unauthorized()
    try:
        return codec.validate(raw_token)
    except TokenExpired:
        logger.info("Rejected expired session token")
        raise Unauthorized() from None
    except TokenInvalid as exc:
        logger.info("Rejected invalid session token: %s", exc)
        raise Unauthorized() from None


def is_permitted(claims: SubjectClaims, required_role: Role) -> bool:
    if required_role is Role.USER:
        return True
    return claims.role is Role.ADMIN


def authorize(claims: SubjectClaims, required_role: Role) -> None:
    """Raise Forbidden unless claims satisfy required_role."""
    if not is_permitted(claims, required_role):
        logger.info("Denied %s (role=%s) access requiring %s", claims.username, claims.role.value, required_role.value)
        raise Forbidden()


def guard_self_demotion(actor: SubjectClaims, target: User, patch: UserPatch) -> None:
    """An admin may not set their own role to anything but admin."""
    if target.id == actor.id and patch.role is not None and patch.role is not Role.ADMIN:
        raise SelfDemotion()


def guard_self_deletion(actor: SubjectClaims, target: User) -> None:
    if target.id == actor.id:
        raise SelfDeletion()
