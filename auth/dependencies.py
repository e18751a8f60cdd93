"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two token carriers are checked in priority order:
  1. Authorization: Bearer <token> header -- API clients.
  2. x-auth-token: <token> header -- the browser client's custom header.

Both converge on SubjectClaims after auth.gate.authenticate(). No store
lookup happens here: the token alone decides who the caller is and which
role they hold. Handlers that need the current record (GET /auth/me) load it
through the service.

extract_token() is the soft part (returns None when no token is present).
get_claims() raises 401 via Unauthorized.
require_admin() wraps get_claims() and raises 403 via Forbidden.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for Depends/Request) because
  this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.gate import authenticate, authorize
from auth.models import Role, SubjectClaims
from auth.service import AuthService


def get_service(request: Request) -> AuthService:
    """Return the process-wide AuthService created in the lifespan."""
    return request.app.state.auth_service


def extract_token(request: Request) -> str | None:
    """Return the raw token string from the request headers, or None."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header[:7].lower() == "bearer ":
        token = auth_header[7:].strip()
        if token:
            return token
    return request.headers.get("x-auth-token", "").strip() or None


def get_claims(request: Request, service: AuthService = Depends(get_service)) -> SubjectClaims:
    """Require a valid session token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: SubjectClaims = Depends(get_claims)): ...
    """
    return authenticate(service.codec, extract_token(request))


def require_admin(claims: SubjectClaims = Depends(get_claims)) -> SubjectClaims:
    """Require the admin role. Raises 401 if unauthenticated, 403 if not admin.

    The service re-checks the role on every admin operation; this dependency
    just fails fast before the request body is used.
    """
    authorize(claims, Role.ADMIN)
    return claims
