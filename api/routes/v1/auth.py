"""
api/routes/v1/auth.py -- Registration, login and self-service profile endpoints.

Routes:
  POST /api/v1/auth/register   -- create a plain user account; returns token + user
  POST /api/v1/auth/login      -- password login; returns token + user
  GET  /api/v1/auth/me         -- current user's record (requires auth)
  PUT  /api/v1/auth/me         -- update own username/email/password (requires auth)

Security:
  Register never accepts a role. Every self-registered account is "user".
  Login returns the same 400 body for an unknown username and a wrong
  password ("invalid_credentials") so responses do not reveal which
  accounts exist.
  Cache-Control: no-store on register and login responses (they carry a token).

Handlers are plain def: bcrypt and store calls run in FastAPI's threadpool,
not on the event loop. Errors are raised as auth.errors kinds and rendered
by the handlers in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import AuthResponse, LoginRequest, ProfileUpdate, RegisterRequest, UserEnvelope, UserResponse
from auth.dependencies import get_claims, get_service
from auth.models import SubjectClaims
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/auth/register:  public -- self-registration
# - POST /api/v1/auth/login:     public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:        requires auth (get_claims)
# - PUT  /api/v1/auth/me:        requires auth (get_claims)
router = APIRouter()


def _token_response(status_code: int, message: str, token: str, user) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            message=message,
            token=token,
            user=UserResponse.from_public(user),
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(body: RegisterRequest, service: AuthService = Depends(get_service)) -> JSONResponse:
    """Create a new account with the "user" role and sign it in."""
    token, user = service.register(body.username, body.email, body.password)
    return _token_response(201, "Registration successful", token, user)


@router.post("/auth/login", response_model=AuthResponse)
def login(body: LoginRequest, service: AuthService = Depends(get_service)) -> JSONResponse:
    """Authenticate with username and password; returns a fresh token.

    Send the token back as "Authorization: Bearer <token>" or "x-auth-token: <token>".
    """
    token, user = service.login(body.username, body.password)
    return _token_response(200, "Login successful", token, user)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=UserEnvelope)
def me(
    claims: SubjectClaims = Depends(get_claims),
    service: AuthService = Depends(get_service),
) -> UserEnvelope:
    """Return the caller's own record. 404 if the account was deleted after the token was issued."""
    user = service.profile(claims)
    return UserEnvelope(message="Profile retrieved successfully", user=UserResponse.from_public(user))


@router.put("/auth/me", response_model=UserEnvelope)
def update_me(
    body: ProfileUpdate,
    claims: SubjectClaims = Depends(get_claims),
    service: AuthService = Depends(get_service),
) -> UserEnvelope:
    """Update the caller's own username, email or password. Omitted fields are unchanged.

    The current token keeps its old username claim until it expires; log in
    again to get a token with the new name.
    """
    user = service.update_profile(claims, username=body.username, email=body.email, password=body.password)
    return UserEnvelope(message="Profile updated successfully", user=UserResponse.from_public(user))
