"""
API request and response models for UserDesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.

Input shape rules:
  username  -- trimmed, 1-50 characters
  email     -- valid address shape (email-validator), at most 100 characters
  password  -- 6-128 characters, never trimmed
  role      -- "admin" or "user"

No response model has a password or credential field.
"""

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field

from auth.models import PublicUser, Role
from auth.passwords import MIN_PASSWORD_LENGTH as PASSWORD_MIN_LEN
from auth.store import EMAIL_MAX_LEN, USERNAME_MAX_LEN

PASSWORD_MAX_LEN = 128


# ---------------------------------------------------------------------------
# Field types
# ---------------------------------------------------------------------------


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _check_email_length(value: str) -> str:
    if len(value) > EMAIL_MAX_LEN:
        raise ValueError(f"Email must be at most {EMAIL_MAX_LEN} characters")
    return value


# Whitespace is trimmed before the length check, so "   " is rejected as empty.
_Username = Annotated[str, BeforeValidator(_strip), Field(min_length=1, max_length=USERNAME_MAX_LEN)]
_Email = Annotated[EmailStr, AfterValidator(_check_email_length)]
_Password = Annotated[str, Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    There is no role field. Unknown keys (including "role") are ignored, so a
    self-registered account is always a plain user.
    """

    username: _Username
    email: _Email
    password: _Password


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    Only presence is checked here. Length rules would leak which accounts
    could possibly exist.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LEN)


class ProfileUpdate(BaseModel):
    """Request body for PUT /api/v1/auth/me. Omitted fields are left unchanged."""

    username: Optional[_Username] = None
    email: Optional[_Email] = None
    password: Optional[_Password] = None


class UserCreate(BaseModel):
    """Request body for POST /api/v1/users (admin only)."""

    username: _Username
    email: _Email
    password: _Password
    role: Role = Role.USER


class UserUpdate(ProfileUpdate):
    """Request body for PUT /api/v1/users/{id} (admin only). Adds role."""

    role: Optional[Role] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """A user as seen over HTTP. Built only from PublicUser, which has no credential."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: Role
    created_at: str
    updated_at: str

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        """Factory Method -- the mapping lives here, next to the output model."""
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(BaseModel):
    """Response for register and login: a fresh token plus the signed-in user."""

    model_config = ConfigDict(frozen=True)

    message: str
    token: str
    token_type: str = "bearer"
    user: UserResponse


class UserEnvelope(BaseModel):
    """Single-user response for /auth/me and /users/{id} operations."""

    model_config = ConfigDict(frozen=True)

    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class DashboardResponse(BaseModel):
    """Response for GET /api/v1/dashboard."""

    model_config = ConfigDict(frozen=True)

    total_users: int
    admins: int
    users: int


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FieldError(BaseModel):
    """One input field that failed validation."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    fields: Optional[list[FieldError]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail
