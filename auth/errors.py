"""
auth/errors.py -- Error kinds raised by the authentication and authorization engine.

Every user-facing outcome is an AuthError subclass carrying a machine-readable
code, the HTTP status it maps to, and a default message. api/main.py translates
them into the ErrorResponse envelope in one exception handler, so route code
never builds error bodies by hand.

Internal kinds (internal = True) are operator-relevant failures: the handler
logs them with a traceback and returns an opaque 500 without the message.

TokenError and its subclasses are codec-level and never cross the HTTP
boundary -- auth/gate.py collapses both into Unauthorized.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every expected failure of an auth operation."""

    code: str = "auth_error"
    status_code: int = 400
    message: str = "Request could not be completed."
    internal: bool = False

    def __init__(self, message: str | None = None, *, fields: list[dict] | None = None) -> None:
        self.message = message or self.message
        self.fields = fields
        super().__init__(self.message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None


class ValidationFailed(AuthError):
    code = "validation_error"
    message = "Please check your input."


class DuplicateKey(AuthError):
    """Username or email collision.

    Pre-check failures name the field ("Username already taken"). A collision
    detected only by the database constraint gets this generic message.
    """

    code = "duplicate"
    message = "A user with that username or email already exists."


class InvalidCredentials(AuthError):
    # One message for unknown user and wrong password. Do not specialise.
    code = "invalid_credentials"
    message = "Invalid username or password"


class Unauthorized(AuthError):
    code = "unauthorized"
    status_code = 401
    message = "Authentication required."

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(AuthError):
    code = "forbidden"
    status_code = 403
    message = "Admin access required."


class NotFound(AuthError):
    code = "not_found"
    status_code = 404
    message = "User not found"


class SelfDemotion(AuthError):
    code = "self_demotion"
    message = "You cannot remove your own admin privileges"


class SelfDeletion(AuthError):
    code = "self_deletion"
    message = "You cannot delete your own account"


class StoreFailure(AuthError):
    code = "internal_error"
    status_code = 500
    message = "User store operation failed."
    internal = True


class CorruptCredential(AuthError):
    code = "internal_error"
    status_code = 500
    message = "Stored credential is malformed."
    internal = True


class HashingFailed(AuthError):
    code = "internal_error"
    status_code = 500
    message = "Password hashing failed."
    internal = True


# ---------------------------------------------------------------------------
# Token codec errors
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for session token validation failures."""


class TokenInvalid(TokenError):
    """Bad signature, malformed structure, or unusable claims."""


class TokenExpired(TokenError):
    """Signature is valid but the token is past its expiry."""
