"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, gate and service do the work.

User carries the credential and never leaves the auth layer. PublicUser is
the outward-facing shape: it has no credential field at all, so a forgotten
strip cannot leak one.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed role enumeration. ADMIN is a strict superset of USER."""

    ADMIN = "admin"
    USER = "user"


@dataclass
class User:
    """A stored user record, credential included.

    id is None before the record is written to the database.
    created_at / updated_at are ISO 8601 UTC strings set by the store.
    """

    username: str
    email: str
    hashed_password: str
    role: Role = Role.USER
    id: int | None = None
    created_at: str = ""
    updated_at: str = ""


@dataclass(frozen=True)
class PublicUser:
    """A user as returned to callers. Deliberately has no credential field."""

    id: int
    username: str
    email: str
    role: Role
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class SubjectClaims:
    """Identity carried inside a session token."""

    id: int
    username: str
    role: Role


@dataclass(frozen=True)
class UserPatch:
    """Sparse update for a user record. None means "leave unchanged".

    hashed_password is already a credential -- the store never sees plaintext.
    """

    username: str | None = None
    email: str | None = None
    hashed_password: str | None = None
    role: Role | None = None

    def is_empty(self) -> bool:
        return self.username is None and self.email is None and self.hashed_password is None and self.role is None
