"""
auth/service.py -- Registration, login and role-gated user management.

AuthService composes the hasher, token codec, user store and gate. Each public
method is one request/response unit with no state of its own beyond those
collaborators.

Entry points that create users are split on purpose:
  register()    -- public self-registration. Takes no role argument; every
                   account it creates is Role.USER.
  create_user() -- admin-only. The admin chooses the role.

Ordering rules:
  - Uniqueness pre-checks run before hashing, so a doomed request never pays
    bcrypt's cost.
  - Admin operations call authorize() first, load the target second, run the
    self-demotion / self-deletion guards third, and only then touch the store.
  - Login never says which half of the credentials was wrong.

Every record handed back to a caller goes through to_public(), which drops
the credential.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from auth.errors import DuplicateKey, InvalidCredentials, NotFound, ValidationFailed
from auth.gate import authorize, guard_self_deletion, guard_self_demotion
from auth.models import PublicUser, Role, SubjectClaims, User, UserPatch
from auth.passwords import MIN_PASSWORD_LENGTH, PasswordHasher
from auth.store import EMAIL_MAX_LEN, USERNAME_MAX_LEN, UserStore
from auth.tokens import TokenCodec

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("userdesk.auth.service")


def to_public(user: User) -> PublicUser:
    """Outward-facing view of a stored user: everything but the credential."""
    return PublicUser(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def claims_for(user: User) -> SubjectClaims:
    return SubjectClaims(id=user.id, username=user.username, role=user.role)


def _trim(username: str | None) -> str | None:
    # Usernames are stored trimmed, matching what the HTTP layer accepts.
    return username.strip() if username is not None else None


def check_shape(username: str | None = None, email: str | None = None, password: str | None = None) -> None:
    """Raise ValidationFailed listing every supplied field that cannot be stored.

    The HTTP layer validates the same rules with richer messages; this check
    covers callers that reach the service directly (CLI, bootstrap).
    Callers pass the username already trimmed.
    """
    fields: list[dict] = []
    if username is not None and not (0 < len(username) <= USERNAME_MAX_LEN):
        fields.append({"field": "username", "message": f"Username must be 1-{USERNAME_MAX_LEN} characters"})
    if email is not None:
        local, _, domain = email.partition("@")
        if not local or "." not in domain or len(email) > EMAIL_MAX_LEN:
            fields.append({"field": "email", "message": "Please provide a valid email"})
    if password is not None and len(password) < MIN_PASSWORD_LENGTH:
        fields.append({"field": "password", "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"})
    if fields:
        raise ValidationFailed(fields=fields)


class AuthService:
    """Auth/RBAC orchestrator.

    Usage:
        service = AuthService(store, PasswordHasher(), TokenCodec(secret))
        token, user = service.register("alice", "alice@x.com", "secret1")
        token, user = service.login("alice", "secret1")
    """

    def __init__(self, store: UserStore, hasher: PasswordHasher, codec: TokenCodec) -> None:
        self.store = store
        self.hasher = hasher
        self.codec = codec

    @classmethod
    def from_settings(cls, settings: Settings, store: UserStore) -> AuthService:
        return cls(
            store=store,
            hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
            codec=TokenCodec.from_settings(settings),
        )

    # ------------------------------------------------------------------
    # Public (no token)
    # ------------------------------------------------------------------

    def register(self, username: str, email: str, password: str) -> tuple[str, PublicUser]:
        """Create a Role.USER account and sign the new user in."""
        user = self._insert(username, email, password, Role.USER)
        logger.info("New user registered: %s", user.username)
        return self.codec.issue(claims_for(user)), to_public(user)

    def login(self, username: str, password: str) -> tuple[str, PublicUser]:
        """Verify credentials and issue a fresh token.

        Unknown username and wrong password raise the same InvalidCredentials.
        The unknown-username path still runs one bcrypt verification so the
        two cases take the same time.
        """
        user = self.store.get_by_username(username)
        if user is None:
            self.hasher.burn(password)
            raise InvalidCredentials()
        if not self.hasher.verify(password, user.hashed_password):
            raise InvalidCredentials()
        logger.info("User authenticated: %s (%s)", user.username, user.role.value)
        return self.codec.issue(claims_for(user)), to_public(user)

    # ------------------------------------------------------------------
    # Self-service (any authenticated subject)
    # ------------------------------------------------------------------

    def profile(self, claims: SubjectClaims) -> PublicUser:
        """Return the caller's own record. NotFound if the account was deleted."""
        return to_public(self._load(claims.id))

    def update_profile(
        self,
        claims: SubjectClaims,
        *,
        username: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> PublicUser:
        """Change the caller's own username, email or password. Role is not editable here."""
        username = _trim(username)
        check_shape(username, email, password)
        current = self._load(claims.id)
        self._ensure_available(
            username=username if username != current.username else None,
            email=email if email != current.email else None,
            exclude_id=current.id,
        )
        patch = UserPatch(
            username=username,
            email=email,
            hashed_password=self.hasher.hash(password) if password is not None else None,
        )
        return to_public(self._apply(current.id, patch))

    def dashboard(self, claims: SubjectClaims) -> dict[str, int]:
        """User counts for the dashboard widgets."""
        authorize(claims, Role.USER)
        counts = self.store.count_by_role()
        return {
            "total_users": sum(counts.values()),
            "admins": counts[Role.ADMIN],
            "users": counts[Role.USER],
        }

    # ------------------------------------------------------------------
    # User management (admin only)
    # ------------------------------------------------------------------

    def list_users(self, claims: SubjectClaims) -> list[PublicUser]:
        authorize(claims, Role.ADMIN)
        return [to_public(u) for u in self.store.list_users()]

    def get_user(self, claims: SubjectClaims, user_id: int) -> PublicUser:
        authorize(claims, Role.ADMIN)
        return to_public(self._load(user_id))

    def create_user(
        self,
        claims: SubjectClaims,
        username: str,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> PublicUser:
        """Create an account with an admin-chosen role."""
        authorize(claims, Role.ADMIN)
        user = self._insert(username, email, password, role)
        logger.info("User %s created by %s with role %s", user.username, claims.username, user.role.value)
        return to_public(user)

    def update_user(
        self,
        claims: SubjectClaims,
        user_id: int,
        *,
        username: str | None = None,
        email: str | None = None,
        password: str | None = None,
        role: Role | None = None,
    ) -> PublicUser:
        """Update any field of any user, including role.

        The self-demotion guard runs before uniqueness checks and hashing.
        """
        authorize(claims, Role.ADMIN)
        username = _trim(username)
        check_shape(username, email, password)
        target = self._load(user_id)
        guard_self_demotion(claims, target, UserPatch(role=role))
        self._ensure_available(
            username=username if username != target.username else None,
            email=email if email != target.email else None,
            exclude_id=target.id,
        )
        patch = UserPatch(
            username=username,
            email=email,
            hashed_password=self.hasher.hash(password) if password is not None else None,
            role=role,
        )
        updated = self._apply(target.id, patch)
        logger.info("User %s updated by %s", updated.username, claims.username)
        return to_public(updated)

    def delete_user(self, claims: SubjectClaims, user_id: int) -> str:
        """Delete a user other than the caller. Returns the deleted username."""
        authorize(claims, Role.ADMIN)
        target = self._load(user_id)
        guard_self_deletion(claims, target)
        if not self.store.delete_user(target.id):
            # Removed by a concurrent request between load and delete.
            raise NotFound()
        logger.info("User %s deleted by %s", target.username, claims.username)
        return target.username

    # ------------------------------------------------------------------
    # Operator (trusted in-process callers: CLI, first-run bootstrap)
    # ------------------------------------------------------------------

    def provision(self, username: str, email: str, password: str, role: Role = Role.USER) -> PublicUser:
        """Create an account without caller claims.

        Same shape, uniqueness and hashing rules as create_user(). Not reachable
        over HTTP.
        """
        user = self._insert(username, email, password, role)
        logger.info("User %s provisioned with role %s", user.username, user.role.value)
        return to_public(user)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _insert(self, username: str, email: str, password: str, role: Role) -> User:
        """Trim, validate, pre-check uniqueness, hash, then insert."""
        username = _trim(username)
        check_shape(username, email, password)
        self._ensure_available(username=username, email=email)
        return self.store.create_user(username, email, self.hasher.hash(password), role)

    def _load(self, user_id: int) -> User:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise NotFound()
        return user

    def _apply(self, user_id: int, patch: UserPatch) -> User:
        updated = self.store.update_user(user_id, patch)
        if updated is None:
            raise NotFound()
        return updated

    def _ensure_available(
        self,
        username: str | None = None,
        email: str | None = None,
        exclude_id: int | None = None,
    ) -> None:
        """Raise DuplicateKey if username or email belongs to another user."""
        if username is not None:
            existing = self.store.get_by_username(username)
            if existing is not None and existing.id != exclude_id:
                raise DuplicateKey("Username already taken")
        if email is not None:
            existing = self.store.get_by_email(email)
            if existing is not None and existing.id != exclude_id:
                raise DuplicateKey("Email already registered")
