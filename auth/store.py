"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper.
Route, gate and service code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) and UNIQUE(email) are enforced by the database. The
  service pre-checks both to produce a field-specific message, but a
  concurrent request can still win the race -- the losing insert/update
  surfaces here as DuplicateKey, never as a raw IntegrityError.

Failure contract:
  Any other SQLAlchemy error becomes StoreFailure. Nothing is retried; the
  request fails immediately and api/main.py logs it for the operator.

Connections:
  Each method checks one connection out of the engine pool for a single
  round trip and returns it on exit. For server databases the pool is
  bounded by pool_size (DB_POOL_SIZE). SQLite URLs use SQLAlchemy's default
  pool for the dialect.

Every User returned from here still carries hashed_password. Stripping it is
the service's job (see auth/service.to_public).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import (
    CheckConstraint,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    event,
    func,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateKey, StoreFailure
from auth.models import Role, User, UserPatch

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'userdesk.db'}"

USERNAME_MAX_LEN = 50
EMAIL_MAX_LEN = 100

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(USERNAME_MAX_LEN), nullable=False, unique=True),
    Column("email", String(EMAIL_MAX_LEN), nullable=False, unique=True),
    Column("hashed_password", String(255), nullable=False),
    Column("role", String(16), nullable=False, server_default=Role.USER.value),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    CheckConstraint("role IN ('admin', 'user')", name="ck_users_role"),
    Index("ix_users_role", "role"),
    # AUTOINCREMENT: SQLite must never hand a deleted user's id to a new row.
    sqlite_autoincrement=True,
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_unique_violation(exc: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed", Postgres: "duplicate key value",
    # MySQL: "Duplicate entry".
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore()
        user = store.create_user("admin", "admin@example.com", hasher.hash("secret"), Role.ADMIN)
        store.get_by_username("admin")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, pool_size: int = 10) -> None:
        engine_args: dict = {"pool_pre_ping": True}
        if db_url.startswith("sqlite"):
            engine_args["connect_args"] = {"check_same_thread": False}
        else:
            engine_args["pool_size"] = pool_size
        self.engine: Engine = create_engine(db_url, **engine_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        """Check out one pooled connection and translate driver errors."""
        try:
            with self.engine.connect() as conn:
                yield conn
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise DuplicateKey() from exc
            raise StoreFailure() from exc
        except SQLAlchemyError as exc:
            raise StoreFailure() from exc

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self._connection() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self._connection() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self._connection() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users, newest created first."""
        with self._connection() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.created_at.desc(), _users.c.id.desc())).fetchall()
        return [_row_to_user(r) for r in rows]

    def count_users(self) -> int:
        with self._connection() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def count_by_role(self) -> dict[Role, int]:
        """Return {role: count} with every role present, zero included."""
        counts = {role: 0 for role in Role}
        with self._connection() as conn:
            rows = conn.execute(select(_users.c.role, func.count()).group_by(_users.c.role)).fetchall()
        for role, count in rows:
            counts[Role(role)] = count
        return counts

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_user(self, username: str, email: str, hashed_password: str, role: Role = Role.USER) -> User:
        """Insert a new user and return the stored record.

        Raises DuplicateKey if the username or email already exists.
        """
        now = _now_iso()
        with self._connection() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=username,
                    email=email,
                    hashed_password=hashed_password,
                    role=role.value,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            user_id = result.inserted_primary_key[0]
        created = self.get_by_id(user_id)
        if created is None:
            raise StoreFailure("User not found after insert.")
        return created

    def update_user(self, user_id: int, patch: UserPatch) -> User | None:
        """Apply the non-None fields of patch and stamp updated_at.

        An empty patch is a no-op that returns the current record.
        Returns None if user_id was not found.
        Raises DuplicateKey if the new username or email is taken.
        """
        if patch.is_empty():
            return self.get_by_id(user_id)

        values: dict = {}
        if patch.username is not None:
            values["username"] = patch.username
        if patch.email is not None:
            values["email"] = patch.email
        if patch.hashed_password is not None:
            values["hashed_password"] = patch.hashed_password
        if patch.role is not None:
            values["role"] = patch.role.value
        values["updated_at"] = _now_iso()

        with self._connection() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**values))
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_by_id(user_id)

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Callers must run the self-deletion guard before calling this method --
        the store does not know who is asking.
        """
        with self._connection() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Run a trivial query to verify the database is reachable."""
        try:
            with self._connection() as conn:
                conn.execute(text("SELECT 1"))
        except StoreFailure:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        role=Role(row.role),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
