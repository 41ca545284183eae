"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper.
IdentityStore is the port the account service depends on; UserStore is the
SQLAlchemy implementation and _row_to_user is the mapper. Service and route
code never touches SQL directly, and tests can pass any object that satisfies
the IdentityStore protocol.

Security:
  All queries use bound parameters. No f-strings in SQL.

  The one-user-per-email invariant is a UNIQUE constraint on users.email, so
  it holds for concurrent inserts and updates alike. Violations surface as
  sqlalchemy.exc.IntegrityError; the account service translates them.

Concurrency:
  Every write is a single statement inside its own transaction, so it is
  atomic with respect to the one record it touches. SQLite runs in WAL mode
  with check_same_thread=False because FastAPI executes sync route handlers
  on a thread pool.

DB path: auth/gatehouse_auth.db by default (DATABASE_URL overrides).

Layer rule: no imports from api/ or client/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, select, text
from sqlalchemy.engine import Engine

from auth.models import Role, User

# ---------------------------------------------------------------------------
# Port
# ---------------------------------------------------------------------------


class IdentityStore(Protocol):
    """Abstract lookup/insert/update/delete of user records."""

    def create_user(self, user: User) -> str:
        ...

    def get_by_id(self, user_id: str) -> User | None:
        ...

    def get_by_email(self, email: str) -> User | None:
        ...

    def list_users(self) -> list[User]:
        ...

    def update_user(self, user_id: str, **fields) -> bool:
        ...

    def delete_user(self, user_id: str) -> bool:
        ...

    def count_admins(self) -> int:
        ...


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex, opaque to clients
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(16), nullable=False, server_default=Role.user.value),
    Column("created_at", String(32), nullable=False),
)

# Columns update_user() may touch. id and created_at are immutable.
_MUTABLE_FIELDS = frozenset({"name", "email", "password_hash", "role"})


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """SQLAlchemy-backed IdentityStore.

    Usage:
        store = UserStore("sqlite:///gatehouse.db")
        user_id = store.create_user(User(name="Admin", email="a@x.com", password_hash=..., role="admin"))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Round-trip a trivial query. Used by the health endpoint."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def count_admins(self) -> int:
        """Return the number of admin accounts. Drives the startup bootstrap."""
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_users).where(_users.c.role == Role.admin.value)
            ).scalar()
        return result or 0

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.created_at, _users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> str:
        """Insert a new user and return its assigned ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        user_id = uuid.uuid4().hex
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    name=user.name,
                    email=user.email,
                    password_hash=user.password_hash,
                    role=user.role,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        return user_id

    def update_user(self, user_id: str, **fields) -> bool:
        """Update mutable fields on an existing user.

        Accepted fields: name, email, password_hash, role. Unknown keys raise
        ValueError rather than being silently ignored.

        Returns True if the user exists (and was updated), False otherwise.
        Raises sqlalchemy.exc.IntegrityError if email collides with another user.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        if not fields:
            return self.get_by_id(user_id) is not None
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Callers own the self-deletion check -- the store does not know who is asking.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        created_at=row.created_at,
    )
