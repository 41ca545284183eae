"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Dataclasses own
the domain shape; the store and the account service do the work.

Layer rule: no imports from api/ or client/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    user = "user"
    admin = "admin"


@dataclass
class User:
    """Represents one registered identity.

    email is the login key and is unique across all users. Comparison is
    exact (case-sensitive) -- the value is stored as submitted.

    password_hash is a bcrypt digest. It never leaves the store/hasher
    boundary: anything that crosses into a response goes through public().
    """

    name: str
    email: str
    password_hash: str
    role: str = Role.user.value
    id: str | None = None  # assigned by the store at insert
    created_at: str | None = None  # ISO 8601, assigned by the store at insert

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin.value

    def public(self) -> PublicUser:
        """Return the sanitized view of this user (no password hash)."""
        return PublicUser(
            id=self.id or "",
            name=self.name,
            email=self.email,
            role=self.role,
            created_at=self.created_at or "",
        )


@dataclass(frozen=True)
class PublicUser:
    """A User with the credential stripped. Safe to serialize."""

    id: str
    name: str
    email: str
    role: str
    created_at: str
