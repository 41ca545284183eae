"""
auth/service.py -- Account orchestration: registration, login, profile, admin user management.

AccountService is constructed with its collaborators (an IdentityStore and a
TokenSigner) and holds no other state, so one instance is shared by every
request. All methods are synchronous; FastAPI runs the route handlers that
call them on its thread pool, which keeps bcrypt and store I/O off the event
loop.

Every failure is raised as an AccountError subclass from auth/errors.py.
Storage exceptions never escape: IntegrityError on the email column becomes a
ConflictError, any other SQLAlchemyError becomes an InternalError.

Layer rule: no imports from api/, client/ or fastapi.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth import errors
from auth.models import PublicUser, Role, User
from auth.store import IdentityStore
from auth.tokens import MAX_PASSWORD_BYTES, SessionClaims, TokenSigner, authenticate_user, hash_password

logger = logging.getLogger("gatehouse.auth")

_ROLES = {r.value for r in Role}


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: PublicUser


@contextmanager
def _storage_errors(conflict: errors.ConflictError | None = None) -> Iterator[None]:
    """Translate storage exceptions into the account error taxonomy.

    conflict is what a UNIQUE violation means for the write in progress.
    Without one, an IntegrityError is just another internal failure.
    """
    try:
        yield
    except IntegrityError as exc:
        if conflict is None:
            logger.exception("Unexpected integrity error in identity store")
            raise errors.InternalError() from exc
        raise conflict from exc
    except SQLAlchemyError as exc:
        logger.exception("Identity store failure")
        raise errors.InternalError() from exc


def _check_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise errors.ValidationError("password_too_long", f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")


class AccountService:
    def __init__(self, store: IdentityStore, signer: TokenSigner, bcrypt_rounds: int | None = None) -> None:
        self.store = store
        self.signer = signer
        self.bcrypt_rounds = bcrypt_rounds

    def _hash(self, password: str) -> str:
        return hash_password(password, rounds=self.bcrypt_rounds)

    def _load(self, user_id: str) -> User:
        with _storage_errors():
            user = self.store.get_by_id(user_id)
        if user is None:
            raise errors.user_not_found()
        return user

    # ------------------------------------------------------------------
    # Self-service
    # ------------------------------------------------------------------

    def register(self, name: str, email: str, password: str) -> str:
        """Create a regular user account and return its id.

        The role is always "user" -- callers cannot pick it at registration.
        The pre-check gives the common case a clean error; the UNIQUE
        constraint catches the race where two registrations interleave.
        """
        if not name or not email or not password:
            raise errors.missing_fields()
        _check_password_length(password)

        with _storage_errors(errors.duplicate_email()):
            if self.store.get_by_email(email) is not None:
                raise errors.duplicate_email()
            user_id = self.store.create_user(
                User(name=name, email=email, password_hash=self._hash(password), role=Role.user.value)
            )
        logger.info("Registered user %s", user_id)
        return user_id

    def login(self, email: str, password: str) -> LoginResult:
        """Verify credentials and mint a session token.

        Unknown email and wrong password raise the same error, and both run
        one bcrypt check (see authenticate_user), so neither the response
        nor its timing reveals whether the email is registered.
        """
        if not email or not password:
            raise errors.missing_fields("Email and password required.")

        with _storage_errors():
            user = authenticate_user(self.store, email, password, rounds=self.bcrypt_rounds)
        if user is None:
            raise errors.invalid_credentials()

        claims = self.signer.claims_for(user.id, user.email, user.role)
        return LoginResult(token=self.signer.issue(claims), user=user.public())

    def get_profile(self, claims: SessionClaims) -> PublicUser:
        """Return the caller's own record. 404 if it was deleted after the token was issued."""
        return self._load(claims.user_id).public()

    def update_profile(
        self,
        claims: SessionClaims,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> PublicUser:
        """Apply the provided fields to the caller's own record.

        Empty values count as "not provided". A new email must not belong to
        anyone else; re-submitting your own email is fine.
        """
        self._load(claims.user_id)

        updates: dict[str, str] = {}
        if name:
            updates["name"] = name
        if password:
            _check_password_length(password)
            updates["password_hash"] = self._hash(password)

        with _storage_errors(errors.email_taken()):
            if email:
                existing = self.store.get_by_email(email)
                if existing is not None and existing.id != claims.user_id:
                    raise errors.email_taken()
                updates["email"] = email
            found = self.store.update_user(claims.user_id, **updates)
        if not found:
            raise errors.user_not_found()
        return self._load(claims.user_id).public()

    # ------------------------------------------------------------------
    # Administration (callers must have passed the Role Gate)
    # ------------------------------------------------------------------

    def list_users(self) -> list[PublicUser]:
        with _storage_errors():
            users = self.store.list_users()
        return [u.public() for u in users]

    def update_user(
        self,
        user_id: str,
        name: str | None = None,
        email: str | None = None,
        role: str | None = None,
    ) -> PublicUser:
        """Apply the provided fields to any user.

        There is no email pre-check on this path. The store's UNIQUE
        constraint still refuses a collision, which surfaces as email_taken.
        """
        if role and role not in _ROLES:
            raise errors.ValidationError("invalid_role", f"Role must be one of: {', '.join(sorted(_ROLES))}.")

        updates: dict[str, str] = {}
        if name:
            updates["name"] = name
        if email:
            updates["email"] = email
        if role:
            updates["role"] = role

        with _storage_errors(errors.email_taken()):
            found = self.store.update_user(user_id, **updates)
        if not found:
            raise errors.user_not_found()
        logger.info("Updated user %s (fields: %s)", user_id, ", ".join(sorted(updates)) or "none")
        return self._load(user_id).public()

    def delete_user(self, acting: SessionClaims, user_id: str) -> None:
        """Remove a user. An admin cannot delete their own account."""
        if user_id == acting.user_id:
            raise errors.ValidationError("self_deletion", "Cannot delete yourself.")
        with _storage_errors():
            deleted = self.store.delete_user(user_id)
        if not deleted:
            raise errors.user_not_found()
        logger.info("User %s deleted by %s", user_id, acting.user_id)

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def ensure_admin(self, name: str, email: str, password: str) -> User | None:
        """Create an admin account if none exists. Returns the new User, or None.

        If a non-admin already holds the bootstrap email, it is promoted
        rather than duplicated. An over-long password raises
        ValidationError(password_too_long) before anything is written.
        """
        _check_password_length(password)
        with _storage_errors(errors.duplicate_email()):
            if self.store.count_admins() > 0:
                return None
            existing = self.store.get_by_email(email)
            if existing is not None:
                self.store.update_user(existing.id, role=Role.admin.value)
                logger.warning("Promoted existing account %s to admin (no admin existed)", email)
                return self.store.get_by_id(existing.id)
            user_id = self.store.create_user(
                User(name=name, email=email, password_hash=self._hash(password), role=Role.admin.value)
            )
        logger.warning("Default admin created: %s -- change this password", email)
        return self.store.get_by_id(user_id)
