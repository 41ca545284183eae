"""
auth/tokens.py -- Password hashing and session token utilities.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). bcrypt is the right
       choice for low-entropy secrets because its cost factor makes
       brute-force expensive. Every hash gets a fresh random salt, and the
       cost (log2 rounds) is configurable via BCRYPT_ROUNDS. checkpw()
       compares in constant time. The dummy digest returned by
       _dummy_hash() enables timing equalization in authenticate_user() so
       response time does not reveal whether an email is registered.

  Session tokens: python-jose JWT with HS256. Tokens are signed with
       SECRET_KEY and carry sub (user id), email, role, iat and exp. Nothing
       is stored server-side, so a token stays valid until it expires --
       logout is a client-side discard. Rotating SECRET_KEY invalidates every
       outstanding token at once.

       TokenSigner.verify() reports *why* a token failed (malformed, bad
       signature, expired) through TokenVerificationError.reason. The auth
       gate logs that reason and collapses all three into one 401 so callers
       cannot probe which check tripped.

Layer rule: no imports from api/ or client/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jws, jwt
from jose.exceptions import JWSError

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import IdentityStore

logger = logging.getLogger("gatehouse.auth")

_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes of its input. Longer passwords are
# rejected up front (see AccountService) rather than silently truncated.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    rounds defaults to Settings.bcrypt_rounds. Each +1 doubles the work.
    """
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Malformed digests (and inputs bcrypt refuses, e.g. over 72 bytes) are
    reported as a non-match, never as an exception.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    """Timing equalization digest, computed once per cost factor.

    Cached so the first failed login is not measurably slower than the rest.
    """
    return hash_password("gatehouse_timing_dummy", rounds=rounds)


def authenticate_user(store: IdentityStore, email: str, password: str, rounds: int | None = None) -> User | None:
    """Check an email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against the dummy hash (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        cost = rounds if rounds is not None else get_settings().bcrypt_rounds
        verify_password(password, _dummy_hash(cost))
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


class VerificationFailure(str, Enum):
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"


class TokenVerificationError(Exception):
    """Raised by TokenSigner.verify(). reason says which check failed."""

    def __init__(self, reason: VerificationFailure) -> None:
        self.reason = reason
        super().__init__(f"Token verification failed: {reason.value}")


@dataclass(frozen=True)
class SessionClaims:
    """Identity facts carried by a session token."""

    user_id: str
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenSigner:
    """Issue and verify signed, time-limited session tokens.

    Usage:
        signer = TokenSigner(settings.secret_key)
        token = signer.issue(signer.claims_for(user.id, user.email, user.role))
        claims = signer.verify(token)   # raises TokenVerificationError
    """

    def __init__(self, secret_key: str, lifetime_seconds: int = 24 * 60 * 60, algorithm: str = _ALGORITHM) -> None:
        self._secret_key = secret_key
        self.lifetime = timedelta(seconds=lifetime_seconds)
        self.algorithm = algorithm

    def claims_for(self, user_id: str, email: str, role: str, now: datetime | None = None) -> SessionClaims:
        """Stamp issue and expiry times onto an identity.

        JWT timestamps are whole seconds, so issued_at is truncated here to
        make issue() -> verify() return exactly what went in.
        """
        issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        return SessionClaims(
            user_id=user_id,
            email=email,
            role=role,
            issued_at=issued_at,
            expires_at=issued_at + self.lifetime,
        )

    def issue(self, claims: SessionClaims) -> str:
        payload = {
            "sub": claims.user_id,
            "email": claims.email,
            "role": claims.role,
            "iat": int(claims.issued_at.timestamp()),
            "exp": int(claims.expires_at.timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> SessionClaims:
        """Decode and verify a token, returning its claims.

        Check order: structure first, then signature, then expiry. A token
        that is both tampered with and expired reports BAD_SIGNATURE.
        """
        try:
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenVerificationError(VerificationFailure.MALFORMED) from exc

        try:
            jws.verify(token, self._secret_key, algorithms=[self.algorithm])
        except JWSError as exc:
            raise TokenVerificationError(VerificationFailure.BAD_SIGNATURE) from exc

        # Signature is good, so anything decode() rejects now is about the claims.
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require_exp": True, "require_iat": True, "require_sub": True},
            )
        except ExpiredSignatureError as exc:
            raise TokenVerificationError(VerificationFailure.EXPIRED) from exc
        except JWTError as exc:
            raise TokenVerificationError(VerificationFailure.MALFORMED) from exc

        email = payload.get("email")
        role = payload.get("role")
        if not isinstance(email, str) or not isinstance(role, str):
            raise TokenVerificationError(VerificationFailure.MALFORMED)

        return SessionClaims(
            user_id=payload["sub"],
            email=email,
            role=role,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
