"""
auth/gates.py -- Request gates: bearer-token authentication and the admin check.

Each gate is a plain function that either returns claims or raises an
AccountError subclass. A protected request runs them in a fixed sequence:

    claims = authenticate(headers.get("Authorization"), signer)   # Auth Gate
    claims = authorize_admin(claims)                              # Role Gate (admin routes)

Nothing here knows about FastAPI or any particular concurrency runtime;
auth/dependencies.py adapts these to Depends().
"""

from __future__ import annotations

import logging

from auth import errors
from auth.tokens import SessionClaims, TokenSigner, TokenVerificationError

logger = logging.getLogger("gatehouse.auth")

_BEARER = "bearer"


def extract_bearer_token(authorization: str | None) -> str | None:
    """Pull the token out of an "Authorization: Bearer <token>" header value.

    Returns None when the header is absent, empty, uses another scheme,
    or carries no token.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != _BEARER:
        return None
    token = token.strip()
    return token or None


def authenticate(authorization: str | None, signer: TokenSigner) -> SessionClaims:
    """Auth Gate. Return the verified claims for a request's Authorization header.

    Raises:
        AuthenticationError(authentication_required) -- no bearer credential.
        AuthenticationError(invalid_session) -- credential present but it is
            malformed, tampered with, or expired. Which one is logged at
            debug level and never returned to the caller.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise errors.authentication_required()
    try:
        return signer.verify(token)
    except TokenVerificationError as exc:
        logger.debug("Rejected session token: %s", exc.reason.value)
        raise errors.invalid_session() from exc


def authorize_admin(claims: SessionClaims) -> SessionClaims:
    """Role Gate. Pass the claims through only if they carry the admin role."""
    if not claims.is_admin:
        raise errors.admin_required()
    return claims
