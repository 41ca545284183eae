"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Credentials arrive as an Authorization: Bearer <token> header. There is no
cookie or API-key path: the session token is the only credential.

require_auth() runs the Auth Gate and attaches the verified claims to
request.state.claims before handing them to the route.
require_admin() depends on require_auth() and runs the Role Gate on top, so
the two always execute in that order.

Both translate nothing themselves -- gate failures are AccountError
subclasses, rendered by the exception handler in api/main.py.

Layer rule: no imports from api/ or client/.
  auth/dependencies.py may import from fastapi (for Depends/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.gates import authenticate, authorize_admin
from auth.service import AccountService
from auth.tokens import SessionClaims, TokenSigner


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts


def require_auth(request: Request) -> SessionClaims:
    """Require a valid session token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: SessionClaims = Depends(require_auth)): ...
    """
    signer: TokenSigner = request.app.state.signer
    claims = authenticate(request.headers.get("Authorization"), signer)
    request.state.claims = claims
    return claims


def require_admin(claims: SessionClaims = Depends(require_auth)) -> SessionClaims:
    """Require the admin role. Raises HTTP 401 if unauthenticated, HTTP 403 if not admin.

    Use as a FastAPI dependency:
        @router.delete("/admin-only")
        def route(claims: SessionClaims = Depends(require_admin)): ...
    """
    return authorize_admin(claims)
