"""
api/routes/auth.py -- Registration, login and logout endpoints.

Routes:
  POST /api/auth/register -- create a regular user account; 201 {message, userId}
  POST /api/auth/login    -- password login; 200 {message, token, user}
  POST /api/auth/logout   -- acknowledgement only; 200 {message}

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  Login failures use one message for unknown email and wrong password.
  Cache-Control: no-store on every login response, success, failure or 429.
  Registration never accepts a role -- new accounts are always "user".
  Logout is stateless: tokens are not revocable, the client discards its copy.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from auth.dependencies import get_account_service
from auth.errors import AccountError
from auth.service import AccountService
from core.config import get_settings

# Auth policy:
# - POST /api/auth/register: public
# - POST /api/auth/login:    public, rate limited
# - POST /api/auth/logout:   public -- there is no server-side session to end
router = APIRouter()


def _no_store(resp: JSONResponse) -> JSONResponse:
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(body: RegisterRequest, accounts: AccountService = Depends(get_account_service)) -> RegisterResponse:
    """Create an account with role "user". 400 on missing fields or a registered email."""
    user_id = accounts.register(body.name, body.email, body.password)
    return RegisterResponse(message="User registered successfully", user_id=user_id)


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(get_settings().login_rate_limit)  # innermost, so the route calls the limited wrapper
def login(
    request: Request,
    body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
) -> JSONResponse:
    """Exchange email + password for a session token.

    Errors are rendered here rather than by the global handler so the
    no-store header is set on failures too.
    """
    try:
        result = accounts.login(body.email, body.password)
    except AccountError as exc:
        return _no_store(
            JSONResponse(
                status_code=exc.status_code,
                content=ErrorResponse.from_account_error(exc).model_dump(),
            )
        )

    payload = LoginResponse(
        message="Login successful",
        token=result.token,
        user=UserResponse.from_public(result.user),
    )
    return _no_store(JSONResponse(status_code=200, content=payload.model_dump(by_alias=True)))


@router.post("/auth/logout", response_model=MessageResponse)
def logout() -> MessageResponse:
    """Tokens are stateless; logging out means the client drops its token."""
    return MessageResponse(message="Logged out. Discard your token.")
