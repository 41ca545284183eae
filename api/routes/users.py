"""
api/routes/users.py -- Profile self-service and admin user management.

Routes:
  GET    /api/users/me    -- own profile (auth)
  PUT    /api/users/me    -- update own name/email/password (auth)
  GET    /api/users       -- list all users (admin)
  PUT    /api/users/{id}  -- update any user's name/email/role (admin)
  DELETE /api/users/{id}  -- delete any user except yourself (admin)

The /me routes are declared before /{user_id} so "me" is never captured as
an id.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import AdminUserUpdate, MessageResponse, ProfileUpdate, UserEnvelope, UserResponse
from auth.dependencies import get_account_service, require_admin, require_auth
from auth.service import AccountService
from auth.tokens import SessionClaims

# Auth policy:
# - GET/PUT    /api/users/me:   requires auth (require_auth)
# - GET        /api/users:      requires admin (require_admin)
# - PUT/DELETE /api/users/{id}: requires admin (require_admin)
router = APIRouter()


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------


@router.get("/users/me", response_model=UserResponse)
def get_me(
    claims: SessionClaims = Depends(require_auth),
    accounts: AccountService = Depends(get_account_service),
) -> UserResponse:
    return UserResponse.from_public(accounts.get_profile(claims))


@router.put("/users/me", response_model=UserEnvelope)
def update_me(
    body: ProfileUpdate,
    claims: SessionClaims = Depends(require_auth),
    accounts: AccountService = Depends(get_account_service),
) -> UserEnvelope:
    """Update your own profile. A new password is re-hashed; role cannot be changed here."""
    user = accounts.update_profile(claims, name=body.name, email=body.email, password=body.password)
    return UserEnvelope(message="Profile updated", user=UserResponse.from_public(user))


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[UserResponse])
def list_users(
    _admin: SessionClaims = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> list[UserResponse]:
    return [UserResponse.from_public(u) for u in accounts.list_users()]


@router.put("/users/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: str,
    body: AdminUserUpdate,
    _admin: SessionClaims = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> UserEnvelope:
    user = accounts.update_user(user_id, name=body.name, email=body.email, role=body.role)
    return UserEnvelope(message="User updated", user=UserResponse.from_public(user))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    admin: SessionClaims = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    accounts.delete_user(admin, user_id)
    return MessageResponse(message="User deleted successfully")
