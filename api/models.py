"""
API request and response models for Gatehouse REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Wire format: JSON keys are camelCase (userId, createdAt); Python attributes
stay snake_case. FastAPI serializes response_model instances by alias.

No response model has a password or password-hash field, so a credential
cannot leak through serialization even by accident.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.errors import AccountError
from auth.models import PublicUser

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ---------------------------------------------------------------------------
# Request models
#
# Required fields default to "" so an omitted field reaches the service and
# comes back as a 400 missing_fields, not a 422 schema error.
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    model_config = _WIRE

    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    model_config = _WIRE

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)


class ProfileUpdate(BaseModel):
    """Request body for PUT /api/users/me. Omitted or empty fields are left unchanged."""

    model_config = _WIRE

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)


class AdminUserUpdate(BaseModel):
    """Request body for PUT /api/users/{id}. Omitted or empty fields are left unchanged."""

    model_config = _WIRE

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    role: Optional[str] = Field(default=None, max_length=16)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Sanitized user record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    email: str
    role: str
    created_at: str

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
        )


class RegisterResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    message: str
    user_id: str


class LoginResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    message: str
    token: str
    user: UserResponse


class UserEnvelope(BaseModel):
    """{message, user} -- returned by both profile and admin updates."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail

    @classmethod
    def from_account_error(cls, exc: AccountError) -> "ErrorResponse":
        return cls(error=ErrorDetail(code=exc.code, message=exc.message))


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
