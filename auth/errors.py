"""
auth/errors.py -- Error taxonomy for the account and session layer.

Every failure the service can report is an AccountError subclass carrying:
  status_code -- the HTTP status the api/ layer renders it with
  code        -- a stable machine-readable reason ("duplicate_email", ...)
  message     -- a human-readable sentence, safe to show to end users

The api/ exception handler turns these into the standard error envelope.
Nothing in here imports fastapi -- the status code is plain data.

Messages are deliberately coarse where detail would help an attacker:
invalid_credentials is used for both "no such email" and "wrong password",
and invalid_session covers every token verification failure.
"""

from __future__ import annotations


class AccountError(Exception):
    status_code: int = 500
    default_code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, code: str | None = None, message: str | None = None) -> None:
        self.code = code or self.default_code
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AccountError):
    """Missing or malformed input."""

    status_code = 400
    default_code = "validation_error"
    default_message = "Invalid request."


class AuthenticationError(AccountError):
    """Missing/invalid/expired session token, or bad login credentials."""

    status_code = 401
    default_code = "authentication_required"
    default_message = "Authentication required."


class AuthorizationError(AccountError):
    """Authenticated, but the role is not allowed to do this."""

    status_code = 403
    default_code = "admin_required"
    default_message = "Elevated privileges required."


class NotFoundError(AccountError):
    status_code = 404
    default_code = "user_not_found"
    default_message = "User not found."


class ConflictError(AccountError):
    """Email uniqueness violation. Rendered as 400, not 409, for client compatibility."""

    status_code = 400
    default_code = "duplicate_email"
    default_message = "Email already registered."


class InternalError(AccountError):
    """Storage or other unexpected failure. The message never carries internals."""

    status_code = 500


# ---------------------------------------------------------------------------
# Canonical instances -- one place for the wording of every reason
# ---------------------------------------------------------------------------


def missing_fields(message: str = "All fields are required.") -> ValidationError:
    return ValidationError("missing_fields", message)


def invalid_credentials() -> AuthenticationError:
    return AuthenticationError("invalid_credentials", "Invalid email or password.")


def authentication_required() -> AuthenticationError:
    return AuthenticationError("authentication_required", "Authentication required.")


def invalid_session() -> AuthenticationError:
    return AuthenticationError("invalid_session", "Invalid or expired session.")


def admin_required() -> AuthorizationError:
    return AuthorizationError("admin_required", "Elevated privileges required.")


def user_not_found() -> NotFoundError:
    return NotFoundError("user_not_found", "User not found.")


def duplicate_email() -> ConflictError:
    return ConflictError("duplicate_email", "Email already registered.")


def email_taken() -> ConflictError:
    return ConflictError("email_taken", "Email already in use.")
