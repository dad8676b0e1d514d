"""Error taxonomy raised by account workflows and mapped onto HTTP responses."""

from __future__ import annotations

from enum import Enum

SERVER_ERROR = "Server error"
UNEXPECTED_ERROR = "Unexpected error occurred"
DUPLICATE_ACCOUNT = "El email o nombre de usuario ya está registrado"


class ValidationCode(str, Enum):
    missing_fields = "MissingFields"
    invalid_email = "InvalidEmail"
    invalid_name = "InvalidName"
    invalid_category = "InvalidCategory"
    invalid_username = "InvalidUsername"
    invalid_age = "InvalidAge"
    weak_password = "WeakPassword"
    forbidden_pattern = "ForbiddenPattern"


class AccountError(Exception):
    """Base class for failures that carry a user-facing message and status code."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AccountError):
    """Payload rejected before reaching the store."""

    status_code = 400

    def __init__(self, code: ValidationCode, message: str) -> None:
        super().__init__(message)
        self.code = code


class ConflictError(AccountError):
    status_code = 409


class NotFoundError(AccountError):
    status_code = 404


class AuthError(AccountError):
    # Wrong password is reported as 400, not 401.
    status_code = 400


class DependencyError(AccountError):
    """The account store failed or was unreachable."""

    status_code = 500


class UnexpectedError(AccountError):
    status_code = 500
