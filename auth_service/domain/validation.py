"""Validation rules for registration, login and profile update payloads.

Every function takes the raw JSON mapping received by the HTTP layer and either
returns a typed contract from :mod:`.contracts` or raises
:class:`~.errors.ValidationError` carrying the user-facing message.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from .contracts import LoginInput, RegisterBusinessInput, RegisterUserInput, UserPatch
from .errors import ValidationCode, ValidationError

MIN_PASSWORD_LENGTH = 8
MIN_AGE = 0
MAX_AGE = 120

USER_MISSING_FIELDS = "Faltan campos obligatorios: name, email, age, password"
BUSINESS_MISSING_FIELDS = (
    "Faltan datos necesarios: nombre, correo, nombre de usuario, categoría, contraseña"
)
LOGIN_MISSING_FIELDS = "Missing parameters for login"
INVALID_EMAIL = "Email inválido"
INVALID_NAME = "Nombre inválido"
INVALID_CATEGORY = "Categoría inválida"
INVALID_USERNAME = "Nombre de usuario inválido"
INVALID_AGE = "Edad inválida"
PASSWORD_TOO_SHORT = "La contraseña debe tener al menos 8 caracteres"
PASSWORD_FORBIDDEN = "La contraseña contiene caracteres o patrones no permitidos"
PASSWORD_LETTER_AND_DIGIT = "La contraseña debe contener al menos una letra y un número"

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_SQL_KEYWORDS = re.compile(
    r"\b(?:SELECT|INSERT|UPDATE|DELETE|DROP|CREATE)\b", re.IGNORECASE | re.ASCII
)
_INJECTION_SHAPE = re.compile(
    r"\bUNION\b|\bOR\b.*=.*\b|\bAND\b.*=.*\b", re.IGNORECASE | re.ASCII
)
_DANGEROUS_CHARACTERS = frozenset("'\"`;\\")
_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"[0-9]")

_UPDATE_TEXT_FIELDS = ("email", "name", "surname", "username")


def _is_missing(value: Any) -> bool:
    # JSON-falsy: absent, null, false, "" and 0 all count as missing.
    if isinstance(value, (list, dict)):
        return False
    return not value


def _check_email(value: Any) -> str:
    if not isinstance(value, str) or not EMAIL_PATTERN.fullmatch(value):
        raise ValidationError(ValidationCode.invalid_email, INVALID_EMAIL)
    return value.lower()


def _check_text(value: Any, code: ValidationCode, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(code, message)
    return value.strip()


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _optional_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def _coerce_age(value: Any) -> int | None:
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
        return None
    if not MIN_AGE <= value <= MAX_AGE:
        return None
    return int(value)


def coerce_password(value: Any) -> str | None:
    """Return the password as text; numbers are stringified, anything else is absent."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else repr(value)
    return None


def has_forbidden_pattern(password: str) -> bool:
    """Return ``True`` when the password contains characters or shapes we refuse to store.

    Only printable characters outside the quote/backslash/semicolon set are
    allowed; SQL keywords and ``OR x=y`` style fragments are rejected as well.
    """
    if password.isspace():
        return True
    for char in password:
        if char in _DANGEROUS_CHARACTERS or not char.isprintable():
            return True
    return bool(_SQL_KEYWORDS.search(password) or _INJECTION_SHAPE.search(password))


def check_password_policy(value: Any) -> str:
    """Apply the registration password rules and return the coerced password."""
    password = coerce_password(value)
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(ValidationCode.weak_password, PASSWORD_TOO_SHORT)
    if has_forbidden_pattern(password):
        raise ValidationError(ValidationCode.forbidden_pattern, PASSWORD_FORBIDDEN)
    if not (_LETTER.search(password) and _DIGIT.search(password)):
        raise ValidationError(ValidationCode.weak_password, PASSWORD_LETTER_AND_DIGIT)
    return password


def validate_user_registration(payload: Mapping[str, Any]) -> RegisterUserInput:
    """Validate a user sign-up payload."""
    if (
        any(_is_missing(payload.get(key)) for key in ("email", "name", "password"))
        or payload.get("age") is None
    ):
        raise ValidationError(ValidationCode.missing_fields, USER_MISSING_FIELDS)

    email = _check_email(payload["email"])
    name = _check_text(payload["name"], ValidationCode.invalid_name, INVALID_NAME)

    age = _coerce_age(payload["age"])
    if age is None:
        raise ValidationError(ValidationCode.invalid_age, INVALID_AGE)

    username = payload.get("username")
    if username is not None:
        username = _check_text(username, ValidationCode.invalid_username, INVALID_USERNAME)

    password = check_password_policy(payload["password"])
    return RegisterUserInput(
        email=email,
        name=name,
        age=age,
        password=password,
        username=username,
        surname=_optional_text(payload.get("surname")),
    )


def validate_business_registration(payload: Mapping[str, Any]) -> RegisterBusinessInput:
    """Validate a business sign-up payload."""
    required = ("email", "name", "busi_username", "category", "password")
    if any(_is_missing(payload.get(key)) for key in required):
        raise ValidationError(ValidationCode.missing_fields, BUSINESS_MISSING_FIELDS)

    email = _check_email(payload["email"])
    name = _check_text(payload["name"], ValidationCode.invalid_name, INVALID_NAME)
    category = _check_text(
        payload["category"], ValidationCode.invalid_category, INVALID_CATEGORY
    )
    busi_username = _check_text(
        payload["busi_username"], ValidationCode.invalid_username, INVALID_USERNAME
    )
    password = check_password_policy(payload["password"])
    return RegisterBusinessInput(
        email=email,
        name=name,
        busi_username=busi_username,
        category=category,
        password=password,
        rating=_optional_number(payload.get("rating")),
        description=_optional_text(payload.get("description")),
        address=_optional_text(payload.get("address")),
    )


def validate_login(payload: Mapping[str, Any]) -> LoginInput:
    email = payload.get("email")
    password = coerce_password(payload.get("password"))
    if _is_missing(email) or not isinstance(email, str) or not password:
        raise ValidationError(ValidationCode.missing_fields, LOGIN_MISSING_FIELDS)
    return LoginInput(email=email.strip().lower(), password=password)


def validate_user_update(payload: Mapping[str, Any]) -> UserPatch:
    """Collect the well-typed fields of a partial user update.

    Nothing is required and mistyped fields are dropped rather than rejected.
    The password only needs to meet the minimum length here.
    """
    patch = UserPatch()
    for key in _UPDATE_TEXT_FIELDS:
        value = payload.get(key)
        if isinstance(value, str):
            patch.changes[key] = value.lower() if key == "email" else value

    age = payload.get("age")
    if isinstance(age, int) and not isinstance(age, bool) and MIN_AGE <= age <= MAX_AGE:
        patch.changes["age"] = age

    password = payload.get("password")
    if isinstance(password, str) and len(password) >= MIN_PASSWORD_LENGTH:
        patch.password = password
    return patch
