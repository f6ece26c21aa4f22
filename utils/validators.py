"""
Pure input validators shared by every account operation.

Each function either returns a normalized value or raises
``ValidationError``.
"""

from __future__ import annotations

from typing import Optional

from utils.errors import ValidationError

MIN_PASSWORD_LENGTH = 6


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def require_fields(**fields: Optional[str]) -> None:
    """Raise if any of the named fields is missing or whitespace-only."""
    missing = [name for name, value in fields.items() if is_blank(value)]
    if missing:
        raise ValidationError(
            f"All required fields ({', '.join(fields)}) must be provided. "
            f"Missing: {', '.join(missing)}"
        )


def normalize_username(username: str) -> str:
    cleaned = (username or "").strip().lower()
    if not cleaned:
        raise ValidationError("Username must not be empty.")
    return cleaned


def normalize_email(email: str) -> str:
    """Trim + lowercase, then require ``local@domain`` with a single ``@``."""
    cleaned = (email or "").strip().lower()
    local, sep, domain = cleaned.partition("@")
    if not sep or not local or not domain or "@" in domain:
        raise ValidationError("Please enter a valid email address.")
    return cleaned


def validate_password(password: str, *, field: str = "password") -> str:
    if password is None or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"The {field} must be at least {MIN_PASSWORD_LENGTH} characters long."
        )
    return password


def clean_full_name(full_name: str) -> str:
    cleaned = (full_name or "").strip()
    if not cleaned:
        raise ValidationError("Full name must not be empty.")
    return cleaned
