"""Field-level input checks for the auth use-cases."""

from __future__ import annotations

import re
from typing import Any

from authcore.models.user import normalize_email
from authcore.services._shared.errors import FieldViolation
from authcore.services.auth.passwords import check_password_policy

EMAIL_MAX_LENGTH = 254
NAME_MAX_LENGTH = 200

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_email(email: Any) -> list[FieldViolation]:
    if email is None or (isinstance(email, str) and not email.strip()):
        return [FieldViolation("email", "Email is required")]
    if not isinstance(email, str):
        return [FieldViolation("email", "Email must be a string")]
    normalized = normalize_email(email)
    if len(normalized) > EMAIL_MAX_LENGTH:
        return [FieldViolation("email", f"Email must be at most {EMAIL_MAX_LENGTH} characters")]
    if not _EMAIL_RE.match(normalized):
        return [FieldViolation("email", "Email must be a valid email address")]
    return []


def validate_name(name: Any) -> list[FieldViolation]:
    if name is None:
        return [FieldViolation("name", "Name is required")]
    if not isinstance(name, str):
        return [FieldViolation("name", "Name must be a string")]
    trimmed = name.strip()
    if not trimmed:
        return [FieldViolation("name", "Name is required")]
    if len(trimmed) > NAME_MAX_LENGTH:
        return [FieldViolation("name", f"Name must be at most {NAME_MAX_LENGTH} characters")]
    return []


def validate_register(email: Any, password: Any, name: Any) -> list[FieldViolation]:
    """
    Collect every violation of a registration payload.

    :returns: Violations ordered email, password, name. Empty when valid.
    """
    return [
        *validate_email(email),
        *check_password_policy(password),
        *validate_name(name),
    ]


def is_present(value: Any) -> bool:
    """True for a non-blank string."""
    return isinstance(value, str) and bool(value.strip())
