"""Marshmallow schemas for the HTTP boundary."""

from __future__ import annotations

from .auth import (
    LoginSchema,
    MessageSchema,
    RefreshSchema,
    RegisterSchema,
    SessionResponseSchema,
    UserSchema,
)

__all__ = [
    "RegisterSchema",
    "LoginSchema",
    "RefreshSchema",
    "UserSchema",
    "SessionResponseSchema",
    "MessageSchema",
]
