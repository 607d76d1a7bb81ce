"""Authentication and session lifecycle: service, DTOs and password hashing."""

from __future__ import annotations

from .dto import LoginIn, LogoutIn, LogoutOut, RefreshIn, RegisterIn, SessionOut, UserPublicOut
from .passwords import PasswordHasher, check_password_policy
from .service import SessionService

__all__ = [
    "SessionService",
    "PasswordHasher",
    "check_password_policy",
    "RegisterIn",
    "LoginIn",
    "LogoutIn",
    "RefreshIn",
    "SessionOut",
    "LogoutOut",
    "UserPublicOut",
]
