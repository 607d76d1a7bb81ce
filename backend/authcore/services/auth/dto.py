# authcore/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

# ---------------------------- Input DTOs ---------------------------------- #
# Inputs arrive straight from the HTTP body, so fields are typed ``Any`` and
# checked by the service.


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for self-registration.

    :param email: Login email (normalized by the service).
    :type email: str
    :param password: Raw password (hashed by the service).
    :type password: str
    :param name: Display name.
    :type name: str
    """

    email: Any
    password: Any
    name: Any


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: Any
    password: Any


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param token: Encoded access token.
    :type token: str
    :param refresh_token: Raw refresh token to revoke alongside, if any.
    :type refresh_token: str | None
    """

    token: Any
    refresh_token: Any = None


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for session refresh.

    :param refresh_token: Raw (opaque) refresh token.
    :type refresh_token: str
    """

    refresh_token: Any


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Public-safe projection of a user (never includes the password hash).
    """

    id: int
    email: str
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, user) -> UserPublicOut:
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


@dataclass(frozen=True, slots=True)
class SessionOut:
    """
    Output DTO for register/login/refresh.

    :param user: Authenticated user.
    :type user: UserPublicOut
    :param token: Encoded access token.
    :type token: str
    :param refresh_token: Raw refresh token; hand to the client once.
    :type refresh_token: str
    """

    user: UserPublicOut
    token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutOut:
    """
    Output DTO for logout.

    :param message: Confirmation text.
    :param refresh_revoked: Whether a refresh token was revoked too.
    """

    message: str = "Logged out successfully"
    refresh_revoked: bool = False
