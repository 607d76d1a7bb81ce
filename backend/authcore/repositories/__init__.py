"""Repository package exports."""

from .refresh_token import RefreshTokenRepository
from .user import UserRepository

__all__ = [
    "RefreshTokenRepository",
    "UserRepository",
]
