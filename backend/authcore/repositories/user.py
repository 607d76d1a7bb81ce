"""User repository: lookup and creation only."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from authcore.models.user import User, normalize_email
from authcore.repositories.base import BaseRepository

UNIQUE_EMAIL_CONSTRAINT = "uq_users_email"


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER hashes passwords or issues tokens; the session service does.
    Duplicate emails surface as :class:`sqlalchemy.exc.IntegrityError` on
    :data:`UNIQUE_EMAIL_CONSTRAINT` when the insert is flushed.
    """

    model = User

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(User.email == normalize_email(email))
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == normalize_email(email))
        return bool(self.session.execute(stmt).first())

    def create(self, *, email: str, password_hash: str, name: str) -> User:
        """Insert a user and flush so a duplicate email fails here.

        :raises sqlalchemy.exc.IntegrityError: On a duplicate email.
        """
        user = User(email=email, password_hash=password_hash, name=name)
        return self.add(user)
