"""Refresh-token repository built around conditional updates."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import cast

from sqlalchemy import delete, or_, select, update
from sqlalchemy.engine import CursorResult

from authcore.models.refresh_token import RefreshToken
from authcore.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence for :class:`RefreshToken`.

    State changes are single ``UPDATE ... WHERE revoked = false`` statements,
    so two writers racing on one row see exactly one affected row between them.
    """

    model = RefreshToken

    def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def insert(self, *, token_hash: str, user_id: int, expires_at: datetime) -> RefreshToken:
        return self.add(
            RefreshToken(
                token_hash=token_hash,
                user_id=user_id,
                expires_at=expires_at,
                revoked=False,
            )
        )

    def consume(self, *, token_hash: str, successor_hash: str, now: datetime) -> bool:
        """
        Revoke an active token and link it to its successor.

        :returns: ``True`` if this call won; ``False`` if the row was missing,
                  expired, or already revoked.
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == token_hash,
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .values(revoked=True, replaced_by=successor_hash)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt) == 1

    def revoke_hashes(self, token_hashes: Iterable[str]) -> int:
        hashes = list(token_hashes)
        if not hashes:
            return 0
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_hash.in_(hashes), RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt)

    def revoke_for_user(self, user_id: int) -> int:
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt)

    def delete_stale(self, now: datetime) -> int:
        """Delete expired or revoked rows."""
        stmt = (
            delete(RefreshToken)
            .where(or_(RefreshToken.revoked.is_(True), RefreshToken.expires_at <= now))
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt)

    def _rowcount(self, stmt) -> int:
        result = cast(CursorResult, self.session.execute(stmt))
        return int(result.rowcount or 0)
