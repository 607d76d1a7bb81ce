# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.exc import OperationalError

from authcore.models.refresh_token import RefreshToken
from authcore.services._shared.errors import TransientError
from authcore.services._shared.ports import (
    IssuedRefreshToken,
    RefreshTokenStore,
    RefreshTokenView,
    RotationOutcome,
    RotationResult,
)
from authcore.services._shared.ports.refresh_token_store import (
    as_utc,
    hash_token,
    new_raw_token,
    utcnow,
)
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

# Upper bound on rotation lineage walked by revoke_chain
MAX_CHAIN_LENGTH = 10_000


def _to_view(row: RefreshToken) -> RefreshTokenView:
    return RefreshTokenView(
        token_hash=row.token_hash,
        user_id=row.user_id,
        expires_at=as_utc(row.expires_at),
        revoked=bool(row.revoked),
        replaced_by=row.replaced_by,
    )


@dataclass(slots=True)
class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Relational refresh token store with atomic rotation.

    Each public call runs in its own Unit of Work. ``rotate`` consumes the old
    row with a conditional ``UPDATE`` and inserts the successor inside the same
    transaction, so either both land or neither does.

    :param lifetime: Validity window of newly minted tokens.
    :param uow_factory: Read-write Unit of Work constructor.
    :param ro_uow_factory: Read-only Unit of Work constructor.
    """

    lifetime: timedelta = timedelta(days=7)
    uow_factory: Callable[[], SQLAlchemyUnitOfWork] = field(default=SQLAlchemyUnitOfWork)
    ro_uow_factory: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = field(
        default=SQLAlchemyReadOnlyUnitOfWork
    )

    # -------------------- helpers --------------------

    @contextmanager
    def _write(self) -> Iterator[SQLAlchemyUnitOfWork]:
        try:
            with self.uow_factory() as uow:
                yield uow
        except OperationalError as exc:
            raise TransientError("Refresh token store unavailable") from exc

    @contextmanager
    def _read(self) -> Iterator[SQLAlchemyReadOnlyUnitOfWork]:
        try:
            with self.ro_uow_factory() as uow:
                yield uow
        except OperationalError as exc:
            raise TransientError("Refresh token store unavailable") from exc

    def _mint(self, uow: SQLAlchemyUnitOfWork, user_id: int, now: datetime) -> IssuedRefreshToken:
        raw = new_raw_token()
        row = uow.refresh_tokens.insert(
            token_hash=hash_token(raw),
            user_id=user_id,
            expires_at=now + self.lifetime,
        )
        return IssuedRefreshToken(raw_token=raw, record=_to_view(row))

    # -------------------- API ------------------------

    def create(self, user_id: int) -> IssuedRefreshToken:
        with self._write() as uow:
            return self._mint(uow, user_id, utcnow())

    def find_by_raw_token(self, raw_token: str) -> RefreshTokenView | None:
        if not isinstance(raw_token, str) or not raw_token:
            return None
        with self._read() as uow:
            row = uow.refresh_tokens.get_by_hash(hash_token(raw_token))
            return _to_view(row) if row is not None else None

    def rotate(self, record: RefreshTokenView) -> RotationOutcome:
        now = utcnow()
        with self._write() as uow:
            raw = new_raw_token()
            successor_hash = hash_token(raw)
            if uow.refresh_tokens.consume(
                token_hash=record.token_hash, successor_hash=successor_hash, now=now
            ):
                row = uow.refresh_tokens.insert(
                    token_hash=successor_hash,
                    user_id=record.user_id,
                    expires_at=now + self.lifetime,
                )
                return RotationOutcome(
                    RotationResult.OK, IssuedRefreshToken(raw_token=raw, record=_to_view(row))
                )

            # Lost the race or presented a non-active token: classify from current state
            current = uow.refresh_tokens.get_by_hash(record.token_hash)
            if current is None:
                return RotationOutcome(RotationResult.NOT_FOUND)
            if as_utc(current.expires_at) <= now:
                return RotationOutcome(RotationResult.EXPIRED)
            return RotationOutcome(RotationResult.REPLAYED)

    def revoke(self, record: RefreshTokenView) -> bool:
        with self._write() as uow:
            return uow.refresh_tokens.revoke_hashes([record.token_hash]) == 1

    def revoke_all(self, user_id: int) -> int:
        with self._write() as uow:
            return uow.refresh_tokens.revoke_for_user(user_id)

    def revoke_chain(self, record: RefreshTokenView) -> int:
        with self._write() as uow:
            lineage: list[str] = []
            seen = {record.token_hash}
            current = uow.refresh_tokens.get_by_hash(record.token_hash)
            next_hash = current.replaced_by if current is not None else None
            while next_hash and next_hash not in seen and len(lineage) < MAX_CHAIN_LENGTH:
                seen.add(next_hash)
                lineage.append(next_hash)
                row = uow.refresh_tokens.get_by_hash(next_hash)
                if row is None:
                    break
                next_hash = row.replaced_by
            return uow.refresh_tokens.revoke_hashes(lineage)

    def cleanup_expired(self) -> int:
        with self._write() as uow:
            return uow.refresh_tokens.delete_stale(utcnow())
