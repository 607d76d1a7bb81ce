from __future__ import annotations

import hashlib
import secrets
import threading
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from enum import Enum, auto
from typing import Protocol


class RotationResult(Enum):
    """Outcome of an atomic refresh rotation attempt."""

    OK = auto()
    NOT_FOUND = auto()
    EXPIRED = auto()
    REPLAYED = auto()


@dataclass(frozen=True, slots=True)
class RefreshTokenView:
    """
    Read-model for a persisted refresh token.

    :ivar token_hash: SHA-256 hex digest of the raw token.
    :ivar user_id: Owner user id.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar revoked: Whether the token was consumed by rotation or revoked.
    :ivar replaced_by: Hash of the successor produced by rotation, if any.
    """

    token_hash: str
    user_id: int
    expires_at: datetime
    revoked: bool = False
    replaced_by: str | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        return as_utc(self.expires_at) <= (now or utcnow())

    def is_active(self, now: datetime | None = None) -> bool:
        """Usable for exactly one rotation: neither revoked nor expired."""
        return not self.revoked and not self.is_expired(now)


@dataclass(frozen=True, slots=True)
class IssuedRefreshToken:
    """
    A freshly minted refresh token.

    :ivar raw_token: Opaque value for the client; returned once, never stored.
    :ivar record: Persisted view (hash only).
    """

    raw_token: str
    record: RefreshTokenView


@dataclass(frozen=True, slots=True)
class RotationOutcome:
    result: RotationResult
    issued: IssuedRefreshToken | None = None

    @property
    def ok(self) -> bool:
        return self.result is RotationResult.OK


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def new_raw_token() -> str:
    """Generate an opaque, URL-safe refresh token."""
    return secrets.token_urlsafe(48)


def hash_token(raw_token: str) -> str:
    """Return the digest under which a refresh token is persisted."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


class RefreshTokenStore(Protocol):
    """
    Stateful store for refresh tokens.

    ``rotate`` MUST be atomic: the old token is revoked and linked to its
    successor in the same step the successor is created, or not at all.
    """

    lifetime: timedelta

    def create(self, user_id: int) -> IssuedRefreshToken:
        """Mint and persist a new refresh token for ``user_id``."""
        ...

    def find_by_raw_token(self, raw_token: str) -> RefreshTokenView | None:
        """Look up by raw value. Validity is checked by the caller via ``is_active``."""
        ...

    def rotate(self, record: RefreshTokenView) -> RotationOutcome:
        """
        Consume ``record`` and mint its successor.

        :returns: ``OK`` with the successor, otherwise the specific failure.
                  A token that was already consumed or revoked yields ``REPLAYED``.
        """
        ...

    def revoke(self, record: RefreshTokenView) -> bool:
        """Revoke a single token. :returns: True if it was active."""
        ...

    def revoke_all(self, user_id: int) -> int:
        """Revoke every active token of ``user_id``. :returns: Number affected."""
        ...

    def revoke_chain(self, record: RefreshTokenView) -> int:
        """Revoke every descendant reachable through ``replaced_by``. :returns: Number affected."""
        ...

    def cleanup_expired(self) -> int:
        """Delete expired or revoked rows. Advisory only. :returns: Rows deleted."""
        ...


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store with atomic rotation behavior.

    .. note::
       Uses a threading lock so concurrent rotations of one token produce
       exactly one winner.
    """

    def __init__(self, lifetime: timedelta = timedelta(days=7)) -> None:
        self.lifetime = lifetime
        self._by_hash: dict[str, RefreshTokenView] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    def _mint_locked(self, user_id: int, now: datetime) -> IssuedRefreshToken:
        raw = new_raw_token()
        view = RefreshTokenView(
            token_hash=hash_token(raw),
            user_id=user_id,
            expires_at=now + self.lifetime,
        )
        self._by_hash[view.token_hash] = view
        return IssuedRefreshToken(raw_token=raw, record=view)

    # -------------------------- API ----------------------------

    def create(self, user_id: int) -> IssuedRefreshToken:
        with self._lock:
            return self._mint_locked(user_id, utcnow())

    def find_by_raw_token(self, raw_token: str) -> RefreshTokenView | None:
        if not isinstance(raw_token, str) or not raw_token:
            return None
        with self._lock:
            return self._by_hash.get(hash_token(raw_token))

    def rotate(self, record: RefreshTokenView) -> RotationOutcome:
        now = utcnow()
        with self._lock:
            current = self._by_hash.get(record.token_hash)
            if current is None:
                return RotationOutcome(RotationResult.NOT_FOUND)
            if current.is_expired(now):
                return RotationOutcome(RotationResult.EXPIRED)
            if current.revoked:
                return RotationOutcome(RotationResult.REPLAYED)

            issued = self._mint_locked(current.user_id, now)
            self._by_hash[current.token_hash] = replace(
                current, revoked=True, replaced_by=issued.record.token_hash
            )
            return RotationOutcome(RotationResult.OK, issued)

    def revoke(self, record: RefreshTokenView) -> bool:
        with self._lock:
            current = self._by_hash.get(record.token_hash)
            if current is None or current.revoked:
                return False
            self._by_hash[current.token_hash] = replace(current, revoked=True)
            return True

    def revoke_all(self, user_id: int) -> int:
        with self._lock:
            count = 0
            for key, view in list(self._by_hash.items()):
                if view.user_id == user_id and not view.revoked:
                    self._by_hash[key] = replace(view, revoked=True)
                    count += 1
            return count

    def revoke_chain(self, record: RefreshTokenView) -> int:
        with self._lock:
            count = 0
            seen: set[str] = set()
            current = self._by_hash.get(record.token_hash)
            next_hash = current.replaced_by if current else None
            while next_hash and next_hash not in seen:
                seen.add(next_hash)
                view = self._by_hash.get(next_hash)
                if view is None:
                    break
                if not view.revoked:
                    self._by_hash[next_hash] = replace(view, revoked=True)
                    count += 1
                next_hash = view.replaced_by
            return count

    def cleanup_expired(self) -> int:
        now = utcnow()
        with self._lock:
            stale = [k for k, v in self._by_hash.items() if v.revoked or v.is_expired(now)]
            for key in stale:
                del self._by_hash[key]
            return len(stale)

    def get(self, token_hash: str) -> RefreshTokenView | None:
        """Fetch a snapshot by hash (test/inspection helper)."""
        return self._by_hash.get(token_hash)
