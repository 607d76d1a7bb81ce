from __future__ import annotations

import hashlib
import threading
import time
from typing import Protocol

# Sweep expired entries opportunistically every N inserts.
SWEEP_EVERY = 100


def token_fingerprint(token: str) -> str:
    """Return the SHA-256 hex digest used as the revocation key for ``token``."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class RevocationStore(Protocol):
    """
    Denylist for **access tokens** revoked before their natural expiry.

    Entries expire together with the token they cover, so the store only ever
    holds tokens that would otherwise still be accepted.
    """

    def revoke(self, token: str, ttl_seconds: int) -> None:
        """Record ``token`` as revoked for the next ``ttl_seconds`` seconds. Idempotent."""
        ...

    def is_revoked(self, token: str) -> bool:
        """Return ``True`` while a live entry exists for ``token``."""
        ...

    def purge_expired(self) -> int:
        """Drop expired entries; return how many were removed."""
        ...

    def size(self) -> int:
        """Number of live entries."""
        ...

    def clear(self) -> None:
        """Remove every entry."""
        ...

    def close(self) -> None:
        """Release resources at application teardown."""
        ...


class InMemoryRevocationStore(RevocationStore):
    """
    Process-local revocation list.

    Safe for concurrent use from worker threads: every read-modify-write of
    the map happens under the instance lock. Expired entries are evicted on
    lookup and swept every :data:`SWEEP_EVERY` inserts.
    """

    def __init__(self, *, clock=time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, float] = {}
        self._inserts = 0
        self._lock = threading.Lock()

    def revoke(self, token: str, ttl_seconds: int) -> None:
        key = token_fingerprint(token)
        expires_at = self._clock() + max(0, int(ttl_seconds))
        with self._lock:
            self._entries[key] = expires_at
            self._inserts += 1
            if self._inserts % SWEEP_EVERY == 0:
                self._sweep_locked()

    def is_revoked(self, token: str) -> bool:
        key = token_fingerprint(token)
        with self._lock:
            expires_at = self._entries.get(key)
            if expires_at is None:
                return False
            if self._clock() >= expires_at:
                del self._entries[key]
                return False
            return True

    def purge_expired(self) -> int:
        with self._lock:
            return self._sweep_locked()

    def size(self) -> int:
        with self._lock:
            self._sweep_locked()
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def close(self) -> None:
        self.clear()

    def _sweep_locked(self) -> int:
        now = self._clock()
        stale = [key for key, expires_at in self._entries.items() if now >= expires_at]
        for key in stale:
            del self._entries[key]
        return len(stale)
