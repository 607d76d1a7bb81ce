from collections.abc import Iterator
from contextlib import contextmanager
from typing import cast

import redis  # type: ignore[import-untyped]

from authcore.services._shared.errors import TransientError
from authcore.services._shared.ports.revocation_store import token_fingerprint


class RedisRevocationStore:
    """
    Revocation list for **access tokens** backed by Redis key expiry.

    Each revoked token becomes ``deny:at:<sha256>`` with a TTL equal to the
    token's remaining lifetime, so Redis evicts entries exactly when the
    underlying token would have expired anyway. Connection and command
    failures are raised as ``TransientError``.
    """

    def __init__(self, r: redis.Redis, *, prefix: str = "deny:at:"):
        self.r = r
        self.prefix = prefix

    def _k(self, token: str) -> str:
        return f"{self.prefix}{token_fingerprint(token)}"

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except redis.exceptions.RedisError as exc:
            raise TransientError("Revocation store unavailable") from exc

    def revoke(self, token: str, ttl_seconds: int) -> None:
        ttl = int(ttl_seconds)
        with self._guard():
            if ttl <= 0:
                # already expired: nothing left to deny
                self.r.delete(self._k(token))
                return
            # SET with EX overwrites any previous marker; logout is idempotent
            self.r.set(self._k(token), "1", ex=ttl)

    def is_revoked(self, token: str) -> bool:
        with self._guard():
            return cast(int, self.r.exists(self._k(token))) == 1

    def purge_expired(self) -> int:
        # Redis expires keys on its own
        return 0

    def size(self) -> int:
        with self._guard():
            return sum(1 for _ in self.r.scan_iter(match=f"{self.prefix}*"))

    def clear(self) -> None:
        with self._guard():
            keys = list(self.r.scan_iter(match=f"{self.prefix}*"))
            if keys:
                self.r.delete(*keys)

    def close(self) -> None:
        self.r.close()
