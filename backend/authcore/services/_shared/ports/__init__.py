"""
authcore.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token management infrastructure.

These ports decouple the service layer from concrete implementations
of token signing, revocation, and refresh storage mechanisms.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec`: signing and verification of access tokens.

- :mod:`revocation_store`:
    Defines :class:`~.RevocationStore`: denylist for logged-out access tokens.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, :class:`~.RotationResult`,
    and :class:`~.RefreshTokenView`: refresh-token persistence and rotation.

Design Notes
------------
Concrete adapters (Redis, SQLAlchemy) live under ``authcore.infra``; the
in-memory variants here double as test fakes.
"""

from __future__ import annotations

from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    IssuedRefreshToken,
    RefreshTokenStore,
    RefreshTokenView,
    RotationOutcome,
    RotationResult,
    hash_token,
)
from .revocation_store import InMemoryRevocationStore, RevocationStore, token_fingerprint
from .token_codec import StubTokenCodec, TokenCodec, TokenStatus, TokenVerification

__all__ = [
    "TokenCodec",
    "TokenStatus",
    "TokenVerification",
    "StubTokenCodec",
    "RevocationStore",
    "InMemoryRevocationStore",
    "token_fingerprint",
    "RefreshTokenStore",
    "RefreshTokenView",
    "IssuedRefreshToken",
    "RotationOutcome",
    "RotationResult",
    "InMemoryRefreshTokenStore",
    "hash_token",
]
