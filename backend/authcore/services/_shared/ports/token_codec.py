from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Protocol

from authcore.services._shared.errors import FieldViolation, ValidationError

# Registered claims are owned by the codec; callers may not set them.
RESERVED_CLAIMS = frozenset({"sub", "iat", "exp", "nbf", "jti", "type", "fresh"})
SUBJECT_CLAIM = "uid"


class TokenStatus(Enum):
    """Outcome of verifying a bearer token."""

    VALID = auto()
    EXPIRED = auto()
    INVALID = auto()


@dataclass(frozen=True, slots=True)
class TokenVerification:
    """
    Result of :meth:`TokenCodec.verify`.

    :ivar status: Valid, expired, or malformed/signature-mismatch.
    :ivar claims: Decoded claims (including ``iat``/``exp``) when valid.
    """

    status: TokenStatus
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return self.status is TokenStatus.VALID


def validate_claims(claims: Any) -> None:
    """
    Reject claims that are empty, not a flat mapping, or shadow registered claims.

    This is narrower than "any non-empty mapping": every codec requires the
    ``uid`` subject and refuses names it manages itself (``sub``, ``exp``,
    ``jti`` and the rest of ``RESERVED_CLAIMS``), so callers cannot forge
    expiry or identity through extra claims.

    :raises ValidationError: Listing every offending key.
    """
    if not isinstance(claims, Mapping) or not claims:
        raise ValidationError.single("claims", "Claims must be a non-empty mapping")

    violations: list[FieldViolation] = []
    for key, value in claims.items():
        if not isinstance(key, str):
            violations.append(FieldViolation("claims", f"Claim name {key!r} must be a string"))
        elif key in RESERVED_CLAIMS:
            violations.append(FieldViolation(key, f"Claim '{key}' is reserved"))
        elif value is not None and not isinstance(value, str | int | float | bool):
            violations.append(FieldViolation(key, f"Claim '{key}' must be a scalar value"))
    if SUBJECT_CLAIM not in claims or claims[SUBJECT_CLAIM] in (None, ""):
        violations.append(FieldViolation(SUBJECT_CLAIM, f"Claim '{SUBJECT_CLAIM}' is required"))
    if violations:
        raise ValidationError(violations)


class TokenCodec(Protocol):
    """Port for signing and verifying self-contained access tokens."""

    def issue(self, claims: Mapping[str, Any], *, ttl: int | None = None) -> str:
        """
        Sign ``claims`` with ``iat``/``exp`` added.

        :param claims: Flat claim mapping; must carry ``uid``.
        :param ttl: Lifetime in seconds; the configured default when ``None``.
        :raises ConfigurationError: No signing secret configured.
        :raises ValidationError: Claims are empty, nested, or reserved.
        """
        ...

    def verify(self, token: str) -> TokenVerification:
        """Check signature and expiry; never raises for routine bad input."""
        ...


class StubTokenCodec(TokenCodec):
    """Deterministic in-memory codec used in unit tests."""

    def __init__(self, default_ttl: int = 3600) -> None:
        self.default_ttl = default_ttl
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def issue(self, claims: Mapping[str, Any], *, ttl: int | None = None) -> str:
        validate_claims(claims)
        self._seq += 1
        now = time.time()
        payload: dict[str, Any] = dict(claims)
        payload.update(
            {
                "sub": str(claims[SUBJECT_CLAIM]),
                "jti": f"jti-{self._seq}",
                "iat": int(now),
                "exp": now + (self.default_ttl if ttl is None else ttl),
            }
        )
        token = f"access.{payload['sub']}.{self._seq}"
        self._issued[token] = payload
        return token

    def verify(self, token: str) -> TokenVerification:
        payload = self._issued.get(token) if isinstance(token, str) else None
        if payload is None:
            return TokenVerification(TokenStatus.INVALID)
        if payload["exp"] <= time.time():
            return TokenVerification(TokenStatus.EXPIRED)
        return TokenVerification(TokenStatus.VALID, dict(payload))

    def expire(self, token: str) -> None:
        """Force ``token`` past its expiry (test helper)."""
        self._issued[token]["exp"] = time.time() - 1
