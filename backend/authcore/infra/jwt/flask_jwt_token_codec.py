# authcore/infra/jwt/flask_jwt_token_codec.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from flask import current_app
from flask_jwt_extended.exceptions import JWTDecodeError
from jwt import ExpiredSignatureError, InvalidTokenError

from authcore.services._shared.errors import ConfigurationError
from authcore.services._shared.ports import TokenCodec, TokenStatus, TokenVerification
from authcore.services._shared.ports.token_codec import SUBJECT_CLAIM, validate_claims


@dataclass(slots=True)
class JWTTokenCodec(TokenCodec):
    """
    Adapter for Flask-JWT-Extended.

    .. note::
       Requires an active Flask app context with proper JWT settings.

    :param default_ttl: Lifetime in seconds when ``issue`` gets no ``ttl``;
                        falls back to ``JWT_ACCESS_TOKEN_EXPIRES``.
    """

    default_ttl: int | None = None

    def _ensure_secret(self) -> None:
        # flask-jwt-extended would silently fall back to SECRET_KEY; we don't.
        if not current_app.config.get("JWT_SECRET_KEY"):
            raise ConfigurationError("JWT_SECRET_KEY is not configured")

    def _ttl(self, ttl: int | None) -> timedelta:
        if ttl is not None:
            return timedelta(seconds=ttl)
        if self.default_ttl is not None:
            return timedelta(seconds=self.default_ttl)
        return timedelta(seconds=int(current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES", 3600)))

    def issue(self, claims: Mapping[str, Any], *, ttl: int | None = None) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        self._ensure_secret()
        validate_claims(claims)

        # Every call gets a fresh random jti, so identical claims never
        # produce identical tokens.
        return cast(
            str,
            _create_access(
                identity=str(claims[SUBJECT_CLAIM]),
                additional_claims=dict(claims),
                expires_delta=self._ttl(ttl),
            ),
        )

    def verify(self, token: str) -> TokenVerification:
        from flask_jwt_extended import decode_token as _decode

        if not isinstance(token, str) or not token.strip():
            return TokenVerification(TokenStatus.INVALID)
        self._ensure_secret()
        try:
            claims = cast(dict[str, Any], _decode(token.strip()))
        except ExpiredSignatureError:
            return TokenVerification(TokenStatus.EXPIRED)
        except (InvalidTokenError, JWTDecodeError):
            # malformed, bad signature, wrong algorithm, missing claim
            return TokenVerification(TokenStatus.INVALID)
        if claims.get("type") != "access":
            return TokenVerification(TokenStatus.INVALID)
        return TokenVerification(TokenStatus.VALID, claims)
