"""Flask extension instances and the per-app auth component registry."""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from authcore.services._shared.errors import ConfigurationError
from authcore.services._shared.ports import RefreshTokenStore, RevocationStore, TokenCodec

if TYPE_CHECKING:
    from authcore.services.auth.passwords import PasswordHasher

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Stateless extension objects (import-safe); per-app state lives in app.extensions
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()

EXTENSION_KEY = "authcore"


@dataclass(slots=True)
class AuthComponents:
    """
    Long-lived collaborators of the session service, built once per app.

    :ivar token_codec: Access-token signer/verifier.
    :ivar revocation_store: Denylist for logged-out access tokens.
    :ivar refresh_store: Refresh-token persistence with atomic rotation.
    :ivar hasher: Password hasher at the configured work factor.
    """

    token_codec: TokenCodec
    revocation_store: RevocationStore
    refresh_store: RefreshTokenStore
    hasher: PasswordHasher


def _build_revocation_store(app: Flask) -> RevocationStore:
    from authcore.infra.redis.redis_revocation_store import RedisRevocationStore
    from authcore.services._shared.ports import InMemoryRevocationStore

    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        app.logger.info("REDIS_URL not set; using in-process revocation store")
        return InMemoryRevocationStore()

    client = redis.Redis.from_url(redis_url)
    try:
        client.ping()
    except RedisError as exc:
        raise ConfigurationError(f"Failed to connect to Redis at {redis_url!r}") from exc
    return RedisRevocationStore(client)


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT and the auth components.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`authcore.models` package so SQLAlchemy metadata is ready for
        migrations.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from authcore import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    from authcore.infra.jwt.flask_jwt_token_codec import JWTTokenCodec
    from authcore.infra.sql.sqlalchemy_refresh_token_store import SQLAlchemyRefreshTokenStore
    from authcore.services.auth.passwords import PasswordHasher

    components = AuthComponents(
        token_codec=JWTTokenCodec(),
        revocation_store=_build_revocation_store(app),
        refresh_store=SQLAlchemyRefreshTokenStore(
            lifetime=timedelta(days=int(app.config["REFRESH_TOKEN_DAYS"]))
        ),
        hasher=PasswordHasher(int(app.config["PASSWORD_HASH_ITERATIONS"])),
    )
    app.extensions[EXTENSION_KEY] = components
    # Closed when the app is collected, or at interpreter exit
    weakref.finalize(app, components.revocation_store.close)


def get_components(app: Flask | None = None) -> AuthComponents:
    """Return the auth components of ``app`` (or the current app)."""
    target = app or current_app
    components = target.extensions.get(EXTENSION_KEY)
    if components is None:
        raise RuntimeError("Auth components are not initialized. Call init_app() first.")
    return components
