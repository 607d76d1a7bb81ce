"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv

from authcore.services._shared.errors import ConfigurationError

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

MIN_JWT_SECRET_LENGTH: Final[int] = 32
MIN_HASH_ITERATIONS: Final[int] = 10_000
MAX_HASH_ITERATIONS: Final[int] = 2_000_000

# Loads .env in development (no-op when missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, keeping ``default`` on garbage."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str | None
        Key used by ``flask-jwt-extended`` for signing access tokens. Required;
        :func:`validate_security_settings` refuses to start without it.
    JWT_ACCESS_TOKEN_EXPIRES: int
        Default access-token lifetime in seconds.
    PASSWORD_HASH_ITERATIONS: int
        PBKDF2 work factor for password hashing (bounded at startup).
    REFRESH_TOKEN_DAYS: int
        Refresh-token lifetime in days.
    REFRESH_COOKIE_*: various
        Attributes of the refresh-token cookie set by the HTTP layer.
    HIDE_CONFLICTS: bool
        Report duplicate registrations as a generic 400 instead of 409.
    REDIS_URL: str | None
        Backing store for the revocation list; in-memory when unset.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    SECURITY_LOG_LEVEL: str | None
        Threshold for the ``authcore.security`` channel; inherits ``LOG_LEVEL``.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ACCESS_TOKEN_EXPIRES = env_int("JWT_ACCESS_TOKEN_EXPIRES", 3600)
    JWT_TOKEN_LOCATION = ["headers"]
    PASSWORD_HASH_ITERATIONS = env_int("PASSWORD_HASH_ITERATIONS", 600_000)

    # Refresh tokens
    REFRESH_TOKEN_DAYS = env_int("REFRESH_TOKEN_DAYS", 7)
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refresh_token")
    REFRESH_COOKIE_PATH = os.getenv("REFRESH_COOKIE_PATH", "/api/v1/auth")
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", False)
    REFRESH_COOKIE_SAMESITE = os.getenv("REFRESH_COOKIE_SAMESITE", "Lax")

    HIDE_CONFLICTS = env_bool("HIDE_CONFLICTS", False)

    # Storage
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = os.getenv("REDIS_URL")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    SECURITY_LOG_LEVEL = os.getenv("SECURITY_LOG_LEVEL")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default. ``JWT_SECRET_KEY`` must still come from the
    environment (or ``.env``).
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Lowest accepted hash cost so the suite stays fast.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_SECRET_KEY = "testing-secret-key-with-at-least-32-chars"
    PASSWORD_HASH_ITERATIONS = MIN_HASH_ITERATIONS
    REDIS_URL = None
    USE_PROXYFIX = False
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Secure cookies and generic conflict responses are on unless explicitly
    disabled through the environment.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", True)
    HIDE_CONFLICTS = env_bool("HIDE_CONFLICTS", True)


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_security_settings(config: Mapping[str, Any]) -> None:
    """Refuse to start with a missing/weak signing secret or an unsafe hash cost.

    :param config: Loaded Flask config (or any mapping with the same keys).
    :raises ConfigurationError: On the first invalid setting.
    """
    secret = config.get("JWT_SECRET_KEY")
    if not secret or not isinstance(secret, str):
        raise ConfigurationError("JWT_SECRET_KEY is not configured")
    if len(secret) < MIN_JWT_SECRET_LENGTH:
        raise ConfigurationError(
            f"JWT_SECRET_KEY must be at least {MIN_JWT_SECRET_LENGTH} characters long"
        )

    iterations = config.get("PASSWORD_HASH_ITERATIONS")
    if (
        not isinstance(iterations, int)
        or isinstance(iterations, bool)
        or not MIN_HASH_ITERATIONS <= iterations <= MAX_HASH_ITERATIONS
    ):
        raise ConfigurationError(
            "PASSWORD_HASH_ITERATIONS must be an integer between "
            f"{MIN_HASH_ITERATIONS} and {MAX_HASH_ITERATIONS}"
        )

    ttl = config.get("JWT_ACCESS_TOKEN_EXPIRES")
    if not isinstance(ttl, int) or isinstance(ttl, bool) or ttl <= 0:
        raise ConfigurationError("JWT_ACCESS_TOKEN_EXPIRES must be a positive number of seconds")

    days = config.get("REFRESH_TOKEN_DAYS")
    if not isinstance(days, int) or isinstance(days, bool) or days <= 0:
        raise ConfigurationError("REFRESH_TOKEN_DAYS must be a positive number of days")
