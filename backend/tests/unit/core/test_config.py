"""Unit tests for startup configuration checks."""

from __future__ import annotations

import pytest

from authcore.core.config import (
    MAX_HASH_ITERATIONS,
    MIN_HASH_ITERATIONS,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    env_bool,
    env_int,
    get_config,
    validate_security_settings,
)
from authcore.factory import create_app
from authcore.services._shared.errors import ConfigurationError
from tests.helpers.utils import not_raises

VALID = {
    "JWT_SECRET_KEY": "x" * 32,
    "PASSWORD_HASH_ITERATIONS": MIN_HASH_ITERATIONS,
    "JWT_ACCESS_TOKEN_EXPIRES": 3600,
    "REFRESH_TOKEN_DAYS": 7,
}


def test_valid_settings_pass() -> None:
    with not_raises(ConfigurationError):
        validate_security_settings(VALID)


@pytest.mark.parametrize(
    ("override", "fragment"),
    [
        ({"JWT_SECRET_KEY": None}, "JWT_SECRET_KEY is not configured"),
        ({"JWT_SECRET_KEY": ""}, "JWT_SECRET_KEY is not configured"),
        ({"JWT_SECRET_KEY": "short"}, "at least 32 characters"),
        ({"PASSWORD_HASH_ITERATIONS": MIN_HASH_ITERATIONS - 1}, "PASSWORD_HASH_ITERATIONS"),
        ({"PASSWORD_HASH_ITERATIONS": MAX_HASH_ITERATIONS + 1}, "PASSWORD_HASH_ITERATIONS"),
        ({"PASSWORD_HASH_ITERATIONS": "600000"}, "PASSWORD_HASH_ITERATIONS"),
        ({"PASSWORD_HASH_ITERATIONS": True}, "PASSWORD_HASH_ITERATIONS"),
        ({"JWT_ACCESS_TOKEN_EXPIRES": 0}, "JWT_ACCESS_TOKEN_EXPIRES"),
        ({"REFRESH_TOKEN_DAYS": -1}, "REFRESH_TOKEN_DAYS"),
    ],
)
def test_unsafe_settings_are_refused(override, fragment) -> None:
    with pytest.raises(ConfigurationError, match=fragment):
        validate_security_settings(VALID | override)


def test_create_app_refuses_to_start_without_secret() -> None:
    class NoSecret(TestingConfig):
        JWT_SECRET_KEY = None

    with pytest.raises(ConfigurationError):
        create_app(NoSecret)


def test_create_app_refuses_weak_hash_cost() -> None:
    class Cheap(TestingConfig):
        PASSWORD_HASH_ITERATIONS = 1_000

    with pytest.raises(ConfigurationError):
        create_app(Cheap)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("production", ProductionConfig),
        ("Testing", TestingConfig),
        ("development", DevelopmentConfig),
        ("unknown", DevelopmentConfig),
    ],
)
def test_get_config_follows_app_env(monkeypatch, name, expected) -> None:
    monkeypatch.setenv("APP_ENV", name)
    assert get_config() is expected


def test_env_helpers(monkeypatch) -> None:
    monkeypatch.setenv("FLAG", "Yes")
    monkeypatch.setenv("NUMBER", " 42 ")
    monkeypatch.setenv("GARBAGE", "forty-two")

    assert env_bool("FLAG") is True
    assert env_bool("MISSING_FLAG", default=True) is True
    assert env_int("NUMBER", 1) == 42
    assert env_int("GARBAGE", 7) == 7
