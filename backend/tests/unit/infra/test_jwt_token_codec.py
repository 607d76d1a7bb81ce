# tests/unit/infra/test_jwt_token_codec.py
"""
Unit tests for JWTTokenCodec (flask-jwt-extended adapter).

Runs inside the session-wide app context opened by the ``db`` fixture.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta

import jwt as pyjwt
import pytest

from authcore.infra.jwt.flask_jwt_token_codec import JWTTokenCodec
from authcore.services._shared.errors import ConfigurationError, ValidationError
from authcore.services._shared.ports import StubTokenCodec, TokenStatus


@pytest.fixture
def codec() -> JWTTokenCodec:
    return JWTTokenCodec()


def test_issue_then_verify_returns_claims(codec):
    token = codec.issue({"uid": 7, "email": "a@example.com"})
    result = codec.verify(token)

    assert result.status is TokenStatus.VALID
    assert result.valid
    assert result.claims["uid"] == 7
    assert result.claims["email"] == "a@example.com"
    assert result.claims["exp"] > result.claims["iat"]


def test_default_ttl_comes_from_config(codec, app):
    claims = codec.verify(codec.issue({"uid": 1})).claims
    assert claims["exp"] - claims["iat"] == app.config["JWT_ACCESS_TOKEN_EXPIRES"]


def test_explicit_ttl_is_used(codec):
    claims = codec.verify(codec.issue({"uid": 1}, ttl=60)).claims
    assert claims["exp"] - claims["iat"] == 60


def test_identical_claims_give_distinct_tokens(codec):
    assert codec.issue({"uid": 1}) != codec.issue({"uid": 1})


def test_token_expires_after_ttl(codec):
    token = codec.issue({"uid": 1}, ttl=1)
    time.sleep(1.5)
    assert codec.verify(token).status is TokenStatus.EXPIRED


def test_token_signed_with_other_secret_is_invalid(codec):
    now = datetime.now(UTC)
    forged = pyjwt.encode(
        {
            "sub": "1",
            "uid": 1,
            "type": "access",
            "jti": "x",
            "iat": now,
            "exp": now + timedelta(minutes=5),
        },
        "another-secret-that-is-long-enough-1234",
        algorithm="HS256",
    )
    assert codec.verify(forged).status is TokenStatus.INVALID


@pytest.mark.parametrize("token", ["", "   ", "not-a-jwt", "a.b.c", None])
def test_malformed_tokens_are_invalid(codec, token):
    assert codec.verify(token).status is TokenStatus.INVALID


def test_tampered_token_is_invalid(codec):
    header, payload, _ = codec.issue({"uid": 1}).split(".")
    other_signature = codec.issue({"uid": 2}).split(".")[2]
    tampered = ".".join([header, payload, other_signature])
    assert codec.verify(tampered).status is TokenStatus.INVALID


def test_missing_secret_is_a_configuration_error(codec, app, monkeypatch):
    monkeypatch.setitem(app.config, "JWT_SECRET_KEY", None)
    with pytest.raises(ConfigurationError):
        codec.issue({"uid": 1})


@pytest.mark.parametrize(
    "claims",
    [
        {},
        {"email": "no-subject@example.com"},
        {"uid": 1, "exp": 123},
        {"uid": 1, "sub": "1"},
        {"uid": 1, "roles": ["admin"]},
        {"uid": 1, "profile": {"a": 1}},
        ["uid", 1],
    ],
)
def test_bad_claims_are_rejected(codec, claims):
    with pytest.raises(ValidationError):
        codec.issue(claims)


@pytest.mark.parametrize("codec_cls", [JWTTokenCodec, StubTokenCodec])
def test_every_codec_requires_uid_and_refuses_managed_claims(codec_cls):
    with pytest.raises(ValidationError) as excinfo:
        codec_cls().issue({"email": "a@example.com", "jti": "mine", "fresh": True})

    fields = {v.field for v in excinfo.value.violations}
    assert fields == {"uid", "jti", "fresh"}
