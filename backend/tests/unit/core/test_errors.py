"""Unit tests for service-error to HTTP translation."""

from __future__ import annotations

import pytest

from authcore.core.errors import from_service_error
from authcore.services._shared.errors import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    TransientError,
    ValidationError,
)


@pytest.fixture
def ctx(app):
    with app.test_request_context("/api/v1/auth/register"):
        yield app


@pytest.mark.parametrize(
    ("error", "status", "code"),
    [
        (ValidationError.single("email", "Email is required"), 400, "validation_error"),
        (AuthenticationError("Invalid credentials"), 401, "unauthorized"),
        (ConflictError("User", "Registration failed"), 409, "conflict"),
        (NotFoundError("User", 3), 404, "not_found"),
        (TransientError("Refresh token store unavailable"), 503, "service_unavailable"),
        (ConfigurationError("JWT_SECRET_KEY is not configured"), 500, "internal_server_error"),
    ],
)
def test_kinds_map_to_status(ctx, error, status, code) -> None:
    api_error = from_service_error(error)
    assert api_error.status_code == status
    assert api_error.code == code


def test_server_side_messages_are_generic(ctx) -> None:
    api_error = from_service_error(ConfigurationError("JWT_SECRET_KEY is not configured"))
    assert "JWT_SECRET_KEY" not in api_error.message


def test_validation_errors_carry_field_list(ctx) -> None:
    problem = from_service_error(ValidationError.single("name", "Name is required")).to_problem()
    assert problem["errors"] == [{"field": "name", "message": "Name is required"}]
    assert problem["instance"] == "/api/v1/auth/register"


def test_hidden_conflicts_become_bad_request(ctx, monkeypatch) -> None:
    monkeypatch.setitem(ctx.config, "HIDE_CONFLICTS", True)
    api_error = from_service_error(ConflictError("User", "Registration failed"))
    assert api_error.status_code == 400
    assert api_error.message == "Registration failed"
