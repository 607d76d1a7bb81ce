"""Integration tests for the authentication endpoints."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from authcore.repositories.user import UserRepository
from tests.helpers.assertions import assert_json_keys, assert_problem
from tests.helpers.http import cookie_value, json_headers, set_cookie

BASE = "/api/v1/auth"
COOKIE = "refresh_token"
PAYLOAD = {"email": "user@example.com", "password": "Abc12345!", "name": "User"}


def _register(client, **overrides):
    return client.post(f"{BASE}/register", json=PAYLOAD | overrides)


def _login(client, email=PAYLOAD["email"], password=PAYLOAD["password"]):
    return client.post(f"{BASE}/login", json={"email": email, "password": password})


# -------------------------------- register -------------------------------- #
def test_register_returns_session_and_sets_cookie(client) -> None:
    """Registration answers 201 with the user and an access token."""

    resp = _register(client)

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert_json_keys(data, {"user", "token", "token_type"})
    assert data["token_type"] == "Bearer"
    assert data["user"]["email"] == "user@example.com"
    assert "password" not in data["user"]
    assert "password_hash" not in data["user"]
    assert "refresh_token" not in data

    jar = set_cookie(resp, COOKIE)
    assert jar is not None
    assert jar[COOKIE].value
    assert jar[COOKIE]["httponly"]
    assert jar[COOKIE]["path"] == BASE


def test_register_duplicate_is_conflict(client) -> None:
    assert _register(client).status_code == 201

    resp = _register(client, email="  USER@example.com ")

    assert_problem(resp, 409, "Registration failed")


def test_register_duplicate_hidden_as_bad_request(client, app, monkeypatch) -> None:
    monkeypatch.setitem(app.config, "HIDE_CONFLICTS", True)
    _register(client)

    body = assert_problem(_register(client), 400, "Registration failed")
    assert body["code"] == "bad_request"


def test_register_validation_lists_field_errors(client) -> None:
    resp = client.post(f"{BASE}/register", json={"email": "bad", "password": "short"})

    body = assert_problem(resp, 400)
    assert body["code"] == "validation_error"
    fields = {e["field"] for e in body["errors"]}
    assert fields == {"email", "password", "name"}


def test_register_without_json_body_is_validation_error(client) -> None:
    resp = client.post(f"{BASE}/register", data="not json", content_type="text/plain")
    assert_problem(resp, 400)


# ---------------------------------- login ---------------------------------- #
def test_login_success(client) -> None:
    _register(client)

    resp = _login(client, email="USER@example.com")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["user"]["email"] == "user@example.com"
    assert data["token"]
    assert cookie_value(resp, COOKIE)


@pytest.mark.parametrize(
    ("email", "password"),
    [
        ("user@example.com", "Wrong-pass1"),
        ("nobody@example.com", "Abc12345!"),
        ("", ""),
    ],
)
def test_login_failures_share_one_message(client, email, password) -> None:
    _register(client)
    resp = _login(client, email=email, password=password)
    assert_problem(resp, 401, "Invalid credentials")
    assert set_cookie(resp, COOKIE) is None


# ----------------------------------- me ------------------------------------ #
def test_me_with_bearer_token(client) -> None:
    token = _register(client).get_json()["data"]["token"]

    resp = client.get(f"{BASE}/me", headers=json_headers(token))

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["email"] == "user@example.com"
    assert data["name"] == "User"


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Token abc"}, {"Authorization": "Bearer "}],
)
def test_me_without_bearer_is_unauthorized(client, headers) -> None:
    assert_problem(client.get(f"{BASE}/me", headers=headers), 401, "Token is required")


def test_me_with_garbage_token(client) -> None:
    resp = client.get(f"{BASE}/me", headers=json_headers("garbage"))
    assert_problem(resp, 401, "Invalid or expired token")


# --------------------------------- logout ---------------------------------- #
def test_logout_revokes_token_and_clears_cookie(client) -> None:
    token = _register(client).get_json()["data"]["token"]

    resp = client.post(f"{BASE}/logout", headers=json_headers(token))

    assert resp.status_code == 200
    assert resp.get_json()["data"]["message"] == "Logged out successfully"
    assert cookie_value(resp, COOKIE) == ""

    after = client.get(f"{BASE}/me", headers=json_headers(token))
    assert_problem(after, 401, "Invalid or expired token")


def test_logout_also_kills_refresh_token(client, app) -> None:
    first = _register(client)
    raw_refresh = cookie_value(first, COOKIE)
    token = first.get_json()["data"]["token"]

    client.post(f"{BASE}/logout", headers=json_headers(token))

    bare = app.test_client(use_cookies=False)
    resp = bare.post(f"{BASE}/refresh", json={"refresh_token": raw_refresh})
    assert_problem(resp, 401, "Invalid refresh token")


def test_logout_requires_bearer(client) -> None:
    assert_problem(client.post(f"{BASE}/logout"), 401, "Token is required")


# --------------------------------- refresh --------------------------------- #
def test_refresh_rotates_cookie_and_issues_access(client) -> None:
    first = _register(client)
    old_refresh = cookie_value(first, COOKIE)

    resp = client.post(f"{BASE}/refresh")

    assert resp.status_code == 200
    new_refresh = cookie_value(resp, COOKIE)
    assert new_refresh and new_refresh != old_refresh
    token = resp.get_json()["data"]["token"]
    assert client.get(f"{BASE}/me", headers=json_headers(token)).status_code == 200


def test_refresh_replay_is_rejected_and_clears_cookie(client, app) -> None:
    old_refresh = cookie_value(_register(client), COOKIE)
    assert client.post(f"{BASE}/refresh").status_code == 200

    bare = app.test_client(use_cookies=False)
    resp = bare.post(f"{BASE}/refresh", json={"refresh_token": old_refresh})

    assert_problem(resp, 401, "Invalid refresh token")
    assert cookie_value(resp, COOKIE) == ""

    # the rotated successor died with the replay
    assert_problem(client.post(f"{BASE}/refresh"), 401, "Invalid refresh token")


def test_refresh_without_token(app) -> None:
    bare = app.test_client(use_cookies=False)
    assert_problem(bare.post(f"{BASE}/refresh"), 401, "Invalid refresh token")


# --------------------------------- plumbing -------------------------------- #
def test_request_id_is_echoed(client) -> None:
    resp = client.get(f"{BASE}/me", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"
    assert resp.get_json()["request_id"] == "req-123"


def test_unknown_route_is_problem_json(client) -> None:
    assert_problem(client.get("/api/v1/nope"), 404)


def test_each_request_gets_its_own_id(client) -> None:
    first = client.get(f"{BASE}/me", headers={"X-Request-ID": "req-a"})
    second = client.get(f"{BASE}/me", headers={"X-Correlation-ID": "req-b"})
    third = client.get(f"{BASE}/me")

    assert first.headers["X-Request-ID"] == "req-a"
    assert second.headers["X-Request-ID"] == "req-b"
    assert third.headers["X-Request-ID"] not in {"req-a", "req-b"}
    assert third.get_json()["request_id"] == third.headers["X-Request-ID"]


def test_user_store_outage_is_service_unavailable(client, monkeypatch) -> None:
    def _db_down(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(UserRepository, "get_by_email", _db_down)

    body = assert_problem(_login(client), 503, "Service temporarily unavailable")
    assert body["code"] == "service_unavailable"
    assert "locked" not in body["detail"]
