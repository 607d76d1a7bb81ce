"""Authentication endpoints using the session service."""

from __future__ import annotations

from flask import Blueprint, request

from authcore.api.deps import (
    bearer_token,
    clear_refresh_cookie,
    json_response,
    refresh_cookie,
    session_service,
    set_refresh_cookie,
    timing,
)
from authcore.core.errors import Unauthorized, from_service_error
from authcore.schemas import (
    LoginSchema,
    MessageSchema,
    RefreshSchema,
    RegisterSchema,
    SessionResponseSchema,
    UserSchema,
)
from authcore.services._shared.result import Outcome
from authcore.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn, SessionOut
from authcore.services.auth.service import TOKEN_REQUIRED

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
user_schema = UserSchema()
session_schema = SessionResponseSchema()
message_schema = MessageSchema()


def _unwrap(outcome: Outcome):
    if not outcome.ok:
        raise from_service_error(outcome.error)  # type: ignore[arg-type]
    return outcome.value


def _session_response(session: SessionOut, *, status: int = 200):
    response = json_response({"data": session_schema.dump(session)}, status=status)
    set_refresh_cookie(response, session.refresh_token)
    return response


def _require_bearer() -> str:
    token = bearer_token()
    if token is None:
        raise Unauthorized(TOKEN_REQUIRED)
    return token


@bp.post("/register")
@timing
def register():
    """Create an account and open a session."""
    data = register_schema.load(request.get_json(silent=True) or {})
    session = _unwrap(session_service().register(RegisterIn(**data)))
    return _session_response(session, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and open a session."""
    data = login_schema.load(request.get_json(silent=True) or {})
    session = _unwrap(session_service().login(LoginIn(**data)))
    return _session_response(session)


@bp.get("/me")
@timing
def me():
    """Return the authenticated user profile."""
    user = _unwrap(session_service().get_current_user(_require_bearer()))
    return json_response({"data": user_schema.dump(user)})


@bp.post("/logout")
@timing
def logout():
    """Revoke the access token and the refresh cookie's token."""
    token = _require_bearer()
    body = refresh_schema.load(request.get_json(silent=True) or {})
    raw_refresh = refresh_cookie() or body["refresh_token"]
    out = _unwrap(session_service().logout(LogoutIn(token=token, refresh_token=raw_refresh)))
    response = json_response({"data": message_schema.dump(out)})
    clear_refresh_cookie(response)
    return response


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh token and issue a new access token."""
    body = refresh_schema.load(request.get_json(silent=True) or {})
    raw_refresh = refresh_cookie() or body["refresh_token"]
    outcome = session_service().refresh_session(RefreshIn(refresh_token=raw_refresh))
    if not outcome.ok:
        err = from_service_error(outcome.error)  # type: ignore[arg-type]
        response = json_response(err.to_problem(), status=err.status_code)
        response.mimetype = "application/problem+json"
        clear_refresh_cookie(response)
        return response
    return _session_response(outcome.value)  # type: ignore[arg-type]
