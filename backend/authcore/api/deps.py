"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request

from authcore.core.extensions import get_components
from authcore.core.logger import ensure_request_id
from authcore.services._shared.base import ServiceContext
from authcore.services.auth.service import SessionService

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "


def bearer_token() -> str | None:
    """Return the token of an ``Authorization: Bearer <token>`` header, if well-formed."""
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def session_service() -> SessionService:
    """Build a :class:`SessionService` bound to the current request."""
    ctx = ServiceContext(request_id=ensure_request_id(), client_ip=request.remote_addr)
    return SessionService.from_components(get_components(), ctx=ctx)


def set_refresh_cookie(response: Response, raw_token: str) -> None:
    """Attach the refresh token as an ``HttpOnly`` cookie scoped to the auth routes."""
    cfg = current_app.config
    response.set_cookie(
        cfg["REFRESH_COOKIE_NAME"],
        raw_token,
        max_age=int(cfg["REFRESH_TOKEN_DAYS"]) * 24 * 60 * 60,
        path=cfg["REFRESH_COOKIE_PATH"],
        secure=bool(cfg["REFRESH_COOKIE_SECURE"]),
        httponly=True,
        samesite=cfg["REFRESH_COOKIE_SAMESITE"],
    )


def clear_refresh_cookie(response: Response) -> None:
    cfg = current_app.config
    response.delete_cookie(
        cfg["REFRESH_COOKIE_NAME"],
        path=cfg["REFRESH_COOKIE_PATH"],
        secure=bool(cfg["REFRESH_COOKIE_SECURE"]),
        httponly=True,
        samesite=cfg["REFRESH_COOKIE_SAMESITE"],
    )


def refresh_cookie() -> str | None:
    return request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"]) or None


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""
    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
