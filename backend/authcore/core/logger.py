"""JSON logging with request correlation and structured security events.

Every record is rendered as a single JSON line. Security events emitted on the
``authcore.security`` channel carry ``event`` and ``details`` attributes which
end up as top-level fields; secret-bearing keys inside ``details`` are masked
before formatting.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")
# WSGI environ key holding the id of the current request
REQUEST_ID_ENVIRON_KEY = "authcore.request_id"

SECURITY_LOGGER = "authcore.security"

# Record attributes promoted to top-level JSON fields when present
EXTRA_FIELDS = ("event", "details", "endpoint", "elapsed_ms")

SENSITIVE_KEYS = frozenset(
    {"password", "password_hash", "token", "access_token", "refresh_token", "authorization"}
)
REDACTED = "[REDACTED]"


def redact(details: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``details`` with secret-bearing keys masked (one level of nesting)."""
    clean: dict[str, Any] = {}
    for key, value in details.items():
        if str(key).lower() in SENSITIVE_KEYS:
            clean[key] = REDACTED
        elif isinstance(value, Mapping):
            clean[key] = {
                k: REDACTED if str(k).lower() in SENSITIVE_KEYS else v for k, v in value.items()
            }
        else:
            clean[key] = value
    return clean


class JSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line.

    :param environment: Deployment name stamped on every line (``APP_ENV``).
    """

    def __init__(self, environment: str | None = None) -> None:
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        if self.environment:
            payload["environment"] = self.environment
        payload.update({k: getattr(record, k) for k in EXTRA_FIELDS if hasattr(record, k)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on every record (``None`` outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


class RedactionFilter(logging.Filter):
    """Mask secret-bearing keys of a record's ``details`` mapping."""

    def filter(self, record: logging.LogRecord) -> bool:
        details = getattr(record, "details", None)
        if isinstance(details, Mapping):
            record.details = redact(details)
        return True


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary.

    Inside a request the id is taken from the first correlation header the
    client sent, otherwise a UUID4; either way it is cached in the WSGI
    environ of that request. Outside a request every call returns a fresh
    UUID4.
    """
    if not has_request_context():
        return str(uuid4())
    request_id = request.environ.get(REQUEST_ID_ENVIRON_KEY)
    if request_id is None:
        request_id = next(
            (request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)),
            str(uuid4()),
        )
        request.environ[REQUEST_ID_ENVIRON_KEY] = request_id
    return request_id


def configure_logging(
    level: str | int = "INFO",
    *,
    environment: str | None = None,
    security_level: str | int | None = None,
) -> None:
    """Route the root logger to stdout as JSON.

    :param level: Root verbosity.
    :param environment: Deployment name added to each line.
    :param security_level: Separate threshold for ``authcore.security``;
        inherits ``level`` when ``None``.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(environment))
    handler.addFilter(RequestIdFilter())
    handler.addFilter(RedactionFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level(level))

    security = logging.getLogger(SECURITY_LOGGER)
    security.setLevel(logging.NOTSET if security_level is None else _level(security_level))


def _level(value: str | int) -> int | str:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(value.upper())
    return resolved if isinstance(resolved, int) else value.upper()


def init_app(app: Flask) -> None:
    """Seed the request id early and echo it back on every response."""
    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "JSONFormatter",
    "RedactionFilter",
    "RequestIdFilter",
    "configure_logging",
    "ensure_request_id",
    "init_app",
    "redact",
]
