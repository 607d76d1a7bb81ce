"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, current_app, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from authcore.core.logger import ensure_request_id
from authcore.services._shared.errors import ErrorKind, ServiceError, ValidationError

log = logging.getLogger(__name__)

GENERIC_CONFLICT_MESSAGE = "Registration failed"

SERVER_MESSAGES = {
    HTTPStatus.INTERNAL_SERVER_ERROR: "Unexpected error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service temporarily unavailable",
}

# ErrorKind -> (status, stable code)
KIND_STATUS: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.VALIDATION: (HTTPStatus.BAD_REQUEST, "validation_error"),
    ErrorKind.AUTHENTICATION: (HTTPStatus.UNAUTHORIZED, "unauthorized"),
    ErrorKind.CONFLICT: (HTTPStatus.CONFLICT, "conflict"),
    ErrorKind.NOT_FOUND: (HTTPStatus.NOT_FOUND, "not_found"),
    ErrorKind.TRANSIENT: (HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable"),
    ErrorKind.CONFIGURATION: (HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error"),
}


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        415: "unsupported_media_type",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    errors: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param errors: Field-level violations, for validation failures.
    :returns: Problem+JSON dictionary.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if errors:
        problem["errors"] = errors
    problem["request_id"] = ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any]) -> Response:
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier, typically snake_case.
    errors : list[dict[str, str]] | None, optional
        Field-level violations included in the response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.errors = errors or []

    def to_problem(self) -> dict[str, Any]:
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            errors=self.errors or None,
        )


class Unauthorized(APIError):
    """401 when authentication fails."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code="unauthorized")


def from_service_error(error: ServiceError) -> APIError:
    """
    Translate a service-level error into an HTTP error by its ``kind``.

    Conflicts are reported as a generic 400 when ``HIDE_CONFLICTS`` is on, so
    the response does not confirm that an email is registered.
    """
    status, code = KIND_STATUS.get(error.kind, (HTTPStatus.INTERNAL_SERVER_ERROR, "error"))

    if error.kind is ErrorKind.CONFLICT and current_app.config.get("HIDE_CONFLICTS"):
        return APIError(GENERIC_CONFLICT_MESSAGE, HTTPStatus.BAD_REQUEST, "bad_request")

    if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        # Never leak internals (store addresses, config names) to clients
        message = SERVER_MESSAGES.get(status, "Unexpected error")
    else:
        message = str(error)

    errors = None
    if isinstance(error, ValidationError):
        errors = [{"field": v.field, "message": v.message} for v in error.violations]
    return APIError(message, status, code, errors)


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        problem = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s request_id=%s",
            err.code,
            err.status_code,
            err.message,
            problem.get("request_id"),
        )
        return _problem_response(problem), err.status_code

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        api_err = from_service_error(err)
        if api_err.status_code >= 500:
            log.error("ServiceError: kind=%s", err.kind, exc_info=err)
        return handle_api_error(api_err)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        problem = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level(
            "HTTPException: code=%s status=%s detail=%s request_id=%s",
            error_code,
            status,
            message,
            problem.get("request_id"),
        )
        return _problem_response(problem), status

    @app.errorhandler(MarshmallowValidationError)
    def handle_schema_error(err: MarshmallowValidationError):
        messages = err.messages if isinstance(err.messages, dict) else {"_schema": err.messages}
        errors = [
            {"field": str(field), "message": str(msg)}
            for field, msgs in messages.items()
            for msg in (msgs if isinstance(msgs, list) else [msgs])
        ]
        problem = _as_problem(
            status=HTTPStatus.BAD_REQUEST,
            code="validation_error",
            message="Validation failed",
            errors=errors,
        )
        log.warning("Schema ValidationError: request_id=%s", problem.get("request_id"))
        return _problem_response(problem), HTTPStatus.BAD_REQUEST

    @app.errorhandler(OperationalError)
    @app.errorhandler(RedisError)
    def handle_store_unavailable(err: Exception):
        # E.g., database or Redis connectivity
        problem = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="service_unavailable",
            message="Service temporarily unavailable",
        )
        log.error(
            "%s: request_id=%s",
            type(err).__name__,
            problem.get("request_id"),
            exc_info=True,
        )
        return _problem_response(problem), HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Unexpected server-side error; never leak internal details
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        log.error(
            "Unhandled exception: request_id=%s",
            problem.get("request_id"),
            exc_info=True,
        )
        return _problem_response(problem), HTTPStatus.INTERNAL_SERVER_ERROR
