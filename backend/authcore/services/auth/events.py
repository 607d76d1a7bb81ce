"""
Security audit events.

Records go to the ``authcore.security`` logger with an ``event`` name and a
``details`` mapping, which :class:`authcore.core.logger.JSONFormatter` renders
as structured fields. Emails are masked; tokens and passwords are never passed
in.
"""

from __future__ import annotations

import logging
from typing import Any

security_logger = logging.getLogger("authcore.security")


def mask_email(email: Any) -> str:
    """Keep the first three characters of an email, e.g. ``ali***``."""
    if not isinstance(email, str) or not email:
        return "unknown"
    return f"{email[:3]}***"


def log_security_event(
    event: str, *, ip: str | None = None, level: int = logging.WARNING, **details: Any
) -> None:
    payload = {"ip": ip or "unknown", **details}
    security_logger.log(level, "security event: %s", event, extra={"event": event, "details": payload})


def registration_attempt(
    email: Any, ip: str | None, *, success: bool, reason: str | None = None
) -> None:
    log_security_event(
        "registration_attempt",
        ip=ip,
        level=logging.INFO if success else logging.WARNING,
        email=mask_email(email),
        success=success,
        reason=reason,
    )


def successful_login(user_id: int, email: str, ip: str | None) -> None:
    log_security_event(
        "successful_login", ip=ip, level=logging.INFO, user_id=user_id, email=mask_email(email)
    )


def failed_login(email: Any, ip: str | None, reason: str = "invalid_credentials") -> None:
    log_security_event("failed_login", ip=ip, email=mask_email(email), reason=reason)


def token_validation_failure(ip: str | None, reason: str = "invalid_token") -> None:
    log_security_event("token_validation_failure", ip=ip, reason=reason)


def logout(user_id: int, ip: str | None, *, refresh_revoked: bool) -> None:
    log_security_event(
        "logout", ip=ip, level=logging.INFO, user_id=user_id, refresh_revoked=refresh_revoked
    )


def refresh_rotated(user_id: int, ip: str | None) -> None:
    log_security_event("refresh_rotated", ip=ip, level=logging.INFO, user_id=user_id)


def refresh_replay_detected(user_id: int, ip: str | None, *, revoked: int) -> None:
    log_security_event(
        "refresh_replay_detected", ip=ip, level=logging.ERROR, user_id=user_id, chain_revoked=revoked
    )
