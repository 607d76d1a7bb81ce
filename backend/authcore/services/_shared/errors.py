"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between
repositories, stores, and application services.

Every error carries a tagged :class:`ErrorKind`. The HTTP boundary
(``authcore/core/errors.py``) switches on that kind to choose a status code;
it never inspects message text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL includes the constraint name in the message; SQLite only names
    the columns, so ``uq_<table>_<column>`` is also matched as ``<table>.<column>``.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint to match (e.g., ``"uq_users_email"``).
    :returns: ``True`` if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    name = constraint_name.lower()
    if name in message:
        return True
    if name.startswith("uq_") and "unique" in message:
        table, _, column = name[3:].partition("_")
        return f"{table}.{column}" in message
    return False


class ErrorKind(StrEnum):
    """Tag identifying the category of a :class:`ServiceError`."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    CONFIGURATION = "configuration"
    TRANSIENT = "transient"


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - Expected failures are returned inside an ``Outcome``; they are only
      raised when a caller explicitly unwraps, or at startup.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.VALIDATION


@dataclass(frozen=True, slots=True)
class FieldViolation:
    """
    A single field-level validation failure.

    :param field: Offending input field (e.g., ``"password"``).
    :param message: Human-readable rule that was violated.
    """

    field: str
    message: str


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(eq=False)
class ValidationError(ServiceError):
    """
    Raised (or returned) when input is malformed.

    :param violations: Every field-level rule that failed, in check order.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.VALIDATION

    violations: list[FieldViolation] = field(default_factory=list)

    @classmethod
    def single(cls, field_name: str, message: str) -> ValidationError:
        return cls([FieldViolation(field_name, message)])

    def __str__(self) -> str:
        if not self.violations:
            return "Validation failed"
        return self.violations[0].message


@dataclass(eq=False)
class AuthenticationError(ServiceError):
    """
    Bad credentials or a bad/expired/revoked token.

    The message is always generic; it never says which check failed.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.AUTHENTICATION

    message: str = "Invalid credentials"

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :param key: Identifier or search key.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.NOT_FOUND

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


@dataclass(eq=False)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :param detail: Short human-readable explanation, safe for clients.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.CONFLICT

    entity: str
    detail: str

    def __str__(self) -> str:
        return self.detail


class ConfigurationError(ServiceError):
    """Missing or invalid startup configuration. Fatal: the process must not serve."""

    kind: ClassVar[ErrorKind] = ErrorKind.CONFIGURATION


class TransientError(ServiceError):
    """Store/repository I/O failure. Safe to retry; maps to a server error."""

    kind: ClassVar[ErrorKind] = ErrorKind.TRANSIENT
