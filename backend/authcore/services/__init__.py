"""Service layer public API.

Re-exports
----------
- Result and error primitives (from ``authcore.services._shared``)
    * :class:`Outcome`
    * :class:`ServiceError`, :class:`ErrorKind` and the concrete errors

The session service itself lives in :mod:`authcore.services.auth`; it is not
re-exported here because it pulls in the persistence layer, which in turn
depends on :mod:`authcore.core.extensions`.
"""

from __future__ import annotations

from ._shared.errors import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    ErrorKind,
    FieldViolation,
    NotFoundError,
    ServiceError,
    TransientError,
    ValidationError,
)
from ._shared.result import Outcome

__all__ = [
    "Outcome",
    "ErrorKind",
    "ServiceError",
    "FieldViolation",
    "ValidationError",
    "AuthenticationError",
    "ConflictError",
    "NotFoundError",
    "ConfigurationError",
    "TransientError",
]
