"""Typed outcome values returned by application services.

Expected negative conditions (bad input, bad credentials, duplicates) travel
back to the caller as an :class:`Outcome` carrying a tagged
:class:`~authcore.services._shared.errors.ServiceError`. Exceptions are kept for
the unexpected: a dependency that is down or a programming error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from authcore.services._shared.errors import ErrorKind, ServiceError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """
    Success value or typed failure of a service operation.

    :param value: Payload when the operation succeeded.
    :param error: Failure when it did not.
    """

    value: T | None = None
    error: ServiceError | None = None

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ServiceError) -> Outcome[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        """Error kind, or ``None`` on success."""
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        """
        Return the value or raise the carried error.

        :raises ServiceError: When the outcome is a failure.
        """
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
