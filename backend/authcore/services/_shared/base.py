# authcore/services/_shared/base.py
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy.exc import OperationalError

from authcore.services._shared.errors import TransientError
from authcore.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

STORE_UNAVAILABLE = "User store unavailable"


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param request_id: Correlation id for logging/tracing.
    :param client_ip: Remote address as seen by the HTTP boundary.
    """

    request_id: str | None = None
    client_ip: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - A database that cannot be reached surfaces as ``TransientError``.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (tracing, client address).
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    # -------------------------- UoW helpers ---------------------------------

    @contextmanager
    def rw_uow(self) -> Iterator[SQLAlchemyUnitOfWork]:
        """
        Run a read-write Unit of Work.

        :returns: Context manager yielding the read-write UoW.
        :raises TransientError: If the database raised ``OperationalError``.
        """
        try:
            with SQLAlchemyUnitOfWork() as uow:
                yield uow
        except OperationalError as exc:
            raise TransientError(STORE_UNAVAILABLE) from exc

    @contextmanager
    def ro_uow(self) -> Iterator[SQLAlchemyReadOnlyUnitOfWork]:
        """
        Run a read-only Unit of Work.

        :returns: Context manager yielding the read-only UoW.
        :raises TransientError: If the database raised ``OperationalError``.
        """
        try:
            with SQLAlchemyReadOnlyUnitOfWork() as uow:
                yield uow
        except OperationalError as exc:
            raise TransientError(STORE_UNAVAILABLE) from exc
