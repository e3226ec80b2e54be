"""SQLAlchemy-backed units of work for the lifecycle record store."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from cl_lifecycle.adapters.sqlalchemy.mappings import start_mappers
from cl_lifecycle.adapters.sqlalchemy.migrations import upgrade_to
from cl_lifecycle.adapters.sqlalchemy.repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyErrorLedgerRepository,
)
from cl_lifecycle.config import get_database_config
from cl_lifecycle.domain.errors import ConstraintViolation, LifecycleError, TransactionAborted
from cl_lifecycle.domain.ports.unit_of_work import LifecycleRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call cl_lifecycle.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
    revision: str = "head",
) -> None:
    """Initialise the SQLAlchemy engine, migrate the schema and prepare sessions.

    ``revision`` stops the migration early, e.g. at ``0001`` to inspect a
    ledger on the schema that predates the open-failure uniqueness index.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri,
        future=True,
    )
    start_mappers()
    upgrade_to(revision, engine=resolved_engine)
    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def translate_database_error(exc: DBAPIError) -> LifecycleError:
    """Map a driver error onto the lifecycle error taxonomy."""

    if isinstance(exc, IntegrityError):
        return ConstraintViolation(f"Write rejected by a uniqueness constraint: {exc.orig}")
    return TransactionAborted(f"Transaction aborted by the database: {exc.orig}")


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections.

    Any exit other than a successful ``commit`` rolls the transaction back.
    Database errors raised inside the block or on commit surface as
    ``ConstraintViolation`` or ``TransactionAborted``.
    """

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            self.rollback()
        finally:
            self.session.close()
            self.session = None
        if isinstance(exc_value, DBAPIError):
            raise translate_database_error(exc_value) from exc_value
        return False

    def commit(self) -> None:
        try:
            self.session.commit()
        except DBAPIError as exc:
            self.session.rollback()
            log.warning("Commit failed, transaction rolled back: %s", exc.orig)
            raise translate_database_error(exc) from exc

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyLifecycleUnitOfWork(BaseSqlAlchemyUnitOfWork[LifecycleRepositories]):
    """Unit of work over company records and the error ledger."""

    def _build_repositories(self, session: Session) -> LifecycleRepositories:
        return LifecycleRepositories(
            companies=SqlAlchemyCompanyRepository(session),
            errors=SqlAlchemyErrorLedgerRepository(session),
        )


if TYPE_CHECKING:
    from cl_lifecycle.domain.ports.unit_of_work import LifecycleUnitOfWork

    _uow_check: LifecycleUnitOfWork = SqlAlchemyLifecycleUnitOfWork()
