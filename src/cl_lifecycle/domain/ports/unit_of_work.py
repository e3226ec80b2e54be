"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from cl_lifecycle.domain.ports.persistence import CompanyRepository, ErrorLedgerRepository


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Transaction boundary around a repository collection.

    Leaving the context without ``commit`` discards every change; ``commit``
    raises ``TransactionAborted`` or ``ConstraintViolation`` after rolling back.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class LifecycleRepositories(RepositoryCollection):
    """Repositories sharing one transaction."""

    companies: CompanyRepository
    errors: ErrorLedgerRepository


type LifecycleUnitOfWork = UnitOfWork[LifecycleRepositories]
