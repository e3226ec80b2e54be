"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import CompanyRepository, ErrorLedgerRepository, Repository
from .unit_of_work import (
    LifecycleRepositories,
    LifecycleUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CompanyRepository",
    "ErrorLedgerRepository",
    "LifecycleRepositories",
    "LifecycleUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
