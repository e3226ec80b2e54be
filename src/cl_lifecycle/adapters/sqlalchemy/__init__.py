"""SQLAlchemy adapter package implementing the lifecycle record store."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .predicates import compile_predicate
from .repositories import SqlAlchemyCompanyRepository, SqlAlchemyErrorLedgerRepository
from .unit_of_work import SqlAlchemyLifecycleUnitOfWork, startup

__all__ = [
    "SqlAlchemyCompanyRepository",
    "SqlAlchemyErrorLedgerRepository",
    "SqlAlchemyLifecycleUnitOfWork",
    "compile_predicate",
    "mapper_registry",
    "start_mappers",
    "startup",
]
