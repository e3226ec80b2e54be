from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError

from cl_lifecycle.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLifecycleUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
    translate_database_error,
)
from cl_lifecycle.domain.errors import ConstraintViolation, TransactionAborted
from cl_lifecycle.domain.predicates import Always
from tests.helpers.companies import make_company

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyLifecycleUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_commit_persists_companies(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    record = make_company("Persisted", domain="persisted.com")

    with SqlAlchemyLifecycleUnitOfWork() as uow:
        uow.repositories.companies.add(record)
        uow.commit()

    with SqlAlchemyLifecycleUnitOfWork() as uow:
        stored = uow.repositories.companies.get(record.id)
        assert stored is not None
        assert stored.domain == "persisted.com"
        assert stored.created_at == record.created_at


def test_leaving_without_commit_discards_changes(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyLifecycleUnitOfWork() as uow:
        uow.repositories.companies.add(make_company("Discarded"))
        assert uow.repositories.companies.count(Always()) == 1

    with SqlAlchemyLifecycleUnitOfWork() as uow:
        assert uow.repositories.companies.count(Always()) == 0


def test_integrity_error_on_commit_becomes_constraint_violation(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    sovereign_id = uuid.uuid4()
    first = make_company("First")
    second = make_company("Second")
    first.sovereign_id = second.sovereign_id = sovereign_id

    with SqlAlchemyLifecycleUnitOfWork() as uow:
        uow.repositories.companies.add(first)
        uow.repositories.companies.add(second)
        with pytest.raises(ConstraintViolation):
            uow.commit()

    with SqlAlchemyLifecycleUnitOfWork() as uow:
        assert uow.repositories.companies.count(Always()) == 0


def test_integrity_error_inside_block_is_translated(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    sovereign_id = uuid.uuid4()
    first = make_company("First")
    second = make_company("Second")
    first.sovereign_id = second.sovereign_id = sovereign_id

    with pytest.raises(ConstraintViolation), SqlAlchemyLifecycleUnitOfWork() as uow:
        uow.repositories.companies.add(first)
        uow.repositories.companies.add(second)
        uow.repositories.companies.count(Always())


def test_translate_database_error() -> None:
    integrity = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
    operational = OperationalError("UPDATE", {}, Exception("database is locked"))

    assert isinstance(translate_database_error(integrity), ConstraintViolation)
    assert isinstance(translate_database_error(operational), TransactionAborted)


def test_repositories_unavailable_outside_context(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyLifecycleUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories
