from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import IntegrityError

from cl_lifecycle.adapters.sqlalchemy.repositories import (
    SqlAlchemyCompanyRepository,
    SqlAlchemyErrorLedgerRepository,
)
from cl_lifecycle.domain.errors import ConstraintViolation
from cl_lifecycle.domain.model import ArchiveReason, IdentityStatus, ReasonCode
from cl_lifecycle.domain.predicates import Always, Eq, is_open
from tests.helpers.companies import BASE_TIME, make_company, make_error

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def test_company_add_rejects_taken_fingerprint(sqlite_session: Session) -> None:
    repository = SqlAlchemyCompanyRepository(sqlite_session)
    repository.add(make_company("Acme", domain="acme.com"))
    sqlite_session.flush()

    with pytest.raises(ConstraintViolation):
        repository.add(make_company("Acme Inc", domain="https://acme.com"))


def test_update_where_refreshes_loaded_instances(sqlite_session: Session) -> None:
    repository = SqlAlchemyCompanyRepository(sqlite_session)
    pending = make_company("Pending", identity_status=IdentityStatus.PENDING)
    unsynced = make_company("Unsynced")
    repository.add(pending)
    repository.add(unsynced)

    updated = repository.update_where(
        Eq("identity_status", IdentityStatus.PENDING),
        {"identity_status": IdentityStatus.PASS},
    )

    assert updated == 1
    assert pending.identity_status is IdentityStatus.PASS
    assert unsynced.identity_status is None
    assert repository.status_counts() == {IdentityStatus.PASS: 1, None: 1}


def test_insert_if_absent_converges_on_open_entry(sqlite_session: Session) -> None:
    repository = SqlAlchemyErrorLedgerRepository(sqlite_session)
    company_id = uuid.uuid4()
    first = make_error(company_id, snapshot={"attempt": "1"})
    second = make_error(company_id, snapshot={"attempt": "2"})

    stored_first = repository.insert_if_absent(first)
    stored_second = repository.insert_if_absent(second)

    assert stored_first.id == first.id
    assert stored_second.id == first.id
    assert stored_second.inputs_snapshot == {"attempt": "1"}
    assert repository.count(Always()) == 1


def test_insert_if_absent_rejects_resolved_entries(sqlite_session: Session) -> None:
    repository = SqlAlchemyErrorLedgerRepository(sqlite_session)

    with pytest.raises(ValueError, match="open"):
        repository.insert_if_absent(make_error(uuid.uuid4(), resolved=True))


def test_add_rejects_second_open_entry_for_key(sqlite_session: Session) -> None:
    repository = SqlAlchemyErrorLedgerRepository(sqlite_session)
    company_id = uuid.uuid4()
    repository.add(make_error(company_id))
    sqlite_session.flush()

    with pytest.raises(ConstraintViolation) as excinfo:
        repository.add(make_error(company_id))

    assert excinfo.value.key is not None
    repository.add(make_error(company_id, resolved=True))
    sqlite_session.flush()
    assert repository.count(Always()) == 2


def test_unique_index_rejects_open_duplicates_written_directly(sqlite_session: Session) -> None:
    company_id = uuid.uuid4()
    sqlite_session.add(make_error(company_id))
    sqlite_session.add(make_error(company_id))

    with pytest.raises(IntegrityError):
        sqlite_session.flush()


def test_find_open_ignores_resolved_entries(sqlite_session: Session) -> None:
    repository = SqlAlchemyErrorLedgerRepository(sqlite_session)
    company_id = uuid.uuid4()
    resolved = make_error(company_id, resolved=True)
    repository.add(resolved)
    sqlite_session.flush()

    assert repository.find_open(resolved.key) is None


def test_merge_snapshot_where_appends_and_resolves(sqlite_session: Session) -> None:
    repository = SqlAlchemyErrorLedgerRepository(sqlite_session)
    entry = make_error(uuid.uuid4(), snapshot={"domain_error": "HTTP 404"})
    repository.add(entry)

    merged = repository.merge_snapshot_where(
        is_open(),
        {"resolution": "DOMAIN_EXISTS"},
        resolved_at=BASE_TIME,
    )

    assert merged == 1
    sqlite_session.expire_all()
    stored = repository.get(entry.id)
    assert stored is not None
    assert stored.inputs_snapshot == {"domain_error": "HTTP 404", "resolution": "DOMAIN_EXISTS"}
    assert stored.resolved_at == BASE_TIME


def test_archive_where_moves_entries(sqlite_session: Session) -> None:
    repository = SqlAlchemyErrorLedgerRepository(sqlite_session)
    resolved = make_error(uuid.uuid4(), resolved=True)
    open_entry = make_error(uuid.uuid4())
    repository.add(resolved)
    repository.add(open_entry)

    archived = repository.archive_where(
        Always(),
        reason=ArchiveReason.RESOLVED,
        at=BASE_TIME,
    )

    assert archived == 2
    assert repository.count(Always()) == 0
    assert repository.archived_count() == 2


def test_duplicate_groups_and_buckets(sqlite_session: Session) -> None:
    repository = SqlAlchemyErrorLedgerRepository(sqlite_session)
    company_id = uuid.uuid4()
    repository.add(make_error(company_id, resolved=True, created_offset=0))
    repository.add(make_error(company_id, resolved=True, created_offset=5))
    repository.add(make_error(company_id, created_offset=10))
    repository.add(make_error(uuid.uuid4(), reason_code=ReasonCode.NAME_EMPTY))

    groups = repository.duplicate_groups(include_resolved=True)
    buckets = repository.buckets()

    assert [(group.company_id, group.count) for group in groups] == [(company_id, 3)]
    assert repository.duplicate_groups() == []
    assert [(bucket.reason_code, bucket.open, bucket.resolved) for bucket in buckets] == [
        ("DOMAIN_FAIL", 1, 2),
        ("NAME_EMPTY", 1, 0),
    ]
