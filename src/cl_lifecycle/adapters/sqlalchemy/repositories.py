"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, cast

from sqlalchemy import case, func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from cl_lifecycle.adapters.sqlalchemy.mappings import (
    company_table,
    error_entry_archive_table,
    error_entry_table,
)
from cl_lifecycle.adapters.sqlalchemy.predicates import compile_predicate
from cl_lifecycle.domain.errors import ConstraintViolation, TransactionAborted
from cl_lifecycle.domain.model import (
    ArchivedErrorEntry,
    CompanyRecord,
    ErrorEntry,
    IdentityStatus,
)
from cl_lifecycle.domain.reports import DuplicateGroup, LedgerBucket

if TYPE_CHECKING:
    import uuid
    from collections.abc import Mapping
    from datetime import datetime

    from sqlalchemy import ColumnElement, CursorResult, Table
    from sqlalchemy.orm import Session

    from cl_lifecycle.domain.model import FailureKey
    from cl_lifecycle.domain.predicates import Predicate

log = logging.getLogger(__name__)


class SqlAlchemyPredicateRepository[TEntity: CompanyRecord | ErrorEntry]:
    """Shared predicate-driven queries and batch updates for one mapped table."""

    entity_cls: ClassVar[type[Any]]
    table: ClassVar[Table]

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def count(self, predicate: Predicate) -> int:
        self.session.flush()
        stmt = select(func.count()).select_from(self.table).where(self._where(predicate))
        return int(self.session.execute(stmt).scalar_one())

    def find(self, predicate: Predicate) -> list[TEntity]:
        stmt = (
            select(self.entity_cls)
            .where(self._where(predicate))
            .order_by(self.table.c.created_at, self.table.c.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def update_where(self, predicate: Predicate, values: Mapping[str, Any]) -> int:
        """Apply ``values`` to every matching row in one statement; return the row count."""

        self.session.flush()
        stmt = update(self.table).where(self._where(predicate)).values(**values)
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        # loaded instances no longer reflect the rows just updated
        self.session.expire_all()
        return result.rowcount

    def _where(self, predicate: Predicate) -> ColumnElement[bool]:
        return compile_predicate(predicate, self.table)


class SqlAlchemyCompanyRepository(SqlAlchemyPredicateRepository[CompanyRecord]):
    entity_cls = CompanyRecord
    table = company_table

    def add(self, entity: CompanyRecord) -> None:
        existing = self.get_by_fingerprint(entity.fingerprint)
        if existing is not None and existing is not entity:
            raise ConstraintViolation(
                f"Company {existing.id} already holds fingerprint {entity.fingerprint}"
            )
        self.session.add(entity)

    def get(self, company_id: uuid.UUID) -> CompanyRecord | None:
        return self.session.get(CompanyRecord, company_id)

    def get_by_fingerprint(self, fingerprint: str) -> CompanyRecord | None:
        stmt = select(CompanyRecord).where(company_table.c.fingerprint == fingerprint)
        return self.session.execute(stmt).scalars().first()

    def status_counts(self) -> dict[IdentityStatus | None, int]:
        self.session.flush()
        status = company_table.c.identity_status
        stmt = select(status, func.count()).group_by(status)
        counts: dict[IdentityStatus | None, int] = {}
        for value, count in self.session.execute(stmt).all():
            counts[IdentityStatus(value) if value is not None else None] = int(count)
        return counts


class SqlAlchemyErrorLedgerRepository(SqlAlchemyPredicateRepository[ErrorEntry]):
    entity_cls = ErrorEntry
    table = error_entry_table

    def add(self, entity: ErrorEntry) -> None:
        if entity.is_open and self.find_open(entity.key) is not None:
            raise ConstraintViolation(
                "An open failure is already recorded for this key",
                key=entity.key,
            )
        self.session.add(entity)

    def get(self, entry_id: uuid.UUID) -> ErrorEntry | None:
        return self.session.get(ErrorEntry, entry_id)

    def find_open(self, key: FailureKey) -> ErrorEntry | None:
        stmt = (
            select(ErrorEntry)
            .where(error_entry_table.c.company_id == key.company_id)
            .where(error_entry_table.c.pass_name == key.pass_name)
            .where(error_entry_table.c.reason_code == key.reason_code)
            .where(error_entry_table.c.resolved_at.is_(None))
            .order_by(error_entry_table.c.created_at)
        )
        return self.session.execute(stmt).scalars().first()

    def insert_if_absent(self, entry: ErrorEntry) -> ErrorEntry:
        """Insert ``entry`` unless an open entry holds its key; return the open entry.

        The uniqueness check is delegated to the partial unique index so that
        concurrent writers converge on one row.
        """

        if not entry.is_open:
            raise ValueError("Only open entries can be recorded")
        self.session.flush()
        row = {
            "id": entry.id,
            "company_id": entry.company_id,
            "pass_name": str(entry.pass_name),
            "reason_code": str(entry.reason_code),
            "inputs_snapshot": dict(entry.inputs_snapshot),
            "created_at": entry.created_at,
            "resolved_at": None,
        }
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            self.session.execute(sqlite_insert(error_entry_table).values(row).on_conflict_do_nothing())
        elif dialect == "postgresql":
            self.session.execute(
                postgresql_insert(error_entry_table).values(row).on_conflict_do_nothing()
            )
        else:
            try:
                with self.session.begin_nested():
                    self.session.execute(insert(error_entry_table).values(row))
            except IntegrityError:
                log.debug("Open failure already present for %s", entry.key)
        stored = self.find_open(entry.key)
        if stored is None:
            raise TransactionAborted(f"Failure {entry.key} vanished while being recorded")
        return stored

    def merge_snapshot_where(
        self,
        predicate: Predicate,
        classification: Mapping[str, Any],
        *,
        resolved_at: datetime,
    ) -> int:
        entries = self.find(predicate)
        for entry in entries:
            entry.reclassify(classification, at=resolved_at)
        self.session.flush()
        return len(entries)

    def archive_where(self, predicate: Predicate, *, reason: str, at: datetime) -> int:
        entries = self.find(predicate)
        for entry in entries:
            self.session.add(ArchivedErrorEntry.from_entry(entry, at=at, reason=reason))
            self.session.delete(entry)
        self.session.flush()
        return len(entries)

    def duplicate_groups(self, *, include_resolved: bool = False) -> list[DuplicateGroup]:
        self.session.flush()
        columns = (
            error_entry_table.c.company_id,
            error_entry_table.c.pass_name,
            error_entry_table.c.reason_code,
        )
        occurrences = func.count().label("occurrences")
        stmt = select(*columns, occurrences).group_by(*columns).having(func.count() > 1)
        if not include_resolved:
            stmt = stmt.where(error_entry_table.c.resolved_at.is_(None))
        stmt = stmt.order_by(occurrences.desc(), *columns)
        return [
            DuplicateGroup(
                company_id=company_id,
                pass_name=pass_name,
                reason_code=reason_code,
                count=int(count),
            )
            for company_id, pass_name, reason_code, count in self.session.execute(stmt).all()
        ]

    def buckets(self) -> list[LedgerBucket]:
        self.session.flush()
        resolved_at = error_entry_table.c.resolved_at
        stmt = (
            select(
                error_entry_table.c.pass_name,
                error_entry_table.c.reason_code,
                func.sum(case((resolved_at.is_(None), 1), else_=0)),
                func.sum(case((resolved_at.is_(None), 0), else_=1)),
            )
            .group_by(error_entry_table.c.pass_name, error_entry_table.c.reason_code)
            .order_by(error_entry_table.c.pass_name, error_entry_table.c.reason_code)
        )
        return [
            LedgerBucket(
                pass_name=pass_name,
                reason_code=reason_code,
                open=int(open_count or 0),
                resolved=int(resolved_count or 0),
            )
            for pass_name, reason_code, open_count, resolved_count in self.session.execute(stmt).all()
        ]

    def archived_count(self) -> int:
        self.session.flush()
        stmt = select(func.count()).select_from(error_entry_archive_table)
        return int(self.session.execute(stmt).scalar_one())
