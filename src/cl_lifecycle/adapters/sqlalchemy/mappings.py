"""SQLAlchemy mapping metadata for the lifecycle domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from cl_lifecycle.domain.model import (
    ArchivedErrorEntry,
    CompanyRecord,
    ErrorEntry,
    FinalOutcome,
    IdentityStatus,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]

OPEN_FAILURE_INDEX = "uq_error_entry_open_failure"


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _status_enum() -> Enum:
    return Enum(IdentityStatus, name="identity_status", native_enum=False, length=16)


def _outcome_enum() -> Enum:
    return Enum(FinalOutcome, name="final_outcome", native_enum=False, length=16)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

company_table = Table(
    "company_identity",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("name", String(512), nullable=False),
    Column("domain", String(255), nullable=True, index=True),
    Column("linkedin_url", String(512), nullable=True),
    Column("existence_verified", Boolean, nullable=True),
    Column("identity_status", _status_enum(), nullable=True, index=True),
    Column("final_outcome", _outcome_enum(), nullable=True),
    Column("final_reason", String(128), nullable=True),
    Column("fingerprint", String(64), nullable=False, unique=True),
    Column("sovereign_id", UUIDColumnType, nullable=True, unique=True),
    Column("verified_at", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

# company_id is a weak reference: ledger history outlives the records it names
error_entry_table = Table(
    "error_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("company_id", UUIDColumnType, nullable=False, index=True),
    Column("pass_name", String(64), nullable=False),
    Column("reason_code", String(64), nullable=False),
    Column("inputs_snapshot", JSON, nullable=False, default=dict),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("resolved_at", UTCDateTime(), nullable=True),
    Column("final_outcome", _outcome_enum(), nullable=True),
    Column("final_reason", String(128), nullable=True),
    Index("ix_error_entry_pass_reason", "pass_name", "reason_code"),
)

Index(
    OPEN_FAILURE_INDEX,
    error_entry_table.c.company_id,
    error_entry_table.c.pass_name,
    error_entry_table.c.reason_code,
    unique=True,
    sqlite_where=error_entry_table.c.resolved_at.is_(None),
    postgresql_where=error_entry_table.c.resolved_at.is_(None),
)

error_entry_archive_table = Table(
    "error_entry_archive",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("company_id", UUIDColumnType, nullable=False, index=True),
    Column("pass_name", String(64), nullable=False),
    Column("reason_code", String(64), nullable=False),
    Column("inputs_snapshot", JSON, nullable=False, default=dict),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("resolved_at", UTCDateTime(), nullable=False),
    Column("archived_at", UTCDateTime(), nullable=False),
    Column("archive_reason", String(32), nullable=False),
    Column("final_outcome", _outcome_enum(), nullable=True),
    Column("final_reason", String(128), nullable=True),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(CompanyRecord, company_table)
    mapper_registry.map_imperatively(ErrorEntry, error_entry_table)
    mapper_registry.map_imperatively(ArchivedErrorEntry, error_entry_archive_table)
    configure_mappers()
    return mapper_registry

