"""Builders and seeding helpers for company records and ledger entries."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from cl_lifecycle.domain.model import (
    CompanyRecord,
    ErrorEntry,
    IdentityStatus,
    PassName,
    ReasonCode,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from cl_lifecycle.domain.ports import LifecycleUnitOfWork

BASE_TIME = datetime(2025, 1, 1, 8, 0, tzinfo=UTC)


def make_company(
    name: str = "Example Co",
    *,
    domain: str | None = None,
    linkedin_url: str | None = None,
    existence_verified: bool | None = None,
    identity_status: IdentityStatus | None = None,
    created_offset: int = 0,
) -> CompanyRecord:
    """Create a company whose fingerprint is unique unless domain/linkedin collide."""

    return CompanyRecord(
        name=name,
        domain=domain,
        linkedin_url=linkedin_url,
        existence_verified=existence_verified,
        identity_status=identity_status,
        created_at=BASE_TIME + timedelta(minutes=created_offset),
    )


def make_error(
    company: CompanyRecord | uuid.UUID,
    *,
    pass_name: str = PassName.EXISTENCE,
    reason_code: str = ReasonCode.DOMAIN_FAIL,
    snapshot: dict[str, Any] | None = None,
    resolved: bool = False,
    created_offset: int = 0,
) -> ErrorEntry:
    company_id = company.id if isinstance(company, CompanyRecord) else company
    created_at = BASE_TIME + timedelta(minutes=created_offset)
    return ErrorEntry(
        company_id=company_id,
        pass_name=pass_name,
        reason_code=reason_code,
        inputs_snapshot=dict(snapshot or {}),
        created_at=created_at,
        resolved_at=created_at + timedelta(hours=1) if resolved else None,
    )


def seed(
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork],
    *,
    companies: Iterable[CompanyRecord] = (),
    errors: Iterable[ErrorEntry] = (),
) -> None:
    """Persist records through the repositories in one transaction."""

    with unit_of_work_factory() as uow:
        for company in companies:
            uow.repositories.companies.add(company)
        for entry in errors:
            uow.repositories.errors.add(entry)
        uow.commit()


def seed_rows(
    unit_of_work_factory: Callable[[], LifecycleUnitOfWork],
    errors: Iterable[ErrorEntry],
) -> None:
    """Persist ledger rows one transaction each, bypassing the open-entry check.

    Used to reproduce historical ledgers written before the unique index existed.
    """

    for entry in errors:
        with unit_of_work_factory() as uow:
            uow.repositories.errors.add(entry)
            uow.commit()
