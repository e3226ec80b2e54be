"""Applying verification pass outcomes to the record store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from cl_lifecycle.domain.clock import utcnow
from cl_lifecycle.domain.model import ErrorEntry, PassName

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from cl_lifecycle.domain.clock import Clock
    from cl_lifecycle.domain.controller import UnitOfWorkFactory

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VerificationSignal:
    """Outcome of one verification pass for one company."""

    company_id: UUID
    pass_name: str
    verified: bool
    reason_code: str | None = None
    evidence: dict[str, Any] = field(default_factory=dict[str, Any])

    def __post_init__(self) -> None:
        if not self.verified and not self.reason_code:
            raise ValueError("A failed verification signal requires a reason code")


@dataclass(frozen=True, slots=True)
class SignalIngestResult:
    received: int = 0
    verifications: int = 0
    failures_recorded: int = 0
    failures_existing: int = 0
    unknown_companies: int = 0


def apply_signals(
    signals: Iterable[VerificationSignal],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    clock: Clock = utcnow,
) -> SignalIngestResult:
    """Persist a batch of signals in one transaction.

    Existence signals set ``existence_verified`` and ``verified_at``; every
    failed signal records a ledger failure, converging on an existing open
    entry for the same key. Signals for unknown companies are skipped.
    """

    received = verifications = recorded = existing = unknown = 0
    with unit_of_work_factory() as uow:
        companies = uow.repositories.companies
        errors = uow.repositories.errors
        for signal in signals:
            received += 1
            now = clock()
            company = companies.get(signal.company_id)
            if company is None:
                log.warning("Skipping signal for unknown company %s", signal.company_id)
                unknown += 1
                continue
            if signal.pass_name == PassName.EXISTENCE:
                company.record_verification(signal.verified, at=now)
                verifications += 1
            if signal.verified:
                continue
            entry = ErrorEntry(
                company_id=signal.company_id,
                pass_name=signal.pass_name,
                reason_code=signal.reason_code or "",
                inputs_snapshot=dict(signal.evidence),
                created_at=now,
            )
            if errors.insert_if_absent(entry).id == entry.id:
                recorded += 1
            else:
                existing += 1
        uow.commit()
    result = SignalIngestResult(
        received=received,
        verifications=verifications,
        failures_recorded=recorded,
        failures_existing=existing,
        unknown_companies=unknown,
    )
    log.info("Applied signals: %s", result)
    return result
