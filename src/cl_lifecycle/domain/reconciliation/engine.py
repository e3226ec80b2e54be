"""Store-backed reconciliation of company identity status."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cl_lifecycle.domain.clock import utcnow
from cl_lifecycle.domain.controller import DryRunApplyController
from cl_lifecycle.domain.reports import SyncResult

from .drift import build_drift_report
from .operations import SyncIdentityStatus
from .policy import FAILED, PASSED, PENDING, needs_sync_predicate

if TYPE_CHECKING:
    from cl_lifecycle.domain.clock import Clock
    from cl_lifecycle.domain.controller import UnitOfWorkFactory
    from cl_lifecycle.domain.reports import DriftReport, PreviewReport

log = logging.getLogger(__name__)


class ReconciliationEngine:
    """Compute drift and sync ``identity_status`` against the record store."""

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory, *, clock: Clock = utcnow) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._controller = DryRunApplyController(unit_of_work_factory, clock=clock)

    def compute_drift(self) -> DriftReport:
        operation = SyncIdentityStatus(force=False)
        with self._unit_of_work_factory() as uow:
            companies = uow.repositories.companies
            status_counts = companies.status_counts()
            needs_sync = companies.count(needs_sync_predicate())
            forecast = {
                category: selection.count(uow.repositories)
                for category, selection in operation.selections().items()
            }
        report = build_drift_report(status_counts, needs_sync=needs_sync, forecast=forecast)
        log.info(
            "Drift: total=%s, needs_sync=%s, would_pass=%s, would_fail=%s",
            report.total,
            report.needs_sync,
            report.would_pass,
            report.would_fail,
        )
        return report

    def preview_sync(self, *, force: bool = False) -> PreviewReport:
        return self._controller.preview(SyncIdentityStatus(force=force))

    def apply_sync(self, *, force: bool = False, expected: PreviewReport | None = None) -> SyncResult:
        """Sync every eligible record in a single transaction.

        Raises ``TransactionAborted`` when the store cannot commit; rerun the
        whole sync in that case, it is idempotent.
        """

        report = self._controller.apply(SyncIdentityStatus(force=force), expected)
        return SyncResult(
            passed=report.counts[PASSED],
            failed=report.counts[FAILED],
            pending=report.counts[PENDING],
            force=force,
        )
