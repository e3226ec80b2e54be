"""In-memory drift computation and status sync over company records."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from cl_lifecycle.domain.model import IdentityStatus
from cl_lifecycle.domain.predicates import matches, select_matching
from cl_lifecycle.domain.reports import NULL_STATUS, DriftReport, SyncResult

from .policy import FAILED, PASSED, PENDING, needs_sync_predicate, sync_rules

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from cl_lifecycle.domain.model import CompanyRecord

log = logging.getLogger(__name__)


def build_drift_report(
    status_counts: Mapping[IdentityStatus | None, int],
    *,
    needs_sync: int,
    forecast: Mapping[str, int],
) -> DriftReport:
    labelled = {status.value: status_counts.get(status, 0) for status in IdentityStatus}
    labelled[NULL_STATUS] = status_counts.get(None, 0)
    return DriftReport(
        status_counts=labelled,
        total=sum(labelled.values()),
        needs_sync=needs_sync,
        would_pass=forecast.get(PASSED, 0),
        would_fail=forecast.get(FAILED, 0),
        would_pend=forecast.get(PENDING, 0),
    )


def compute_drift(records: Iterable[CompanyRecord]) -> DriftReport:
    """Summarise how far ``records`` are from their implied status. Never mutates."""

    materialized = list(records)
    status_counts: Counter[IdentityStatus | None] = Counter(
        record.identity_status for record in materialized
    )
    needs_sync = needs_sync_predicate()
    forecast = {
        rule.category: len(select_matching(rule.predicate, materialized))
        for rule in sync_rules(force=False)
    }
    return build_drift_report(
        status_counts,
        needs_sync=sum(1 for record in materialized if matches(needs_sync, record)),
        forecast=forecast,
    )


def apply_sync(records: Iterable[CompanyRecord], *, force: bool = False) -> SyncResult:
    """Sync ``identity_status`` of in-memory records with the configured policy."""

    materialized = list(records)
    counts: dict[str, int] = {}
    for rule in sync_rules(force=force):
        selected = select_matching(rule.predicate, materialized)
        for record in selected:
            for name, value in rule.values.items():
                setattr(record, name, value)
        counts[rule.category] = len(selected)
    log.debug("In-memory sync (force=%s): %s", force, counts)
    return SyncResult(
        passed=counts[PASSED],
        failed=counts[FAILED],
        pending=counts[PENDING],
        force=force,
    )
