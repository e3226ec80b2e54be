from __future__ import annotations

from cl_lifecycle.domain.model import CompanyRecord, FinalOutcome, IdentityStatus
from cl_lifecycle.domain.reconciliation import (
    EXISTENCE_NOT_VERIFIED,
    EXISTENCE_VERIFIED,
    apply_sync,
    compute_drift,
    sync_rules,
)
from cl_lifecycle.domain.predicates import matches
from tests.helpers.companies import make_company


def _dataset() -> dict[str, CompanyRecord]:
    return {
        "verified_pending": make_company(
            "Verified Pending",
            existence_verified=True,
            identity_status=IdentityStatus.PENDING,
        ),
        "refuted_pass": make_company(
            "Refuted Pass",
            existence_verified=False,
            identity_status=IdentityStatus.PASS,
        ),
        "unknown_unsynced": make_company("Unknown Unsynced"),
        "verified_unsynced": make_company("Verified Unsynced", existence_verified=True),
        "refuted_fail": make_company(
            "Refuted Fail",
            existence_verified=False,
            identity_status=IdentityStatus.FAIL,
        ),
        "unknown_pass": make_company("Unknown Pass", identity_status=IdentityStatus.PASS),
    }


def test_compute_drift_reports_counts_without_mutating() -> None:
    records = _dataset()

    report = compute_drift(records.values())

    assert report.status_counts == {"PENDING": 1, "PASS": 2, "FAIL": 1, "NULL": 2}
    assert report.total == 6
    assert report.needs_sync == 4
    assert (report.would_pass, report.would_fail, report.would_pend) == (2, 0, 1)
    assert not report.in_sync
    assert records["verified_pending"].identity_status is IdentityStatus.PENDING


def test_conservative_sync_promotes_undecided_records_only() -> None:
    records = _dataset()

    result = apply_sync(records.values())

    assert (result.passed, result.failed, result.pending) == (2, 0, 1)
    assert result.transitioned == 3
    promoted = records["verified_pending"]
    assert promoted.identity_status is IdentityStatus.PASS
    assert promoted.final_outcome is FinalOutcome.PASS
    assert promoted.final_reason == EXISTENCE_VERIFIED
    assert records["refuted_pass"].identity_status is IdentityStatus.PASS
    assert records["unknown_unsynced"].identity_status is IdentityStatus.PENDING
    assert records["unknown_pass"].identity_status is IdentityStatus.PASS


def test_force_sync_recomputes_decided_records() -> None:
    records = _dataset()

    result = apply_sync(records.values(), force=True)

    assert (result.passed, result.failed, result.pending) == (2, 1, 1)
    demoted = records["refuted_pass"]
    assert demoted.identity_status is IdentityStatus.FAIL
    assert demoted.final_outcome is FinalOutcome.FAIL
    assert demoted.final_reason == EXISTENCE_NOT_VERIFIED
    assert records["unknown_pass"].identity_status is IdentityStatus.PASS


def test_sync_is_idempotent() -> None:
    records = _dataset()
    apply_sync(records.values(), force=True)

    second = apply_sync(records.values(), force=True)

    assert second.transitioned == 0
    assert compute_drift(records.values()).in_sync


def test_sync_rules_are_mutually_exclusive() -> None:
    for force in (False, True):
        rules = sync_rules(force=force)
        for record in _dataset().values():
            assert sum(matches(rule.predicate, record) for rule in rules) <= 1


def test_sync_leaves_verified_at_untouched() -> None:
    record = make_company("Verified", existence_verified=True)

    apply_sync([record])

    assert record.verified_at is None
    assert record.is_in_sync
