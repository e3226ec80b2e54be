"""Eligibility predicates for deriving ``identity_status`` from verification.

Two explicit policies exist:

- conservative (default): only records that were never synced or are still
  PENDING move, so decided PASS/FAIL states survive ambiguous or stale signals.
- force: every record whose status differs from the value implied by a known
  verification result is recomputed.

In both policies a record with unknown verification and no status is
normalized to PENDING, and unknown verification never demotes a decided
status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from cl_lifecycle.domain.model import FinalOutcome, IdentityStatus
from cl_lifecycle.domain.predicates import Eq, IsNull, Not, all_of, any_of

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cl_lifecycle.domain.predicates import Predicate

EXISTENCE_VERIFIED: Final[str] = "EXISTENCE_VERIFIED"
EXISTENCE_NOT_VERIFIED: Final[str] = "EXISTENCE_NOT_VERIFIED"

PASSED: Final[str] = "passed"
FAILED: Final[str] = "failed"
PENDING: Final[str] = "pending"


@dataclass(frozen=True, slots=True)
class SyncRule:
    """One transition of the status sync: records matching ``predicate`` receive ``values``."""

    category: str
    predicate: Predicate
    values: Mapping[str, object] = field(default_factory=dict[str, object])


def needs_sync_predicate() -> Predicate:
    """Records whose status disagrees with their verification, plus unsynced ones."""

    return any_of(
        all_of(Eq("existence_verified", True), Not(Eq("identity_status", IdentityStatus.PASS))),
        all_of(Eq("existence_verified", False), Not(Eq("identity_status", IdentityStatus.FAIL))),
        IsNull("identity_status"),
        Eq("identity_status", IdentityStatus.PENDING),
    )


def conservative_eligibility() -> Predicate:
    return any_of(IsNull("identity_status"), Eq("identity_status", IdentityStatus.PENDING))


def force_eligibility(target: IdentityStatus) -> Predicate:
    return Not(Eq("identity_status", target))


def sync_values(status: IdentityStatus) -> dict[str, object]:
    """Column values written for a transition to ``status``."""

    if status is IdentityStatus.PASS:
        return {
            "identity_status": IdentityStatus.PASS,
            "final_outcome": FinalOutcome.PASS,
            "final_reason": EXISTENCE_VERIFIED,
        }
    if status is IdentityStatus.FAIL:
        return {
            "identity_status": IdentityStatus.FAIL,
            "final_outcome": FinalOutcome.FAIL,
            "final_reason": EXISTENCE_NOT_VERIFIED,
        }
    return {"identity_status": IdentityStatus.PENDING}


def sync_rules(*, force: bool = False) -> tuple[SyncRule, ...]:
    """Return the ordered, mutually exclusive transitions of one sync run."""

    if force:
        pass_eligible = force_eligibility(IdentityStatus.PASS)
        fail_eligible = force_eligibility(IdentityStatus.FAIL)
    else:
        pass_eligible = fail_eligible = conservative_eligibility()
    return (
        SyncRule(
            PASSED,
            all_of(Eq("existence_verified", True), pass_eligible),
            sync_values(IdentityStatus.PASS),
        ),
        SyncRule(
            FAILED,
            all_of(Eq("existence_verified", False), fail_eligible),
            sync_values(IdentityStatus.FAIL),
        ),
        SyncRule(
            PENDING,
            all_of(IsNull("existence_verified"), IsNull("identity_status")),
            sync_values(IdentityStatus.PENDING),
        ),
    )
