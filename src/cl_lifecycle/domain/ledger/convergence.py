"""Binary convergence of open ledger entries.

Every open failure eventually settles on PASS or FAIL with a final reason.
Rules are evaluated in order and each one excludes entries claimed by an
earlier rule, so an entry converges at most once per run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from cl_lifecycle.domain.model import FinalOutcome, ReasonCode
from cl_lifecycle.domain.predicates import Eq, In, Not, SnapshotEq, all_of, any_of, is_open

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cl_lifecycle.domain.predicates import Predicate


@dataclass(frozen=True, slots=True)
class ConvergenceRule:
    selector: Predicate
    outcome: FinalOutcome
    final_reason: str


def _domain_fail(category: str) -> Predicate:
    return all_of(Eq("reason_code", ReasonCode.DOMAIN_FAIL), SnapshotEq("error_category", category))


DEFAULT_RULES: Final[tuple[ConvergenceRule, ...]] = (
    ConvergenceRule(_domain_fail("DOMAIN_DEAD"), FinalOutcome.FAIL, "DOMAIN_DEAD"),
    ConvergenceRule(
        _domain_fail("DOMAIN_TRANSIENT"), FinalOutcome.FAIL, "DOMAIN_TRANSIENT_EXHAUSTED"
    ),
    ConvergenceRule(
        _domain_fail("DOMAIN_SSL_ISSUE"), FinalOutcome.FAIL, "DOMAIN_SSL_NEEDS_ESCALATION"
    ),
    ConvergenceRule(
        _domain_fail("DOMAIN_RATE_LIMITED"),
        FinalOutcome.FAIL,
        "DOMAIN_RATE_LIMITED_NEEDS_ESCALATION",
    ),
    ConvergenceRule(
        Eq("reason_code", ReasonCode.DOMAIN_FAIL), FinalOutcome.FAIL, "DOMAIN_VERIFICATION_FAILED"
    ),
    ConvergenceRule(
        Eq("reason_code", ReasonCode.COLLISION_AMBIGUOUS),
        FinalOutcome.FAIL,
        "AMBIGUOUS_PARENT_NEEDS_REVIEW",
    ),
    ConvergenceRule(
        Eq("reason_code", ReasonCode.NAME_EMPTY), FinalOutcome.FAIL, "DATA_QUALITY_NAME_MISSING"
    ),
    ConvergenceRule(
        In("reason_code", (ReasonCode.COLLISION_NAME, ReasonCode.COLLISION_LINKEDIN)),
        FinalOutcome.FAIL,
        "IDENTITY_CONFLICT",
    ),
    ConvergenceRule(
        In("reason_code", (ReasonCode.STATE_NOT_NC, ReasonCode.MISSING_LINKEDIN)),
        FinalOutcome.PASS,
        "EXPECTED_FILTER",
    ),
)


def disjoint_selections(rules: Sequence[ConvergenceRule]) -> list[tuple[ConvergenceRule, Predicate]]:
    """Pair each rule with the open entries it claims after earlier rules took theirs."""

    claimed: list[Predicate] = []
    pairs: list[tuple[ConvergenceRule, Predicate]] = []
    for rule in rules:
        if claimed:
            predicate = all_of(is_open(), rule.selector, Not(any_of(*claimed)))
        else:
            predicate = all_of(is_open(), rule.selector)
        pairs.append((rule, predicate))
        claimed.append(rule.selector)
    return pairs
