"""Controller operations over the error ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from cl_lifecycle.domain.controller import Selection
from cl_lifecycle.domain.model import ArchiveReason
from cl_lifecycle.domain.predicates import (
    Always,
    Eq,
    HasOpenError,
    In,
    IsNull,
    SurplusDuplicate,
    Target,
    all_of,
    any_of,
    is_open,
    is_resolved,
)

from .convergence import DEFAULT_RULES, ConvergenceRule, disjoint_selections

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from cl_lifecycle.domain.ports import LifecycleRepositories
    from cl_lifecycle.domain.predicates import Predicate

RESOLVED = "resolved"
RECLASSIFIED = "reclassified"
VERIFIED_COMPANIES = "verified_companies"
ARCHIVED = "archived"


@dataclass(frozen=True, slots=True)
class ResolveErrors:
    """Mark every open entry matching ``selector`` as resolved."""

    selector: Predicate

    @property
    def name(self) -> str:
        return "resolve"

    def selections(self) -> dict[str, Selection]:
        return {RESOLVED: Selection(Target.ERRORS, all_of(is_open(), self.selector))}

    def execute(
        self,
        repositories: LifecycleRepositories,
        selections: Mapping[str, Selection],
        *,
        now: datetime,
    ) -> dict[str, int]:
        selection = selections[RESOLVED]
        return {RESOLVED: repositories.errors.update_where(selection.predicate, {"resolved_at": now})}


@dataclass(frozen=True, slots=True)
class ReclassifyErrors:
    """Merge ``classification`` into matching open entries and resolve them.

    With ``verify_companies`` the owners of those entries that are not yet
    verified are marked as existing.
    """

    selector: Predicate
    classification: Mapping[str, Any]
    verify_companies: bool = False

    @property
    def name(self) -> str:
        return "reclassify"

    def selections(self) -> dict[str, Selection]:
        selections: dict[str, Selection] = {}
        if self.verify_companies:
            selections[VERIFIED_COMPANIES] = Selection(
                Target.COMPANIES,
                all_of(
                    any_of(IsNull("existence_verified"), Eq("existence_verified", False)),
                    HasOpenError(self.selector),
                ),
            )
        selections[RECLASSIFIED] = Selection(Target.ERRORS, all_of(is_open(), self.selector))
        return selections

    def execute(
        self,
        repositories: LifecycleRepositories,
        selections: Mapping[str, Selection],
        *,
        now: datetime,
    ) -> dict[str, int]:
        counts: dict[str, int] = {}
        company_ids: tuple[object, ...] = ()
        verify = selections.get(VERIFIED_COMPANIES)
        if verify is not None:
            # owners are captured before the entries they are selected by get resolved
            company_ids = tuple(company.id for company in repositories.companies.find(verify.predicate))
        counts[RECLASSIFIED] = repositories.errors.merge_snapshot_where(
            selections[RECLASSIFIED].predicate,
            self.classification,
            resolved_at=now,
        )
        if verify is not None:
            counts[VERIFIED_COMPANIES] = (
                repositories.companies.update_where(
                    In("id", company_ids),
                    {"existence_verified": True, "verified_at": now},
                )
                if company_ids
                else 0
            )
        return {category: counts[category] for category in selections}


@dataclass(frozen=True, slots=True)
class ConvergeErrors:
    """Settle open entries on a binary outcome following ``rules`` in order."""

    rules: tuple[ConvergenceRule, ...] = DEFAULT_RULES

    def __post_init__(self) -> None:
        reasons = [rule.final_reason for rule in self.rules]
        if len(set(reasons)) != len(reasons):
            raise ValueError("Convergence rules must have distinct final reasons")

    @property
    def name(self) -> str:
        return "converge"

    def selections(self) -> dict[str, Selection]:
        return {
            rule.final_reason: Selection(Target.ERRORS, predicate)
            for rule, predicate in disjoint_selections(self.rules)
        }

    def execute(
        self,
        repositories: LifecycleRepositories,
        selections: Mapping[str, Selection],
        *,
        now: datetime,
    ) -> dict[str, int]:
        outcomes = {rule.final_reason: rule.outcome for rule in self.rules}
        return {
            reason: repositories.errors.update_where(
                selection.predicate,
                {"resolved_at": now, "final_outcome": outcomes[reason], "final_reason": reason},
            )
            for reason, selection in selections.items()
        }


@dataclass(frozen=True, slots=True)
class ArchiveResolvedErrors:
    """Move resolved entries matching ``selector`` into the archive."""

    reason: ArchiveReason = ArchiveReason.RESOLVED
    selector: Predicate = field(default_factory=Always)

    @property
    def name(self) -> str:
        return "archive"

    def selections(self) -> dict[str, Selection]:
        return {ARCHIVED: Selection(Target.ERRORS, all_of(is_resolved(), self.selector))}

    def execute(
        self,
        repositories: LifecycleRepositories,
        selections: Mapping[str, Selection],
        *,
        now: datetime,
    ) -> dict[str, int]:
        selection = selections[ARCHIVED]
        return {ARCHIVED: repositories.errors.archive_where(selection.predicate, reason=self.reason, at=now)}


@dataclass(frozen=True, slots=True)
class DeduplicateErrors:
    """Archive every entry that is not the keeper of its failure-key group."""

    @property
    def name(self) -> str:
        return "dedupe"

    def selections(self) -> dict[str, Selection]:
        return {ARCHIVED: Selection(Target.ERRORS, SurplusDuplicate())}

    def execute(
        self,
        repositories: LifecycleRepositories,
        selections: Mapping[str, Selection],
        *,
        now: datetime,
    ) -> dict[str, int]:
        selection = selections[ARCHIVED]
        return {
            ARCHIVED: repositories.errors.archive_where(
                selection.predicate,
                reason=ArchiveReason.DUPLICATE,
                at=now,
            )
        }
