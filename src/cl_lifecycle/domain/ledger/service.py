"""The verification failure ledger."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cl_lifecycle.domain.clock import utcnow
from cl_lifecycle.domain.controller import DryRunApplyController
from cl_lifecycle.domain.errors import ConstraintViolation
from cl_lifecycle.domain.model import ArchiveReason, ErrorEntry, FailureKey
from cl_lifecycle.domain.reports import ResolutionReport

from .convergence import DEFAULT_RULES
from .operations import (
    RECLASSIFIED,
    RESOLVED,
    VERIFIED_COMPANIES,
    ArchiveResolvedErrors,
    ConvergeErrors,
    DeduplicateErrors,
    ReclassifyErrors,
    ResolveErrors,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from cl_lifecycle.domain.clock import Clock
    from cl_lifecycle.domain.controller import UnitOfWorkFactory
    from cl_lifecycle.domain.predicates import Predicate
    from cl_lifecycle.domain.reports import ApplyReport, DuplicateGroup, LedgerBucket

    from .convergence import ConvergenceRule

log = logging.getLogger(__name__)


class ErrorLedger:
    """Record, resolve and maintain verification failures.

    Each method runs in its own transaction. Mutations other than
    :meth:`record_failure` go through the dry-run/apply controller, so the
    same operations can be previewed with :attr:`controller`.
    """

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory, *, clock: Clock = utcnow) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._clock = clock
        self.controller = DryRunApplyController(unit_of_work_factory, clock=clock)

    def record_failure(
        self,
        company_id: UUID,
        pass_name: str,
        reason_code: str,
        inputs_snapshot: Mapping[str, Any] | None = None,
        *,
        strict: bool = False,
    ) -> ErrorEntry:
        """Record a failure unless an open entry already exists for the same key.

        The existing open entry is returned unchanged in that case. With
        ``strict`` the clash raises :class:`ConstraintViolation` instead.
        """

        entry = ErrorEntry(
            company_id=company_id,
            pass_name=pass_name,
            reason_code=reason_code,
            inputs_snapshot=dict(inputs_snapshot or {}),
            created_at=self._clock(),
        )
        with self._unit_of_work_factory() as uow:
            stored = uow.repositories.errors.insert_if_absent(entry)
            if stored.id != entry.id:
                log.info(
                    "Open failure already recorded for %s/%s/%s",
                    company_id,
                    pass_name,
                    reason_code,
                )
                if strict:
                    raise ConstraintViolation(
                        "An open failure is already recorded for this key",
                        key=FailureKey(company_id, pass_name, reason_code),
                    )
            uow.commit()
        return stored

    def resolve(self, selector: Predicate) -> ResolutionReport:
        report = self.controller.apply(ResolveErrors(selector))
        resolved = report.counts[RESOLVED]
        return ResolutionReport(resolved=resolved, empty_selection=resolved == 0)

    def reclassify(
        self,
        selector: Predicate,
        classification: Mapping[str, Any],
        *,
        verify_companies: bool = False,
    ) -> ResolutionReport:
        report = self.controller.apply(
            ReclassifyErrors(selector, dict(classification), verify_companies=verify_companies)
        )
        resolved = report.counts[RECLASSIFIED]
        return ResolutionReport(
            resolved=resolved,
            empty_selection=resolved == 0,
            verified_companies=report.counts.get(VERIFIED_COMPANIES, 0),
        )

    def find_duplicates(self, *, include_resolved: bool = False) -> list[DuplicateGroup]:
        """Return failure-key groups holding more than one entry. Read only."""

        with self._unit_of_work_factory() as uow:
            groups = uow.repositories.errors.duplicate_groups(include_resolved=include_resolved)
        if groups:
            log.warning("Found %s duplicate ledger groups", len(groups))
        return groups

    def dedupe(self) -> ApplyReport:
        return self.controller.apply(DeduplicateErrors())

    def converge(self, rules: Sequence[ConvergenceRule] = DEFAULT_RULES) -> ApplyReport:
        return self.controller.apply(ConvergeErrors(tuple(rules)))

    def archive_resolved(
        self,
        reason: ArchiveReason = ArchiveReason.RESOLVED,
        selector: Predicate | None = None,
    ) -> ApplyReport:
        if selector is None:
            return self.controller.apply(ArchiveResolvedErrors(reason))
        return self.controller.apply(ArchiveResolvedErrors(reason, selector))

    def status(self) -> list[LedgerBucket]:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.errors.buckets()
