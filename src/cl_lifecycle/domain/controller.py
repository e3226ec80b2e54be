"""Dry-run/apply controller shared by every mutating lifecycle operation.

An operation declares its ordered categories as :class:`Selection` values. A
preview counts those selections inside a transaction that is always rolled
back; an apply recounts the very same selections, mutates them and commits.
Because both phases read one set of predicate values, a preview is a truthful
forecast of the apply that follows it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from cl_lifecycle.domain.clock import utcnow
from cl_lifecycle.domain.errors import PreconditionFailed
from cl_lifecycle.domain.model import IdentityStatus
from cl_lifecycle.domain.predicates import Target, is_open, is_resolved, validate_predicate
from cl_lifecycle.domain.reports import NULL_STATUS, ApplyReport, PreviewReport

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from cl_lifecycle.domain.clock import Clock
    from cl_lifecycle.domain.ports import LifecycleRepositories, LifecycleUnitOfWork
    from cl_lifecycle.domain.ports.persistence import Repository
    from cl_lifecycle.domain.predicates import Predicate

    UnitOfWorkFactory = Callable[[], LifecycleUnitOfWork]

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Selection:
    """A predicate bound to the collection it selects from."""

    target: Target
    predicate: Predicate

    def __post_init__(self) -> None:
        validate_predicate(self.predicate, self.target)

    def count(self, repositories: LifecycleRepositories) -> int:
        return repository_for(repositories, self.target).count(self.predicate)


class Operation(Protocol):
    """A mutating operation reachable through preview and apply."""

    @property
    def name(self) -> str: ...

    def selections(self) -> Mapping[str, Selection]: ...

    def execute(
        self,
        repositories: LifecycleRepositories,
        selections: Mapping[str, Selection],
        *,
        now: datetime,
    ) -> dict[str, int]: ...


def repository_for(repositories: LifecycleRepositories, target: Target) -> Repository[object]:
    if target is Target.COMPANIES:
        return repositories.companies  # pyright: ignore[reportReturnType]
    return repositories.errors  # pyright: ignore[reportReturnType]


def store_snapshot(repositories: LifecycleRepositories) -> dict[str, int]:
    """Return company status and ledger counts describing the whole store."""

    status_counts = repositories.companies.status_counts()
    snapshot = {f"companies.{status.value}": status_counts.get(status, 0) for status in IdentityStatus}
    snapshot[f"companies.{NULL_STATUS}"] = status_counts.get(None, 0)
    snapshot["errors.open"] = repositories.errors.count(is_open())
    snapshot["errors.resolved"] = repositories.errors.count(is_resolved())
    snapshot["errors.archived"] = repositories.errors.archived_count()
    return snapshot


def count_selections(
    repositories: LifecycleRepositories,
    selections: Mapping[str, Selection],
) -> dict[str, int]:
    return {category: selection.count(repositories) for category, selection in selections.items()}


class DryRunApplyController:
    """Run operations in preview or apply mode against a unit of work."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        clock: Clock = utcnow,
        dry_run: bool = False,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._clock = clock
        self.dry_run = dry_run

    def preview(self, operation: Operation) -> PreviewReport:
        selections = operation.selections()
        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            counts = count_selections(repositories, selections)
            snapshot = store_snapshot(repositories)
            uow.rollback()
        log.info("Preview %s: %s", operation.name, counts)
        return PreviewReport(operation=operation.name, counts=counts, snapshot=snapshot)

    def apply(self, operation: Operation, expected: PreviewReport | None = None) -> ApplyReport:
        """Apply ``operation`` in one transaction.

        When ``expected`` is given the selections are recounted first and the
        apply is refused with :class:`PreconditionFailed` if the preview was of a
        different operation or any count changed.
        """

        selections = operation.selections()
        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            if expected is not None:
                actual = count_selections(repositories, selections)
                if expected.operation != operation.name or actual != dict(expected.counts):
                    raise PreconditionFailed(
                        operation=operation.name,
                        expected=expected.counts,
                        actual=actual,
                        previewed=expected.operation,
                    )
            before = store_snapshot(repositories)
            counts = operation.execute(repositories, selections, now=self._clock())
            after = store_snapshot(repositories)
            uow.commit()
        log.info("Applied %s: %s", operation.name, counts)
        return ApplyReport(operation=operation.name, counts=counts, before=before, after=after)

    def run(self, operation: Operation, *, dry_run: bool | None = None) -> PreviewReport | ApplyReport:
        effective_dry_run = self.dry_run if dry_run is None else dry_run
        if effective_dry_run:
            return self.preview(operation)
        return self.apply(operation)
