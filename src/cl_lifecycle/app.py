"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from cl_lifecycle.adapters.signals import read_signal_file
from cl_lifecycle.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLifecycleUnitOfWork,
    is_started,
    startup,
)
from cl_lifecycle.config import get_controller_config
from cl_lifecycle.domain.companies import register_company as register_company_record
from cl_lifecycle.domain.controller import DryRunApplyController
from cl_lifecycle.domain.ledger import (
    DEFAULT_RULES,
    ArchiveResolvedErrors,
    ConvergeErrors,
    DeduplicateErrors,
    ErrorLedger,
    ReclassifyErrors,
    ResolveErrors,
)
from cl_lifecycle.domain.model import ArchiveReason
from cl_lifecycle.domain.ports.unit_of_work import LifecycleUnitOfWork
from cl_lifecycle.domain.reconciliation import ReconciliationEngine, SyncIdentityStatus
from cl_lifecycle.domain.signals import apply_signals

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path
    from typing import Any

    from cl_lifecycle.domain.controller import Operation
    from cl_lifecycle.domain.ledger import ConvergenceRule
    from cl_lifecycle.domain.model import CompanyRecord
    from cl_lifecycle.domain.predicates import Predicate
    from cl_lifecycle.domain.reports import (
        ApplyReport,
        DriftReport,
        DuplicateGroup,
        LedgerBucket,
        PreviewReport,
    )
    from cl_lifecycle.domain.signals import SignalIngestResult

UnitOfWorkFactory = Callable[[], LifecycleUnitOfWork]


log = getLogger(__name__)


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyLifecycleUnitOfWork


def run_operation(
    operation: Operation,
    *,
    dry_run: bool | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PreviewReport | ApplyReport:
    """Preview or apply ``operation``; ``dry_run`` defaults to ``CL_DRY_RUN``."""

    effective_dry_run = get_controller_config().dry_run if dry_run is None else dry_run
    controller = DryRunApplyController(_unit_of_work_factory(unit_of_work_factory))
    log.info("Starting %s (dry_run=%s)", operation.name, effective_dry_run)
    return controller.run(operation, dry_run=effective_dry_run)


def compute_drift(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> DriftReport:
    engine = ReconciliationEngine(_unit_of_work_factory(unit_of_work_factory))
    return engine.compute_drift()


def sync_identity_status(
    *,
    force: bool | None = None,
    dry_run: bool | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PreviewReport | ApplyReport:
    effective_force = get_controller_config().force if force is None else force
    return run_operation(
        SyncIdentityStatus(force=effective_force),
        dry_run=dry_run,
        unit_of_work_factory=unit_of_work_factory,
    )


def resolve_errors(
    selector: Predicate,
    *,
    dry_run: bool | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PreviewReport | ApplyReport:
    return run_operation(
        ResolveErrors(selector),
        dry_run=dry_run,
        unit_of_work_factory=unit_of_work_factory,
    )


def reclassify_errors(
    selector: Predicate,
    classification: Mapping[str, Any],
    *,
    verify_companies: bool = False,
    dry_run: bool | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PreviewReport | ApplyReport:
    return run_operation(
        ReclassifyErrors(selector, dict(classification), verify_companies=verify_companies),
        dry_run=dry_run,
        unit_of_work_factory=unit_of_work_factory,
    )


def converge_errors(
    *,
    rules: Sequence[ConvergenceRule] = DEFAULT_RULES,
    dry_run: bool | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PreviewReport | ApplyReport:
    return run_operation(
        ConvergeErrors(tuple(rules)),
        dry_run=dry_run,
        unit_of_work_factory=unit_of_work_factory,
    )


def archive_errors(
    *,
    reason: ArchiveReason = ArchiveReason.RESOLVED,
    selector: Predicate | None = None,
    dry_run: bool | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PreviewReport | ApplyReport:
    operation = (
        ArchiveResolvedErrors(reason)
        if selector is None
        else ArchiveResolvedErrors(reason, selector)
    )
    return run_operation(operation, dry_run=dry_run, unit_of_work_factory=unit_of_work_factory)


def dedupe_errors(
    *,
    dry_run: bool | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PreviewReport | ApplyReport:
    return run_operation(
        DeduplicateErrors(),
        dry_run=dry_run,
        unit_of_work_factory=unit_of_work_factory,
    )


def find_duplicates(
    *,
    include_resolved: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[DuplicateGroup]:
    ledger = ErrorLedger(_unit_of_work_factory(unit_of_work_factory))
    return ledger.find_duplicates(include_resolved=include_resolved)


def ledger_status(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> list[LedgerBucket]:
    return ErrorLedger(_unit_of_work_factory(unit_of_work_factory)).status()


def ingest_signals(
    path: Path,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SignalIngestResult:
    """Apply a JSON-lines file of verification signals to the store."""

    signals = read_signal_file(path)
    return apply_signals(signals, unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory))


def register_company(
    *,
    name: str,
    domain: str | None = None,
    linkedin_url: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> CompanyRecord:
    return register_company_record(
        name,
        domain,
        linkedin_url,
        unit_of_work_factory=_unit_of_work_factory(unit_of_work_factory),
    )
