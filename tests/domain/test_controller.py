from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

from cl_lifecycle.domain.controller import DryRunApplyController, Selection, store_snapshot
from cl_lifecycle.domain.errors import InvalidSelector
from cl_lifecycle.domain.model import IdentityStatus
from cl_lifecycle.domain.predicates import Eq, IsNull, SurplusDuplicate, Target
from cl_lifecycle.domain.reports import ApplyReport, PreviewReport
from tests.helpers.companies import make_company, make_error, seed

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from cl_lifecycle.domain.controller import UnitOfWorkFactory
    from cl_lifecycle.domain.ports import LifecycleRepositories


@dataclass(frozen=True)
class _MarkPending:
    fail_after_update: bool = False

    @property
    def name(self) -> str:
        return "mark-pending"

    def selections(self) -> dict[str, Selection]:
        return {"marked": Selection(Target.COMPANIES, IsNull("identity_status"))}

    def execute(
        self,
        repositories: LifecycleRepositories,
        selections: Mapping[str, Selection],
        *,
        now: datetime,
    ) -> dict[str, int]:
        _ = now
        count = repositories.companies.update_where(
            selections["marked"].predicate,
            {"identity_status": IdentityStatus.PENDING},
        )
        if self.fail_after_update:
            raise RuntimeError("boom")
        return {"marked": count}


def test_selection_validates_predicate_against_target() -> None:
    with pytest.raises(InvalidSelector):
        Selection(Target.COMPANIES, Eq("reason_code", "DOMAIN_FAIL"))
    with pytest.raises(InvalidSelector):
        Selection(Target.COMPANIES, SurplusDuplicate())


def test_preview_counts_and_rolls_back(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    seed(sqlite_unit_of_work, companies=[make_company("A"), make_company("B")])
    controller = DryRunApplyController(sqlite_unit_of_work)

    report = controller.preview(_MarkPending())

    assert isinstance(report, PreviewReport)
    assert report.counts == {"marked": 2}
    assert report.total == 2
    assert report.snapshot["companies.NULL"] == 2
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.companies.status_counts() == {None: 2}


def test_apply_reports_snapshots_around_mutation(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    seed(sqlite_unit_of_work, companies=[make_company("A"), make_company("B")])
    controller = DryRunApplyController(sqlite_unit_of_work)

    report = controller.apply(_MarkPending())

    assert isinstance(report, ApplyReport)
    assert report.counts == {"marked": 2}
    assert report.before["companies.NULL"] == 2
    assert report.after["companies.NULL"] == 0
    assert report.after["companies.PENDING"] == 2


def test_failed_apply_leaves_store_untouched(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    seed(sqlite_unit_of_work, companies=[make_company("A")])
    controller = DryRunApplyController(sqlite_unit_of_work)

    with pytest.raises(RuntimeError, match="boom"):
        controller.apply(_MarkPending(fail_after_update=True))

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.companies.status_counts() == {None: 1}


def test_run_honours_dry_run_default_and_override(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    seed(sqlite_unit_of_work, companies=[make_company("A")])
    controller = DryRunApplyController(sqlite_unit_of_work, dry_run=True)

    assert isinstance(controller.run(_MarkPending()), PreviewReport)
    assert isinstance(controller.run(_MarkPending(), dry_run=False), ApplyReport)


def test_store_snapshot_covers_companies_and_ledger(
    sqlite_unit_of_work: UnitOfWorkFactory,
) -> None:
    company = make_company("A", identity_status=IdentityStatus.PASS)
    seed(
        sqlite_unit_of_work,
        companies=[company],
        errors=[make_error(company), make_error(company, resolved=True)],
    )

    with sqlite_unit_of_work() as uow:
        snapshot = store_snapshot(uow.repositories)

    assert snapshot == {
        "companies.PENDING": 0,
        "companies.PASS": 1,
        "companies.FAIL": 0,
        "companies.NULL": 0,
        "errors.open": 1,
        "errors.resolved": 1,
        "errors.archived": 0,
    }
