"""Controller operations of the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cl_lifecycle.domain.controller import Selection
from cl_lifecycle.domain.predicates import Target

from .policy import sync_rules

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from cl_lifecycle.domain.ports import LifecycleRepositories


@dataclass(frozen=True, slots=True)
class SyncIdentityStatus:
    """Derive ``identity_status`` from ``existence_verified`` for eligible records."""

    force: bool = False

    @property
    def name(self) -> str:
        return "sync-force" if self.force else "sync"

    def selections(self) -> dict[str, Selection]:
        return {
            rule.category: Selection(Target.COMPANIES, rule.predicate)
            for rule in sync_rules(force=self.force)
        }

    def execute(
        self,
        repositories: LifecycleRepositories,
        selections: Mapping[str, Selection],
        *,
        now: datetime,
    ) -> dict[str, int]:
        # verified_at records when verification happened, not when status moved
        _ = now
        values = {rule.category: rule.values for rule in sync_rules(force=self.force)}
        return {
            category: repositories.companies.update_where(selection.predicate, values[category])
            for category, selection in selections.items()
        }
