"""Structured reports returned by every lifecycle operation.

Reports are plain values; rendering them for a console or a log is left to
``cl_lifecycle.ui.render``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

NULL_STATUS = "NULL"


@dataclass(frozen=True, slots=True)
class DriftReport:
    """How far ``identity_status`` has drifted from ``existence_verified``."""

    status_counts: dict[str, int]
    total: int
    needs_sync: int
    would_pass: int
    would_fail: int
    would_pend: int

    @property
    def in_sync(self) -> bool:
        return self.would_pass == 0 and self.would_fail == 0 and self.would_pend == 0


@dataclass(frozen=True, slots=True)
class SyncResult:
    passed: int
    failed: int
    pending: int = 0
    force: bool = False

    @property
    def transitioned(self) -> int:
        return self.passed + self.failed + self.pending


@dataclass(frozen=True, slots=True)
class PreviewReport:
    """Forecast of an operation: rows selected per category, nothing mutated."""

    operation: str
    counts: dict[str, int]
    snapshot: dict[str, int] = field(default_factory=dict[str, int])

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclass(frozen=True, slots=True)
class ApplyReport:
    """Outcome of an applied operation with store snapshots taken around it."""

    operation: str
    counts: dict[str, int]
    before: dict[str, int]
    after: dict[str, int]

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclass(frozen=True, slots=True)
class ResolutionReport:
    resolved: int
    empty_selection: bool
    verified_companies: int = 0


@dataclass(frozen=True, slots=True)
class DuplicateGroup:
    company_id: UUID
    pass_name: str
    reason_code: str
    count: int

    @property
    def surplus(self) -> int:
        return self.count - 1


@dataclass(frozen=True, slots=True)
class LedgerBucket:
    pass_name: str
    reason_code: str
    open: int
    resolved: int

    @property
    def total(self) -> int:
        return self.open + self.resolved
