"""Verification failure ledger entries."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .enums import FinalOutcome


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class FailureKey:
    """Identity of a unit of work in the ledger: at most one open entry per key."""

    company_id: uuid.UUID
    pass_name: str
    reason_code: str


@dataclass(eq=False)
class ErrorEntry:
    """A failure recorded by a verification pass.

    Entries are never deleted while active: resolution sets ``resolved_at`` and
    reclassification appends keys to ``inputs_snapshot`` so that what was
    originally detected stays auditable.
    """

    company_id: uuid.UUID
    pass_name: str
    reason_code: str
    inputs_snapshot: dict[str, Any] = field(default_factory=dict[str, Any])
    created_at: datetime = field(default_factory=_utcnow)
    resolved_at: datetime | None = None
    final_outcome: FinalOutcome | None = None
    final_reason: str | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def key(self) -> FailureKey:
        return FailureKey(self.company_id, self.pass_name, self.reason_code)

    @property
    def is_open(self) -> bool:
        return self.resolved_at is None

    def resolve(self, *, at: datetime) -> None:
        if self.resolved_at is None:
            self.resolved_at = at

    def reclassify(self, classification: Mapping[str, Any], *, at: datetime) -> None:
        # reassign so that ORM change tracking sees the new JSON payload
        self.inputs_snapshot = {**self.inputs_snapshot, **classification}
        self.resolve(at=at)


@dataclass(eq=False)
class ArchivedErrorEntry:
    """Copy of a ledger entry moved out of the active ledger."""

    id: uuid.UUID
    company_id: uuid.UUID
    pass_name: str
    reason_code: str
    inputs_snapshot: dict[str, Any]
    created_at: datetime
    resolved_at: datetime
    archived_at: datetime
    archive_reason: str
    final_outcome: FinalOutcome | None = None
    final_reason: str | None = None

    @classmethod
    def from_entry(cls, entry: ErrorEntry, *, at: datetime, reason: str) -> ArchivedErrorEntry:
        return cls(
            id=entry.id,
            company_id=entry.company_id,
            pass_name=entry.pass_name,
            reason_code=entry.reason_code,
            inputs_snapshot=dict(entry.inputs_snapshot),
            created_at=entry.created_at,
            resolved_at=entry.resolved_at or at,
            archived_at=at,
            archive_reason=reason,
            final_outcome=entry.final_outcome,
            final_reason=entry.final_reason,
        )
