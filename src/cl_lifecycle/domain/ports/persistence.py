"""Ports for persisting lifecycle aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from uuid import UUID

    from cl_lifecycle.domain.model import CompanyRecord, ErrorEntry, FailureKey, IdentityStatus
    from cl_lifecycle.domain.predicates import Predicate
    from cl_lifecycle.domain.reports import DuplicateGroup, LedgerBucket


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def count(self, predicate: Predicate) -> int: ...

    def find(self, predicate: Predicate) -> list[TEntity]: ...

    def update_where(self, predicate: Predicate, values: Mapping[str, Any]) -> int: ...


@runtime_checkable
class CompanyRepository(Repository["CompanyRecord"], Protocol):
    """Persistence contract for company identity records.

    ``add`` raises ``ConstraintViolation`` when the fingerprint is already taken.
    """

    def get(self, company_id: UUID) -> CompanyRecord | None: ...

    def get_by_fingerprint(self, fingerprint: str) -> CompanyRecord | None: ...

    def status_counts(self) -> dict[IdentityStatus | None, int]: ...


@runtime_checkable
class ErrorLedgerRepository(Repository["ErrorEntry"], Protocol):
    """Persistence contract for the verification failure ledger.

    ``add`` raises ``ConstraintViolation`` when an open entry already exists for
    the entry's failure key; ``insert_if_absent`` converges instead.
    """

    def get(self, entry_id: UUID) -> ErrorEntry | None: ...

    def find_open(self, key: FailureKey) -> ErrorEntry | None: ...

    def insert_if_absent(self, entry: ErrorEntry) -> ErrorEntry: ...

    def merge_snapshot_where(
        self,
        predicate: Predicate,
        classification: Mapping[str, Any],
        *,
        resolved_at: datetime,
    ) -> int: ...

    def archive_where(self, predicate: Predicate, *, reason: str, at: datetime) -> int: ...

    def duplicate_groups(self, *, include_resolved: bool = False) -> list[DuplicateGroup]: ...

    def buckets(self) -> list[LedgerBucket]: ...

    def archived_count(self) -> int: ...
