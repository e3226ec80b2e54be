"""Domain model for the company lifecycle registry."""

from __future__ import annotations

from .company import CompanyRecord, implied_status
from .enums import ArchiveReason, FinalOutcome, IdentityStatus, PassName, ReasonCode
from .ledger import ArchivedErrorEntry, ErrorEntry, FailureKey

__all__ = [
    "ArchiveReason",
    "ArchivedErrorEntry",
    "CompanyRecord",
    "ErrorEntry",
    "FailureKey",
    "FinalOutcome",
    "IdentityStatus",
    "PassName",
    "ReasonCode",
    "implied_status",
]
