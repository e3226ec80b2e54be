"""Reconciliation of ``identity_status`` with ``existence_verified``.

The pure functions operate on in-memory records; :class:`ReconciliationEngine`
runs the same predicates against the record store.
"""

from __future__ import annotations

from cl_lifecycle.domain.model import implied_status

from .drift import apply_sync, compute_drift
from .engine import ReconciliationEngine
from .operations import SyncIdentityStatus
from .policy import (
    EXISTENCE_NOT_VERIFIED,
    EXISTENCE_VERIFIED,
    SyncRule,
    conservative_eligibility,
    force_eligibility,
    needs_sync_predicate,
    sync_rules,
    sync_values,
)

__all__ = [
    "EXISTENCE_NOT_VERIFIED",
    "EXISTENCE_VERIFIED",
    "ReconciliationEngine",
    "SyncIdentityStatus",
    "SyncRule",
    "apply_sync",
    "compute_drift",
    "conservative_eligibility",
    "force_eligibility",
    "implied_status",
    "needs_sync_predicate",
    "sync_rules",
    "sync_values",
]
