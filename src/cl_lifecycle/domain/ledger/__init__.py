"""Verification failure ledger: recording, resolution and maintenance."""

from __future__ import annotations

from .convergence import DEFAULT_RULES, ConvergenceRule, disjoint_selections
from .operations import (
    ArchiveResolvedErrors,
    ConvergeErrors,
    DeduplicateErrors,
    ReclassifyErrors,
    ResolveErrors,
)
from .selectors import (
    HTTP_404_RECLASSIFICATION,
    NAMED_SELECTORS,
    by_failure,
    domain_collision_cleared,
    existence_confirmed,
    http_404_domain_failures,
    named_selector,
)
from .service import ErrorLedger

__all__ = [
    "DEFAULT_RULES",
    "HTTP_404_RECLASSIFICATION",
    "NAMED_SELECTORS",
    "ArchiveResolvedErrors",
    "ConvergeErrors",
    "ConvergenceRule",
    "DeduplicateErrors",
    "ErrorLedger",
    "ReclassifyErrors",
    "ResolveErrors",
    "by_failure",
    "disjoint_selections",
    "domain_collision_cleared",
    "existence_confirmed",
    "http_404_domain_failures",
    "named_selector",
]
