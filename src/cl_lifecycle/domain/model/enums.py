"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class IdentityStatus(StrEnum):
    PENDING = "PENDING"
    PASS = "PASS"
    FAIL = "FAIL"


class FinalOutcome(StrEnum):
    PASS = "PASS"
    FAIL = "FAIL"


class PassName(StrEnum):
    """Verification passes that write to the error ledger."""

    EXISTENCE = "existence"
    DOMAIN_COHERENCE = "domain_coherence"
    FIRMOGRAPHIC_COHERENCE = "firmographic_coherence"
    COLLISION = "collision"
    NAME_CANONICALIZATION = "name_canonicalization"


class ReasonCode(StrEnum):
    DOMAIN_FAIL = "DOMAIN_FAIL"
    COLLISION_DOMAIN = "COLLISION_DOMAIN"
    COLLISION_AMBIGUOUS = "COLLISION_AMBIGUOUS"
    COLLISION_NAME = "COLLISION_NAME"
    COLLISION_LINKEDIN = "COLLISION_LINKEDIN"
    NAME_EMPTY = "NAME_EMPTY"
    STATE_NOT_NC = "STATE_NOT_NC"
    MISSING_LINKEDIN = "MISSING_LINKEDIN"
    FIRMOGRAPHIC_FAIL = "FIRMOGRAPHIC_FAIL"


class ArchiveReason(StrEnum):
    RESOLVED = "RESOLVED"
    DUPLICATE = "DUPLICATE"
    BINARY_CONVERGENCE = "BINARY_CONVERGENCE"
