"""Company identity records."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from cl_lifecycle.domain.fingerprint import company_fingerprint

from .enums import FinalOutcome, IdentityStatus


def _utcnow() -> datetime:
    return datetime.now(UTC)


def implied_status(existence_verified: bool | None) -> IdentityStatus:
    """Return the identity status implied by an existence verification result."""

    if existence_verified is True:
        return IdentityStatus.PASS
    if existence_verified is False:
        return IdentityStatus.FAIL
    return IdentityStatus.PENDING


@dataclass(eq=False)
class CompanyRecord:
    """A company identity tracked through its lifecycle.

    ``identity_status`` is derived from ``existence_verified`` by the status sync;
    ``None`` means the record has never been synced.
    """

    name: str
    domain: str | None = None
    linkedin_url: str | None = None
    existence_verified: bool | None = None
    identity_status: IdentityStatus | None = None
    final_outcome: FinalOutcome | None = None
    final_reason: str | None = None
    fingerprint: str = ""
    sovereign_id: uuid.UUID | None = None
    verified_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if not self.fingerprint:
            self.fingerprint = company_fingerprint(self.name, self.domain, self.linkedin_url)

    @property
    def implied_status(self) -> IdentityStatus:
        return implied_status(self.existence_verified)

    @property
    def is_in_sync(self) -> bool:
        return self.identity_status is self.implied_status

    def record_verification(self, verified: bool, *, at: datetime) -> None:  # noqa: FBT001
        self.existence_verified = verified
        self.verified_at = at
