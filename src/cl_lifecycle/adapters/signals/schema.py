"""Pydantic models describing verification signal files."""

from __future__ import annotations

import uuid
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cl_lifecycle.domain.signals import VerificationSignal


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class VerificationSignalPayload(BaseModel):
    """One JSON line emitted by a verification pass."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    company_id: uuid.UUID
    pass_name: str = Field(min_length=1)
    verified: bool
    reason_code: str | None = None
    evidence: dict[str, Any] = Field(default_factory=dict)

    _normalize_reason_code = field_validator("reason_code", mode="before")(_blank_to_none)

    @model_validator(mode="after")
    def _require_reason_for_failures(self) -> Self:
        if not self.verified and self.reason_code is None:
            raise ValueError("reason_code is required when verified is false")
        return self

    def to_domain(self) -> VerificationSignal:
        return VerificationSignal(
            company_id=self.company_id,
            pass_name=self.pass_name,
            verified=self.verified,
            reason_code=self.reason_code,
            evidence=dict(self.evidence),
        )
