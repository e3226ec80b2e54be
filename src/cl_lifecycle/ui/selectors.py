"""Parse untrusted selector and classification payloads given on the command line."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from cl_lifecycle.domain.errors import InvalidSelector
from cl_lifecycle.domain.ledger import by_failure, named_selector
from cl_lifecycle.domain.predicates import Target, all_of, validate_predicate

if TYPE_CHECKING:
    from cl_lifecycle.domain.predicates import Predicate

_CLASSIFICATION_ADAPTER: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


class SelectorPayload(BaseModel):
    """JSON selector for ledger entries; every given criterion must hold."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    named: str | None = None
    pass_name: str | None = Field(default=None, min_length=1)
    reason_codes: list[str] = Field(default_factory=list)
    company_ids: list[uuid.UUID] = Field(default_factory=list)
    snapshot: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_single_reason_code(cls, value: object) -> object:
        if isinstance(value, dict) and "reason_code" in value:
            data: dict[str, Any] = dict(value)  # pyright: ignore[reportUnknownArgumentType]
            if "reason_codes" in data:
                raise ValueError("Give either reason_code or reason_codes, not both")
            data["reason_codes"] = [data.pop("reason_code")]
            return data
        return value

    def to_predicate(self) -> Predicate:
        criteria = by_failure(
            pass_name=self.pass_name,
            reason_codes=tuple(self.reason_codes),
            company_ids=tuple(self.company_ids),
            snapshot=self.snapshot,
        )
        if self.named is not None:
            return all_of(named_selector(self.named), criteria)
        return criteria

    @property
    def is_empty(self) -> bool:
        return (
            self.named is None
            and self.pass_name is None
            and not self.reason_codes
            and not self.company_ids
            and not self.snapshot
        )


def parse_selector(raw: str, *, allow_all: bool = False) -> Predicate:
    """Parse a JSON selector into a validated ledger predicate.

    An empty selector would match the whole ledger; it is refused unless
    ``allow_all`` is set.
    """

    try:
        payload = SelectorPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise InvalidSelector(f"Invalid selector: {exc}") from exc
    if payload.is_empty and not allow_all:
        raise InvalidSelector("Selector must name at least one criterion")
    predicate = payload.to_predicate()
    validate_predicate(predicate, Target.ERRORS)
    return predicate


def parse_classification(raw: str) -> dict[str, Any]:
    """Parse a JSON object of snapshot keys to merge during reclassification."""

    try:
        classification = _CLASSIFICATION_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise InvalidSelector(f"Invalid classification: {exc}") from exc
    if not classification:
        raise InvalidSelector("Classification must set at least one key")
    return classification

