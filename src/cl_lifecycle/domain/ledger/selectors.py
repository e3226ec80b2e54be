"""Selector builders for ledger entries, including the named maintenance selectors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from cl_lifecycle.domain.errors import InvalidSelector
from cl_lifecycle.domain.model import PassName, ReasonCode
from cl_lifecycle.domain.predicates import (
    DomainIsUnique,
    Eq,
    In,
    OwnerMatches,
    SnapshotEq,
    all_of,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from uuid import UUID

    from cl_lifecycle.domain.predicates import Predicate

HTTP_404_RECLASSIFICATION: Final[Mapping[str, Any]] = {
    "resolution": "DOMAIN_EXISTS",
    "resolution_reason": "HTTP_404_means_domain_resolves_page_missing",
    "tool_used": "manual_reclassification",
    "tier": 0,
}


def by_failure(
    *,
    pass_name: str | None = None,
    reason_codes: Sequence[str] = (),
    company_ids: Sequence[UUID] = (),
    snapshot: Mapping[str, str] | None = None,
) -> Predicate:
    """Build a selector from failure attributes; omitted attributes match anything."""

    items: list[Predicate] = []
    if pass_name is not None:
        items.append(Eq("pass_name", pass_name))
    if reason_codes:
        items.append(In("reason_code", tuple(reason_codes)))
    if company_ids:
        items.append(In("company_id", tuple(company_ids)))
    items.extend(SnapshotEq(key, value) for key, value in (snapshot or {}).items())
    return all_of(*items)


def existence_confirmed() -> Predicate:
    """Existence failures of companies that have since been verified."""

    return all_of(
        Eq("pass_name", PassName.EXISTENCE),
        OwnerMatches(Eq("existence_verified", True)),
    )


def domain_collision_cleared() -> Predicate:
    """Domain collisions whose company now holds its domain alone."""

    return all_of(
        Eq("reason_code", ReasonCode.COLLISION_DOMAIN),
        OwnerMatches(DomainIsUnique()),
    )


def http_404_domain_failures() -> Predicate:
    """Domain failures caused by an HTTP 404, which proves the domain resolves."""

    return all_of(
        Eq("reason_code", ReasonCode.DOMAIN_FAIL),
        SnapshotEq("domain_error", "HTTP 404"),
    )


NAMED_SELECTORS: Final[Mapping[str, Callable[[], Predicate]]] = {
    "existence_confirmed": existence_confirmed,
    "domain_collision_cleared": domain_collision_cleared,
    "http_404_domain_failures": http_404_domain_failures,
}


def named_selector(name: str) -> Predicate:
    try:
        builder = NAMED_SELECTORS[name]
    except KeyError as exc:
        known = ", ".join(sorted(NAMED_SELECTORS))
        raise InvalidSelector(f"Unknown selector {name!r}; expected one of: {known}") from exc
    return builder()
