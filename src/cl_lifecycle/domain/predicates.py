"""Declarative selection predicates.

Every mutating operation describes the rows it touches with a predicate from
this module. The same predicate value is counted by a preview and mutated by
an apply, and :func:`matches` evaluates it against in-memory records, so the
three can never drift apart. Storage adapters compile predicates into their
own query language.

Evaluation is two-valued: a comparison against a missing value is false and
``Not`` turns it into true. Adapters must reproduce that (SQL does so with
``NOT COALESCE(expr, FALSE)``).
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from cl_lifecycle.domain.errors import InvalidSelector

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from uuid import UUID

    from cl_lifecycle.domain.model import CompanyRecord, ErrorEntry


class Target(StrEnum):
    """Collection a predicate is evaluated against."""

    COMPANIES = "companies"
    ERRORS = "errors"


COMPANY_FIELDS = frozenset(
    {
        "id",
        "name",
        "domain",
        "linkedin_url",
        "existence_verified",
        "identity_status",
        "final_outcome",
        "final_reason",
        "fingerprint",
        "sovereign_id",
        "verified_at",
        "created_at",
    }
)

ERROR_FIELDS = frozenset(
    {
        "id",
        "company_id",
        "pass_name",
        "reason_code",
        "created_at",
        "resolved_at",
        "final_outcome",
        "final_reason",
    }
)

FIELDS_BY_TARGET: Mapping[Target, frozenset[str]] = {
    Target.COMPANIES: COMPANY_FIELDS,
    Target.ERRORS: ERROR_FIELDS,
}


@dataclass(frozen=True, slots=True)
class Always:
    """Matches everything."""


@dataclass(frozen=True, slots=True)
class Eq:
    field: str
    value: object


@dataclass(frozen=True, slots=True)
class In:
    field: str
    values: tuple[object, ...]


@dataclass(frozen=True, slots=True)
class IsNull:
    field: str


@dataclass(frozen=True, slots=True)
class Not:
    inner: Predicate


@dataclass(frozen=True, slots=True)
class And:
    items: tuple[Predicate, ...]


@dataclass(frozen=True, slots=True)
class Or:
    items: tuple[Predicate, ...]


@dataclass(frozen=True, slots=True)
class SnapshotEq:
    """Ledger entries whose ``inputs_snapshot[key]`` equals ``value``."""

    key: str
    value: str


@dataclass(frozen=True, slots=True)
class OwnerMatches:
    """Ledger entries whose owning company matches a company predicate."""

    inner: Predicate


@dataclass(frozen=True, slots=True)
class HasOpenError:
    """Companies owning at least one open ledger entry matching an error predicate."""

    inner: Predicate


@dataclass(frozen=True, slots=True)
class DomainIsUnique:
    """Companies whose non-empty domain is held by no other company."""


@dataclass(frozen=True, slots=True)
class SurplusDuplicate:
    """Ledger entries that are not the keeper of their failure-key group.

    Within each ``(company_id, pass_name, reason_code)`` group the keeper is the
    open entry if there is one, else the oldest (ties broken by id).
    """


type Predicate = (
    Always
    | Eq
    | In
    | IsNull
    | Not
    | And
    | Or
    | SnapshotEq
    | OwnerMatches
    | HasOpenError
    | DomainIsUnique
    | SurplusDuplicate
)


def all_of(*items: Predicate) -> Predicate:
    flattened = tuple(item for item in items if not isinstance(item, Always))
    if not flattened:
        return Always()
    if len(flattened) == 1:
        return flattened[0]
    return And(flattened)


def any_of(*items: Predicate) -> Predicate:
    if len(items) == 1:
        return items[0]
    return Or(tuple(items))


def is_open() -> Predicate:
    return IsNull("resolved_at")


def is_resolved() -> Predicate:
    return Not(IsNull("resolved_at"))


def validate_predicate(predicate: Predicate, target: Target) -> None:
    """Raise :class:`InvalidSelector` if ``predicate`` cannot be evaluated on ``target``."""

    fields = FIELDS_BY_TARGET[target]
    match predicate:
        case Always():
            return
        case DomainIsUnique() if target is Target.COMPANIES:
            return
        case SurplusDuplicate() if target is Target.ERRORS:
            return
        case Eq(field=name) | In(field=name) | IsNull(field=name):
            if name not in fields:
                raise InvalidSelector(f"Unknown {target.value} field: {name!r}")
        case Not(inner=inner):
            validate_predicate(inner, target)
        case And(items=items) | Or(items=items):
            for item in items:
                validate_predicate(item, target)
        case SnapshotEq() if target is Target.ERRORS:
            return
        case OwnerMatches(inner=inner) if target is Target.ERRORS:
            validate_predicate(inner, Target.COMPANIES)
        case HasOpenError(inner=inner) if target is Target.COMPANIES:
            validate_predicate(inner, Target.ERRORS)
        case _:
            raise InvalidSelector(
                f"{type(predicate).__name__} cannot select {target.value}"
            )


@dataclass(slots=True)
class EvaluationContext:
    """Cross-record state needed by relational predicates during in-memory evaluation."""

    companies: Mapping[UUID, CompanyRecord] = field(default_factory=dict["UUID", "CompanyRecord"])
    errors: Sequence[ErrorEntry] = ()
    _domain_counts: Counter[str] | None = None
    _surplus_ids: frozenset[UUID] | None = None

    @classmethod
    def from_records(
        cls,
        companies: Iterable[CompanyRecord] = (),
        errors: Iterable[ErrorEntry] = (),
    ) -> EvaluationContext:
        return cls(
            companies={company.id: company for company in companies},
            errors=tuple(errors),
        )

    def domain_count(self, domain: str) -> int:
        if self._domain_counts is None:
            self._domain_counts = Counter(
                company.domain for company in self.companies.values() if company.domain
            )
        return self._domain_counts[domain]

    def surplus_ids(self) -> frozenset[UUID]:
        if self._surplus_ids is None:
            groups: dict[tuple[object, ...], list[ErrorEntry]] = defaultdict(list)
            for entry in self.errors:
                groups[(entry.company_id, entry.pass_name, entry.reason_code)].append(entry)
            surplus: set[UUID] = set()
            for members in groups.values():
                ranked = sorted(members, key=_keeper_rank)
                surplus.update(entry.id for entry in ranked[1:])
            self._surplus_ids = frozenset(surplus)
        return self._surplus_ids


def _keeper_rank(entry: ErrorEntry) -> tuple[int, object, str]:
    return (0 if entry.resolved_at is None else 1, entry.created_at, entry.id.hex)


def matches(
    predicate: Predicate,
    item: CompanyRecord | ErrorEntry,
    context: EvaluationContext | None = None,
) -> bool:
    """Evaluate ``predicate`` against a single in-memory record."""

    ctx = context or EvaluationContext()
    match predicate:
        case Always():
            return True
        case Eq(field=name, value=None) | IsNull(field=name):
            return getattr(item, name) is None
        case Eq(field=name, value=value):
            current = getattr(item, name)
            return current is not None and current == value
        case In(field=name, values=values):
            current = getattr(item, name)
            return current is not None and current in values
        case Not(inner=inner):
            return not matches(inner, item, ctx)
        case And(items=items):
            return all(matches(sub, item, ctx) for sub in items)
        case Or(items=items):
            return any(matches(sub, item, ctx) for sub in items)
        case SnapshotEq(key=key, value=value):
            snapshot = getattr(item, "inputs_snapshot", None) or {}
            return snapshot.get(key) == value
        case OwnerMatches(inner=inner):
            owner = ctx.companies.get(getattr(item, "company_id"))  # noqa: B009
            return owner is not None and matches(inner, owner, ctx)
        case HasOpenError(inner=inner):
            return any(
                entry.company_id == item.id
                and entry.resolved_at is None
                and matches(inner, entry, ctx)
                for entry in ctx.errors
            )
        case DomainIsUnique():
            domain = getattr(item, "domain", None)
            return bool(domain) and ctx.domain_count(domain) == 1
        case SurplusDuplicate():
            return item.id in ctx.surplus_ids()
        case _:
            raise InvalidSelector(f"Unsupported predicate: {predicate!r}")


def select_matching[TItem: CompanyRecord | ErrorEntry](
    predicate: Predicate,
    items: Iterable[TItem],
    context: EvaluationContext | None = None,
) -> list[TItem]:
    return [item for item in items if matches(predicate, item, context)]
