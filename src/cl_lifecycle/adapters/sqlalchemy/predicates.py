"""Compile domain predicates into SQLAlchemy boolean expressions.

Compiled expressions keep the two-valued semantics of the in-memory
evaluator: ``Not`` wraps its operand in ``COALESCE(expr, FALSE)`` so that a
comparison against NULL selects the same rows in SQL as in Python.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import (
    and_,
    case,
    exists,
    false,
    func,
    not_,
    or_,
    select,
    true,
)

from cl_lifecycle.adapters.sqlalchemy.mappings import company_table, error_entry_table
from cl_lifecycle.domain.errors import InvalidSelector
from cl_lifecycle.domain.predicates import (
    Always,
    And,
    DomainIsUnique,
    Eq,
    HasOpenError,
    In,
    IsNull,
    Not,
    Or,
    OwnerMatches,
    SnapshotEq,
    SurplusDuplicate,
)

if TYPE_CHECKING:
    import uuid

    from sqlalchemy import ColumnElement, FromClause, Select
    from sqlalchemy.sql.elements import KeyedColumnElement

    from cl_lifecycle.domain.predicates import Predicate


def compile_predicate(predicate: Predicate, table: FromClause) -> ColumnElement[bool]:
    """Return a WHERE clause selecting the rows of ``table`` matching ``predicate``.

    ``table`` is the company or ledger table, or an alias of either.
    """

    match predicate:
        case Always():
            return true()
        case Eq(field=name, value=None) | IsNull(field=name):
            return _column(table, name).is_(None)
        case Eq(field=name, value=value):
            return _column(table, name) == value
        case In(values=()):
            return false()
        case In(field=name, values=values):
            return _column(table, name).in_(values)
        case Not(inner=inner):
            return not_(func.coalesce(compile_predicate(inner, table), false()))
        case And(items=()):
            return true()
        case And(items=items):
            return and_(*(compile_predicate(item, table) for item in items))
        case Or(items=()):
            return false()
        case Or(items=items):
            return or_(*(compile_predicate(item, table) for item in items))
        case SnapshotEq(key=key, value=value):
            return table.c.inputs_snapshot[key].as_string() == value
        case OwnerMatches(inner=inner):
            owner = company_table.alias()
            return exists(
                select(owner.c.id)
                .where(owner.c.id == table.c.company_id)
                .where(compile_predicate(inner, owner))
            )
        case HasOpenError(inner=inner):
            entry = error_entry_table.alias()
            return exists(
                select(entry.c.id)
                .where(entry.c.company_id == table.c.id)
                .where(entry.c.resolved_at.is_(None))
                .where(compile_predicate(inner, entry))
            )
        case DomainIsUnique():
            return table.c.domain.in_(_unique_domains())
        case SurplusDuplicate():
            return table.c.id.in_(_surplus_entry_ids())
        case _:
            raise InvalidSelector(f"Unsupported predicate: {predicate!r}")


def _column(table: FromClause, name: str) -> KeyedColumnElement[object]:
    try:
        return table.c[name]
    except KeyError as exc:
        raise InvalidSelector(f"Unknown column {name!r} on {table.description}") from exc


def _unique_domains() -> Select[tuple[str | None]]:
    peer = company_table.alias()
    return (
        select(peer.c.domain)
        .where(peer.c.domain.is_not(None))
        .where(peer.c.domain != "")
        .group_by(peer.c.domain)
        .having(func.count() == 1)
    )


def _surplus_entry_ids() -> Select[tuple[uuid.UUID]]:
    # keeper of each failure key: the open entry, else the oldest, ties by id
    peer = error_entry_table.alias()
    keeper_rank = (
        func.row_number()
        .over(
            partition_by=(peer.c.company_id, peer.c.pass_name, peer.c.reason_code),
            order_by=(
                case((peer.c.resolved_at.is_(None), 0), else_=1),
                peer.c.created_at,
                peer.c.id,
            ),
        )
        .label("keeper_rank")
    )
    ranked = select(peer.c.id, keeper_rank).subquery()
    return select(ranked.c.id).where(ranked.c.keeper_rank > 1)
