"""Enforce at most one open ledger entry per failure key.

Surplus open entries are archived with reason DUPLICATE before the index is
created. The oldest open entry of each failure key is kept, ties by id.

Revision ID: 0002
Revises: 0001
Create Date: 2026-01-19 14:05:00

"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import sqlalchemy as sa
from alembic import op

revision: str = "0002"
down_revision: str | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_LEDGER_COLUMNS = (
    "id",
    "company_id",
    "pass_name",
    "reason_code",
    "inputs_snapshot",
    "created_at",
    "final_outcome",
    "final_reason",
)

error_entry = sa.table(
    "error_entry",
    *(sa.column(name) for name in _LEDGER_COLUMNS),
    sa.column("resolved_at"),
)
error_entry_archive = sa.table(
    "error_entry_archive",
    *(sa.column(name) for name in _LEDGER_COLUMNS),
    sa.column("resolved_at"),
    sa.column("archived_at"),
    sa.column("archive_reason"),
)


def _surplus_open_entry_ids() -> list[object]:
    keeper_rank = (
        sa.func.row_number()
        .over(
            partition_by=(
                error_entry.c.company_id,
                error_entry.c.pass_name,
                error_entry.c.reason_code,
            ),
            order_by=(error_entry.c.created_at, error_entry.c.id),
        )
        .label("keeper_rank")
    )
    ranked = (
        sa.select(error_entry.c.id, keeper_rank)
        .where(error_entry.c.resolved_at.is_(None))
        .subquery()
    )
    stmt = sa.select(ranked.c.id).where(ranked.c.keeper_rank > 1)
    return list(op.get_bind().execute(stmt).scalars())


def _archive_surplus_open_entries() -> None:
    surplus = _surplus_open_entry_ids()
    if not surplus:
        return
    now = datetime.now(UTC)
    copied = sa.select(
        *(error_entry.c[name] for name in _LEDGER_COLUMNS),
        sa.literal(now, sa.DateTime(timezone=True)).label("resolved_at"),
        sa.literal(now, sa.DateTime(timezone=True)).label("archived_at"),
        sa.literal("DUPLICATE", sa.String(32)).label("archive_reason"),
    ).where(error_entry.c.id.in_(surplus))
    op.execute(
        error_entry_archive.insert().from_select(
            [*_LEDGER_COLUMNS, "resolved_at", "archived_at", "archive_reason"],
            copied,
        )
    )
    op.execute(error_entry.delete().where(error_entry.c.id.in_(surplus)))


def upgrade() -> None:
    _archive_surplus_open_entries()
    op.create_index(
        "uq_error_entry_open_failure",
        "error_entry",
        ["company_id", "pass_name", "reason_code"],
        unique=True,
        sqlite_where=sa.text("resolved_at IS NULL"),
        postgresql_where=sa.text("resolved_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_error_entry_open_failure", table_name="error_entry")
