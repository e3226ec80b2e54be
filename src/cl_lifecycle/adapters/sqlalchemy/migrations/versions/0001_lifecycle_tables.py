"""Create company identity, error ledger and ledger archive tables.

Revision ID: 0001
Revises:
Create Date: 2026-01-12 09:30:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _status_enum() -> sa.Enum:
    return sa.Enum("PENDING", "PASS", "FAIL", name="identity_status", native_enum=False, length=16)


def _outcome_enum() -> sa.Enum:
    return sa.Enum("PASS", "FAIL", name="final_outcome", native_enum=False, length=16)


def upgrade() -> None:
    op.create_table(
        "company_identity",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=True),
        sa.Column("linkedin_url", sa.String(length=512), nullable=True),
        sa.Column("existence_verified", sa.Boolean(), nullable=True),
        sa.Column("identity_status", _status_enum(), nullable=True),
        sa.Column("final_outcome", _outcome_enum(), nullable=True),
        sa.Column("final_reason", sa.String(length=128), nullable=True),
        sa.Column("fingerprint", sa.String(length=64), nullable=False),
        sa.Column("sovereign_id", sa.Uuid(), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_company_identity"),
        sa.UniqueConstraint("fingerprint", name="uq_company_identity_fingerprint"),
        sa.UniqueConstraint("sovereign_id", name="uq_company_identity_sovereign_id"),
    )
    op.create_index("ix_company_identity_domain", "company_identity", ["domain"])
    op.create_index("ix_company_identity_identity_status", "company_identity", ["identity_status"])

    op.create_table(
        "error_entry",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("pass_name", sa.String(length=64), nullable=False),
        sa.Column("reason_code", sa.String(length=64), nullable=False),
        sa.Column("inputs_snapshot", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_outcome", _outcome_enum(), nullable=True),
        sa.Column("final_reason", sa.String(length=128), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_error_entry"),
    )
    op.create_index("ix_error_entry_company_id", "error_entry", ["company_id"])
    op.create_index("ix_error_entry_pass_reason", "error_entry", ["pass_name", "reason_code"])

    op.create_table(
        "error_entry_archive",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("pass_name", sa.String(length=64), nullable=False),
        sa.Column("reason_code", sa.String(length=64), nullable=False),
        sa.Column("inputs_snapshot", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("archive_reason", sa.String(length=32), nullable=False),
        sa.Column("final_outcome", _outcome_enum(), nullable=True),
        sa.Column("final_reason", sa.String(length=128), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_error_entry_archive"),
    )
    op.create_index("ix_error_entry_archive_company_id", "error_entry_archive", ["company_id"])


def downgrade() -> None:
    op.drop_index("ix_error_entry_archive_company_id", table_name="error_entry_archive")
    op.drop_table("error_entry_archive")
    op.drop_index("ix_error_entry_pass_reason", table_name="error_entry")
    op.drop_index("ix_error_entry_company_id", table_name="error_entry")
    op.drop_table("error_entry")
    op.drop_index("ix_company_identity_identity_status", table_name="company_identity")
    op.drop_index("ix_company_identity_domain", table_name="company_identity")
    op.drop_table("company_identity")
