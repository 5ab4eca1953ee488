"""Create recurring rule, ledger entry and config tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 10:00:00.000000
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    existing_tables = sa.inspect(bind).get_table_names()

    if "recurringrule" not in existing_tables:
        op.create_table(
            "recurringrule",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("currency", sa.String(length=3), nullable=False),
            sa.Column("category", sa.String(length=255), nullable=False),
            sa.Column("start_date", sa.Date(), nullable=False),
            sa.Column("interval", sa.String(length=50), nullable=False),
            sa.Column("occurrences", sa.Integer(), nullable=False),
            sa.Column("tags", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )

    if "ledgerentry" not in existing_tables:
        op.create_table(
            "ledgerentry",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("recurring_id", sa.String(length=36), nullable=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("category", sa.String(length=255), nullable=False),
            sa.Column("subcategory", sa.String(length=255), nullable=True),
            sa.Column("amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("currency", sa.String(length=3), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("tags", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )
        op.create_index("ix_ledgerentry_recurring_id", "ledgerentry", ["recurring_id"], unique=False)
        op.create_index("ix_ledgerentry_date", "ledgerentry", ["date"], unique=False)

    if "appconfig" not in existing_tables:
        op.create_table(
            "appconfig",
            sa.Column("id", sa.String(length=32), primary_key=True),
            sa.Column("categories", sa.JSON(), nullable=False),
            sa.Column("currency", sa.String(length=3), nullable=False),
            sa.Column("start_date", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )


def downgrade() -> None:
    op.drop_table("appconfig")
    op.drop_index("ix_ledgerentry_date", table_name="ledgerentry")
    op.drop_index("ix_ledgerentry_recurring_id", table_name="ledgerentry")
    op.drop_table("ledgerentry")
    op.drop_table("recurringrule")
