# ruff: noqa: I001
"""Ledger tables written by the statement importer.

Revision ID: 0001_import_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_import_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    # financial_periods
    op.create_table(
        "financial_periods",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        _created_at(),
        # Period get-or-create settles concurrent creators on this constraint.
        sa.UniqueConstraint(
            "user_id", "month", "year", name="uq_financial_periods_user_month_year"
        ),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_financial_periods_month"),
    )
    op.create_index("ix_financial_periods_user_id", "financial_periods", ["user_id"])

    # categories
    op.create_table(
        "categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        _created_at(),
        sa.CheckConstraint("type in ('income','expense')", name="ck_categories_type"),
    )
    op.create_index("ix_categories_user_id", "categories", ["user_id"])

    # incomes / expenses
    for table, extra in (
        ("incomes", []),
        (
            "expenses",
            [
                sa.Column("payment_method", sa.String(), nullable=False),
                sa.Column(
                    "is_essential",
                    sa.Boolean(),
                    nullable=False,
                    server_default=sa.false(),
                ),
            ],
        ),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("user_id", sa.String(), nullable=False),
            sa.Column(
                "period_id",
                sa.String(36),
                sa.ForeignKey("financial_periods.id"),
                nullable=False,
            ),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("value", sa.Numeric(14, 2), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column(
                "category_id",
                sa.String(36),
                sa.ForeignKey("categories.id"),
                nullable=True,
            ),
            *extra,
            _created_at(),
        )
        op.create_index(f"ix_{table}_user_id", table, ["user_id"])

    # reserves_investments
    op.create_table(
        "reserves_investments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("value", sa.Numeric(14, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        _created_at(),
        sa.CheckConstraint("type in ('investment','market')", name="ck_reserves_type"),
    )
    op.create_index("ix_reserves_investments_user_id", "reserves_investments", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_reserves_investments_user_id", table_name="reserves_investments")
    op.drop_table("reserves_investments")
    for table in ("expenses", "incomes"):
        op.drop_index(f"ix_{table}_user_id", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_categories_user_id", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_financial_periods_user_id", table_name="financial_periods")
    op.drop_table("financial_periods")
