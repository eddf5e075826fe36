"""Create rate cache, security reference and broker preference tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from brokermerge.adapters.sqlalchemy.tables import UTCDateTime

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "exchange_rate",
        sa.Column("from_currency", sa.String(3), nullable=False),
        sa.Column("to_currency", sa.String(3), nullable=False),
        sa.Column("rate", sa.Float(), nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("fetched_at", UTCDateTime(), nullable=False),
        sa.Column("expires_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("from_currency", "to_currency", name="pk_exchange_rate"),
    )
    op.create_index("ix_exchange_rate_expires_at", "exchange_rate", ["expires_at"])
    op.create_table(
        "security_reference",
        sa.Column("symbol", sa.String(32), nullable=False),
        sa.Column("isin", sa.String(12), nullable=True),
        sa.Column("cusip", sa.String(9), nullable=True),
        sa.Column("sedol", sa.String(7), nullable=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("exchange", sa.String(16), nullable=True),
        sa.PrimaryKeyConstraint("symbol", name="pk_security_reference"),
    )
    op.create_table(
        "broker_preference",
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("priorities", sa.JSON(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("user_id", name="pk_broker_preference"),
    )


def downgrade() -> None:
    op.drop_table("broker_preference")
    op.drop_table("security_reference")
    op.drop_index("ix_exchange_rate_expires_at", table_name="exchange_rate")
    op.drop_table("exchange_rate")
