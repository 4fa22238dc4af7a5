"""Create updown_ledger schema tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Schema is created by env.py before migrations run.

    op.create_table(
        "signals",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("asset", sa.Text, nullable=False),
        sa.Column("market_type", sa.Text, nullable=False),
        sa.Column("direction", sa.Text, nullable=False),
        sa.Column("trigger_price", sa.Numeric, nullable=False),
        sa.Column("change_pct", sa.Numeric, nullable=False),
        sa.Column("edge_pct", sa.Numeric, nullable=False),
        sa.Column("estimated_probability", sa.Numeric, nullable=False),
        sa.Column("token_price_cents", sa.Numeric, nullable=False),
        sa.Column("confidence", sa.Numeric, nullable=False),
        sa.Column("size_usd", sa.Numeric, nullable=False),
        sa.Column("metadata", postgresql.JSONB, nullable=True),
        sa.Column("acted_on", sa.Boolean, server_default=sa.text("false")),
        schema="updown_ledger",
    )
    op.create_index(
        "ix_signals_asset_ts", "signals", ["asset", "ts"], schema="updown_ledger",
    )

    op.create_table(
        "trades",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("asset", sa.Text, nullable=False),
        sa.Column("market_type", sa.Text, nullable=False),
        sa.Column("direction", sa.Text, nullable=False),
        sa.Column("entry_underlying_price", sa.Numeric, nullable=False),
        sa.Column("entry_token_price", sa.Numeric, nullable=False),
        sa.Column("exit_token_price", sa.Numeric, nullable=False),
        sa.Column("size_usd", sa.Numeric, nullable=False),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pnl_pct", sa.Numeric, nullable=False),
        sa.Column("pnl_usd", sa.Numeric, nullable=False),
        sa.Column("close_reason", sa.Text, nullable=False),
        sa.Column("hold_seconds", sa.Numeric, nullable=False),
        schema="updown_ledger",
    )
    op.create_index(
        "ix_trades_closed_at", "trades", ["closed_at"], schema="updown_ledger",
    )


def downgrade() -> None:
    op.drop_index("ix_trades_closed_at", table_name="trades", schema="updown_ledger")
    op.drop_table("trades", schema="updown_ledger")
    op.drop_index("ix_signals_asset_ts", table_name="signals", schema="updown_ledger")
    op.drop_table("signals", schema="updown_ledger")
