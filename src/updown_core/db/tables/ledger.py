"""SQLAlchemy ORM model for closed trades."""

from sqlalchemy import BigInteger, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from updown_core.db.base import Base
from updown_core.db.tables.signals import SCHEMA


class TradeRow(Base):
    __tablename__ = "trades"
    __table_args__ = {"schema": SCHEMA}

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    asset: Mapped[str] = mapped_column(Text, nullable=False)
    market_type: Mapped[str] = mapped_column(Text, nullable=False)
    direction: Mapped[str] = mapped_column(Text, nullable=False)
    entry_underlying_price: Mapped[float] = mapped_column(Numeric, nullable=False)
    entry_token_price: Mapped[float] = mapped_column(Numeric, nullable=False)
    exit_token_price: Mapped[float] = mapped_column(Numeric, nullable=False)
    size_usd: Mapped[float] = mapped_column(Numeric, nullable=False)
    opened_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    closed_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    pnl_pct: Mapped[float] = mapped_column(Numeric, nullable=False)
    pnl_usd: Mapped[float] = mapped_column(Numeric, nullable=False)
    close_reason: Mapped[str] = mapped_column(Text, nullable=False)
    hold_seconds: Mapped[float] = mapped_column(Numeric, nullable=False)
