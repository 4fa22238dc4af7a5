"""SQLAlchemy ORM models for the updown_ledger schema."""

from sqlalchemy import BigInteger, Boolean, Numeric, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from updown_core.db.base import Base

SCHEMA = "updown_ledger"


class SignalRow(Base):
    """An accepted entry signal, whether or not it was filled."""

    __tablename__ = "signals"
    __table_args__ = {"schema": SCHEMA}

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    ts: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    asset: Mapped[str] = mapped_column(Text, nullable=False)
    market_type: Mapped[str] = mapped_column(Text, nullable=False)
    direction: Mapped[str] = mapped_column(Text, nullable=False)
    trigger_price: Mapped[float] = mapped_column(Numeric, nullable=False)
    change_pct: Mapped[float] = mapped_column(Numeric, nullable=False)
    edge_pct: Mapped[float] = mapped_column(Numeric, nullable=False)
    estimated_probability: Mapped[float] = mapped_column(Numeric, nullable=False)
    token_price_cents: Mapped[float] = mapped_column(Numeric, nullable=False)
    confidence: Mapped[float] = mapped_column(Numeric, nullable=False)
    size_usd: Mapped[float] = mapped_column(Numeric, nullable=False)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    acted_on: Mapped[bool] = mapped_column(Boolean, default=False)
