"""Position, ledger and execution models."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict

from updown_core.models.market import Asset, Direction, MarketType

CloseReason = Literal["take_profit", "stop_loss", "time_exit"]


class PositionState(str, Enum):
    EMPTY = "EMPTY"
    PENDING = "PENDING"
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class Position(BaseModel):
    """A live position on one asset's up/down market.

    Token prices are in cents. ``last_token_price`` tracks the most recent
    held-side quote seen by the exit check.
    """

    asset: Asset
    direction: Direction
    market_type: MarketType
    entry_underlying_price: Decimal
    entry_token_price: float
    last_token_price: float
    size_usd: float
    opened_at: datetime
    interval_duration_s: float
    resolves_at: datetime | None = None
    token_id: str = ""
    state: PositionState = PositionState.OPEN

    def pnl_pct(self, token_price: float) -> float:
        if self.entry_token_price <= 0:
            return 0.0
        return (token_price - self.entry_token_price) / self.entry_token_price * 100

    def elapsed_seconds(self, now: datetime) -> float:
        return (now - self.opened_at).total_seconds()

    @property
    def interval_end(self) -> datetime:
        if self.resolves_at is not None:
            return self.resolves_at
        return self.opened_at + timedelta(seconds=self.interval_duration_s)


class LedgerEntry(BaseModel):
    """Frozen record of a closed position."""

    model_config = ConfigDict(frozen=True)

    asset: Asset
    direction: Direction
    market_type: MarketType
    entry_underlying_price: Decimal
    entry_token_price: float
    exit_token_price: float
    size_usd: float
    opened_at: datetime
    closed_at: datetime
    pnl_pct: float
    pnl_usd: float
    close_reason: CloseReason
    hold_seconds: float


class ExecutionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    asset: Asset
    direction: Direction
    size_usd: float
    reference_price: float
    token_id: str = ""


class ExecutionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    filled: bool
    fill_price: float | None = None
    error: str | None = None
