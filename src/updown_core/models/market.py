"""Market data models — assets, price history snapshots, market context."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Asset(str, Enum):
    """Tracked underlying assets."""

    BTC = "BTC"
    ETH = "ETH"
    SOL = "SOL"
    XRP = "XRP"


MarketType = Literal["5m", "15m", "1h", "4h"]
Direction = Literal["UP", "DOWN"]

INTERVAL_SECONDS: dict[str, int] = {
    "5m": 300,
    "15m": 900,
    "1h": 3600,
    "4h": 14400,
}


def market_type_for_minutes(minutes: int) -> MarketType | None:
    """Map an interval length in minutes to a market type, or None if unsupported."""
    for market_type, seconds in INTERVAL_SECONDS.items():
        if seconds == minutes * 60:
            return market_type  # type: ignore[return-value]
    return None


class PriceSample(BaseModel):
    """One recorded underlying price."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    price: Decimal


class PriceState(BaseModel):
    """Consistent point-in-time copy of one asset's price tracking state."""

    model_config = ConfigDict(frozen=True)

    asset: Asset
    current_price: Decimal = Decimal(0)
    interval_start_price: Decimal = Decimal(0)
    history: tuple[PriceSample, ...] = ()
    last_updated: datetime | None = None
    interval_started_at: datetime | None = None

    @property
    def change_pct(self) -> float:
        """Percent change since the interval start; 0 when there is no reference."""
        if self.interval_start_price == 0:
            return 0.0
        return float(
            (self.current_price - self.interval_start_price) / self.interval_start_price * 100
        )

    def velocity_pct(self, window_s: float, now: datetime) -> float:
        """Percent move over the last *window_s* seconds of history.

        Uses the oldest sample inside the window (or the oldest sample
        overall when none fall inside it) as the reference.
        """
        if len(self.history) < 2:
            return 0.0
        cutoff = now - timedelta(seconds=window_s)
        start = next((s.price for s in self.history if s.timestamp >= cutoff), self.history[0].price)
        if start == 0:
            return 0.0
        return float((self.history[-1].price - start) / start * 100)


class MarketContext(BaseModel):
    """Current prediction-market quote and metadata for one asset."""

    model_config = ConfigDict(frozen=True)

    asset: Asset
    market_type: MarketType
    yes_price_cents: float = Field(ge=0.0, le=100.0)
    no_price_cents: float | None = Field(default=None, ge=0.0, le=100.0)
    interval_duration_s: float | None = None
    resolves_at: datetime | None = None
    condition_id: str = ""
    yes_token_id: str = ""
    no_token_id: str = ""
    description: str = ""

    @property
    def interval_seconds(self) -> float:
        if self.interval_duration_s is not None:
            return self.interval_duration_s
        return float(INTERVAL_SECONDS[self.market_type])

    def quote_for(self, direction: Direction) -> float:
        """Price in cents of the token held for *direction* (YES for UP, NO for DOWN)."""
        if direction == "UP":
            return self.yes_price_cents
        if self.no_price_cents is not None:
            return self.no_price_cents
        return 100.0 - self.yes_price_cents

    def token_for(self, direction: Direction) -> str:
        return self.yes_token_id if direction == "UP" else self.no_token_id


class OrderbookDepth(BaseModel):
    """USD depth summary of the YES token's order book."""

    model_config = ConfigDict(frozen=True)

    bid_depth_usd: float = 0.0
    ask_depth_usd: float = 0.0
    spread_pct: float = 0.0

    def for_side(self, side: Literal["bid", "ask"]) -> float:
        return self.bid_depth_usd if side == "bid" else self.ask_depth_usd


class VolumeSnapshot(BaseModel):
    """Current-minute vs rolling-average traded notional (USD) for one asset."""

    model_config = ConfigDict(frozen=True)

    current_volume: float = 0.0
    average_volume: float = 0.0
