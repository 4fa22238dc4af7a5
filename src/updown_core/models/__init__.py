"""Pydantic domain models."""

from updown_core.models.events import (
    Event,
    FilterRejected,
    SignalDetected,
    TradeClosed,
    TradeOpened,
)
from updown_core.models.market import (
    INTERVAL_SECONDS,
    Asset,
    Direction,
    MarketContext,
    MarketType,
    OrderbookDepth,
    PriceSample,
    PriceState,
    VolumeSnapshot,
)
from updown_core.models.position import (
    CloseReason,
    ExecutionRequest,
    ExecutionResult,
    LedgerEntry,
    Position,
    PositionState,
)
from updown_core.models.signal import (
    EdgeEstimate,
    FilterReport,
    FilterResult,
    MomentumResult,
    Signal,
    SignalDecision,
)

__all__ = [
    "INTERVAL_SECONDS",
    "Asset",
    "CloseReason",
    "Direction",
    "EdgeEstimate",
    "Event",
    "ExecutionRequest",
    "ExecutionResult",
    "FilterRejected",
    "FilterReport",
    "FilterResult",
    "LedgerEntry",
    "MarketContext",
    "MarketType",
    "MomentumResult",
    "OrderbookDepth",
    "Position",
    "PositionState",
    "PriceSample",
    "PriceState",
    "Signal",
    "SignalDecision",
    "SignalDetected",
    "TradeClosed",
    "TradeOpened",
    "VolumeSnapshot",
]
