"""Engine events delivered to the event sink."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

from updown_core.models.market import Asset
from updown_core.models.position import CloseReason, LedgerEntry, Position
from updown_core.models.signal import Signal


class SignalDetected(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["signal_detected"] = "signal_detected"
    signal: Signal


class FilterRejected(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["filter_rejected"] = "filter_rejected"
    asset: Asset
    reason: str
    ts: datetime


class TradeOpened(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["trade_opened"] = "trade_opened"
    position: Position


class TradeClosed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["trade_closed"] = "trade_closed"
    entry: LedgerEntry

    @property
    def pnl_pct(self) -> float:
        return self.entry.pnl_pct

    @property
    def close_reason(self) -> CloseReason:
        return self.entry.close_reason


Event = Union[SignalDetected, FilterRejected, TradeOpened, TradeClosed]
