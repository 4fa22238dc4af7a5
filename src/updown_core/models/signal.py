"""Signal models — momentum, edge, filter outcomes and the emitted Signal."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from updown_core.models.market import Asset, Direction, MarketType


class MomentumResult(BaseModel):
    """Directional strength of the recent price history."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(default=0.0, ge=-1.0, le=1.0)
    consistency: float = Field(default=0.0, ge=0.0, le=1.0)
    accelerating: bool = False
    direction_matches: bool = False


class EdgeEstimate(BaseModel):
    """Estimated win probability vs the quoted market probability."""

    model_config = ConfigDict(frozen=True)

    direction: Direction
    change_pct: float
    estimated_probability: float
    market_probability: float
    edge_pct: float
    min_move_pct: float
    min_edge_pct: float
    passed: bool
    reason: str = ""


class FilterResult(BaseModel):
    """Outcome of one entry filter."""

    model_config = ConfigDict(frozen=True)

    name: str
    passed: bool
    reason: str = ""


class FilterReport(BaseModel):
    """All results from one filter-chain evaluation."""

    model_config = ConfigDict(frozen=True)

    results: tuple[FilterResult, ...] = ()

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failure_reasons(self) -> list[str]:
        return [f"{r.name}: {r.reason}" for r in self.results if not r.passed]

    def get(self, name: str) -> FilterResult | None:
        return next((r for r in self.results if r.name == name), None)


class Signal(BaseModel):
    """An accepted entry decision for one asset."""

    model_config = ConfigDict(frozen=True)

    asset: Asset
    direction: Direction
    market_type: MarketType
    trigger_price: Decimal
    change_pct: float
    edge_pct: float
    estimated_probability: float
    token_price_cents: float
    confidence: float = Field(ge=0.0, le=1.0)
    size_usd: float
    generated_at: datetime


class SignalDecision(BaseModel):
    """The full outcome of evaluating one asset, accepted or not."""

    model_config = ConfigDict(frozen=True)

    asset: Asset
    accepted: bool
    # abstain | min_move | edge | filters | cooldown | accepted
    stage: str
    reasons: tuple[str, ...] = ()
    signal: Signal | None = None
    momentum: MomentumResult | None = None
    edge: EdgeEstimate | None = None
    filters: FilterReport | None = None
