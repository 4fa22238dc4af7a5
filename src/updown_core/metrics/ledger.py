"""Ledger metrics — aggregate closed trades from memory or the database."""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from updown_core.db.tables.ledger import TradeRow
from updown_core.metrics.formulas import (
    avg_hold_seconds,
    expectancy,
    max_drawdown_usd,
    profit_factor,
    sharpe_ratio,
    win_rate,
)
from updown_core.models.position import LedgerEntry


@dataclass
class LedgerMetrics:
    """Aggregated metrics over a set of closed trades."""

    total_trades: int = 0
    wins: int = 0
    total_pnl_usd: float = 0.0
    avg_pnl_pct: float = 0.0
    avg_win_usd: float = 0.0
    avg_loss_usd: float = 0.0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    expectancy_usd: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown_usd: float = 0.0
    avg_hold_seconds: float = 0.0
    by_close_reason: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def _compute(
    pnl_usd: Sequence[float],
    pnl_pct: Sequence[float],
    holds: Sequence[float],
    reasons: Sequence[str],
) -> LedgerMetrics:
    total = len(pnl_usd)
    if total == 0:
        return LedgerMetrics()

    wins = [p for p in pnl_usd if p > 0]
    losses = [p for p in pnl_usd if p <= 0]
    avg_win = sum(wins) / len(wins) if wins else 0.0
    avg_loss = sum(losses) / len(losses) if losses else 0.0
    wr = win_rate(len(wins), total)

    return LedgerMetrics(
        total_trades=total,
        wins=len(wins),
        total_pnl_usd=sum(pnl_usd),
        avg_pnl_pct=sum(pnl_pct) / total,
        avg_win_usd=avg_win,
        avg_loss_usd=avg_loss,
        win_rate=wr,
        profit_factor=profit_factor(sum(wins), abs(sum(losses))),
        expectancy_usd=expectancy(wr, avg_win, avg_loss),
        sharpe_ratio=sharpe_ratio(pnl_pct),
        max_drawdown_usd=max_drawdown_usd(pnl_usd),
        avg_hold_seconds=avg_hold_seconds(holds),
        by_close_reason=dict(Counter(reasons)),
    )


def compute_ledger_metrics(entries: Sequence[LedgerEntry]) -> LedgerMetrics:
    """Metrics for in-memory ledger entries (assumed in close order)."""
    return _compute(
        [e.pnl_usd for e in entries],
        [e.pnl_pct for e in entries],
        [e.hold_seconds for e in entries],
        [e.close_reason for e in entries],
    )


def compute_persisted_metrics(session: Session, asset: str | None = None) -> LedgerMetrics:
    """Metrics over persisted trades, ordered by close time."""
    stmt = select(TradeRow).order_by(TradeRow.closed_at, TradeRow.id)
    if asset is not None:
        stmt = stmt.where(TradeRow.asset == asset)
    rows = session.execute(stmt).scalars().all()
    return _compute(
        [float(r.pnl_usd) for r in rows],
        [float(r.pnl_pct) for r in rows],
        [float(r.hold_seconds) for r in rows],
        [r.close_reason for r in rows],
    )
