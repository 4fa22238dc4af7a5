"""Pure metric computation functions — no DB, no SQLAlchemy."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def win_rate(wins: int, total: int) -> float:
    """Win rate as a percentage 0-100."""
    if total <= 0:
        return 0.0
    return wins / total * 100


def profit_factor(gross_profit: float, gross_loss: float) -> float:
    """Gross profit / gross loss.  *gross_loss* should be a positive number."""
    if gross_loss <= 0:
        return 0.0
    return gross_profit / gross_loss


def expectancy(win_rate_pct: float, avg_win: float, avg_loss: float) -> float:
    """Expected value per trade: wr * avg_win - (1-wr) * |avg_loss|."""
    wr = win_rate_pct / 100.0
    return wr * avg_win - (1 - wr) * abs(avg_loss)


def sharpe_ratio(returns: Sequence[float]) -> float:
    """Per-trade Sharpe ratio (mean / sample std, ddof=1), not annualised.

    Trades last minutes and are irregularly spaced, so there is no
    meaningful annualisation factor.
    """
    if len(returns) < 2:
        return 0.0
    arr = np.array(returns, dtype=np.float64)
    std = np.std(arr, ddof=1)
    if std == 0:
        return 0.0
    return float(np.mean(arr) / std)


def max_drawdown_usd(pnls: Sequence[float]) -> float:
    """Largest peak-to-trough drop of cumulative P&L, in USD (positive number)."""
    if not pnls:
        return 0.0
    equity = np.concatenate(([0.0], np.cumsum(np.array(pnls, dtype=np.float64))))
    peak = np.maximum.accumulate(equity)
    return float(np.max(peak - equity))


def avg_hold_seconds(hold_times_seconds: Sequence[float]) -> float:
    if not hold_times_seconds:
        return 0.0
    return float(np.mean(np.array(hold_times_seconds, dtype=np.float64)))
