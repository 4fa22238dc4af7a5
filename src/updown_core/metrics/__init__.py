"""Trading metrics — formulas and ledger aggregation."""

from updown_core.metrics.formulas import (
    avg_hold_seconds,
    expectancy,
    max_drawdown_usd,
    profit_factor,
    sharpe_ratio,
    win_rate,
)
from updown_core.metrics.ledger import (
    LedgerMetrics,
    compute_ledger_metrics,
    compute_persisted_metrics,
)

__all__ = [
    "LedgerMetrics",
    "avg_hold_seconds",
    "compute_ledger_metrics",
    "compute_persisted_metrics",
    "expectancy",
    "max_drawdown_usd",
    "profit_factor",
    "sharpe_ratio",
    "win_rate",
]
