"""Position sizing and P&L calculations — pure functions."""

from __future__ import annotations

from updown_core.config.schema import SizingConfig


def signal_confidence(momentum_score: float, edge_pct: float, edge_full_scale_pct: float) -> float:
    """Blend momentum strength and edge into a confidence in [0, 1].

    confidence = 0.5 * |score| + 0.5 * min(1, edge / edge_full_scale)
    """
    edge_part = 0.0
    if edge_full_scale_pct > 0:
        edge_part = max(0.0, min(1.0, edge_pct / edge_full_scale_pct))
    return max(0.0, min(1.0, 0.5 * min(1.0, abs(momentum_score)) + 0.5 * edge_part))


def size_from_confidence(confidence: float, config: SizingConfig) -> float:
    """Scale the base position by confidence, clamped to [min, max] USD."""
    raw = config.base_position_usd * confidence
    return max(config.min_position_usd, min(config.max_position_usd, raw))


def calculate_pnl_pct(entry_price: float, exit_price: float) -> float:
    """Percent return on a token bought at *entry_price* and sold at *exit_price*.

    Returns 0.0 when the entry price is not positive.
    """
    if entry_price <= 0:
        return 0.0
    return (exit_price - entry_price) / entry_price * 100


def calculate_pnl_usd(size_usd: float, pnl_pct: float) -> float:
    return size_usd * pnl_pct / 100
