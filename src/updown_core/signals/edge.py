"""Edge estimation — implied win probability vs the quoted market price."""

from __future__ import annotations

from updown_core.config.schema import EdgeConfig
from updown_core.models.market import Direction, MarketContext
from updown_core.models.signal import EdgeEstimate, MomentumResult


def candidate_direction(change_pct: float) -> Direction:
    return "UP" if change_pct > 0 else "DOWN"


def estimate_probability(
    change_pct: float,
    momentum_score: float,
    multiplier: float,
    momentum_weight: float,
) -> float:
    """Estimated probability (percent) that the current move holds to resolution.

    50 + |change| * multiplier * (1 + weight * aligned_score), clamped to [1, 99].
    *momentum_score* must already be signed toward the candidate direction.
    """
    raw = 50.0 + abs(change_pct) * multiplier * (1.0 + momentum_weight * momentum_score)
    return max(1.0, min(99.0, raw))


def estimate_edge(
    change_pct: float,
    momentum: MomentumResult,
    context: MarketContext,
    config: EdgeConfig,
) -> EdgeEstimate:
    """Compare estimated probability to the held-side quote for *context*'s market."""
    thresholds = config.for_market(context.market_type)
    direction = candidate_direction(change_pct)
    aligned = momentum.score if direction == "UP" else -momentum.score

    estimated = estimate_probability(
        change_pct, aligned, thresholds.probability_multiplier, config.momentum_weight,
    )
    market = context.quote_for(direction)
    edge_pct = estimated - market

    reasons: list[str] = []
    if abs(change_pct) < thresholds.min_move_pct:
        reasons.append(
            f"move {abs(change_pct):.3f}% below min {thresholds.min_move_pct:.3f}%"
        )
    if market > config.max_buy_price_cents:
        reasons.append(f"price {market:.1f}c above max {config.max_buy_price_cents:.1f}c")
    if edge_pct < thresholds.min_edge_pct:
        reasons.append(f"edge {edge_pct:.2f} below min {thresholds.min_edge_pct:.2f}")

    return EdgeEstimate(
        direction=direction,
        change_pct=change_pct,
        estimated_probability=estimated,
        market_probability=market,
        edge_pct=edge_pct,
        min_move_pct=thresholds.min_move_pct,
        min_edge_pct=thresholds.min_edge_pct,
        passed=not reasons,
        reason="; ".join(reasons),
    )
