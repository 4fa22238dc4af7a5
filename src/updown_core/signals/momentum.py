"""Momentum scoring — pure functions over a short price history."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from updown_core.models.market import Direction, PriceSample
from updown_core.models.signal import MomentumResult


def pct_deltas(prices: Sequence[Decimal]) -> list[float]:
    """Percent change between consecutive prices. A zero previous price gives 0."""
    deltas: list[float] = []
    for prev, cur in zip(prices, prices[1:]):
        if prev == 0:
            deltas.append(0.0)
        else:
            deltas.append(float((cur - prev) / prev * 100))
    return deltas


def _sign(value: float | Decimal) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def direction_matches(score: float, direction: Direction) -> bool:
    """True if the momentum score points the same way as *direction*. Zero matches nothing."""
    if direction == "UP":
        return score > 0
    return score < 0


def score_momentum(
    history: Sequence[PriceSample] | Sequence[Decimal],
    direction: Direction | None = None,
    full_scale_pct: float = 0.10,
    acceleration_boost: float = 1.2,
) -> MomentumResult:
    """Score the directional strength of *history* (oldest first).

    consistency   fraction of consecutive deltas sharing the net trend sign
    accelerating  mean |delta| of the later half beats the earlier half
    score         sign * min(1, magnitude * consistency * boost)

    where magnitude = min(1, |net move %| / full_scale_pct). Fewer than two
    samples, or a flat net move, give an all-zero result.
    """
    prices = [p.price if isinstance(p, PriceSample) else Decimal(p) for p in history]
    if len(prices) < 2:
        return MomentumResult()

    deltas = pct_deltas(prices)
    first, last = prices[0], prices[-1]
    trend = _sign(last - first)
    if trend == 0 or first == 0:
        return MomentumResult()

    consistency = sum(1 for d in deltas if _sign(d) == trend) / len(deltas)

    mid = len(deltas) // 2
    early, late = deltas[:mid], deltas[mid:]
    accelerating = False
    if early:
        early_avg = sum(abs(d) for d in early) / len(early)
        late_avg = sum(abs(d) for d in late) / len(late)
        accelerating = late_avg > early_avg

    net_pct = abs(float((last - first) / first * 100))
    magnitude = min(1.0, net_pct / full_scale_pct) if full_scale_pct > 0 else 1.0
    boost = acceleration_boost if accelerating else 1.0
    score = trend * min(1.0, magnitude * consistency * boost)

    return MomentumResult(
        score=score,
        consistency=consistency,
        accelerating=accelerating,
        direction_matches=direction_matches(score, direction) if direction else False,
    )
