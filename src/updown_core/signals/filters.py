"""Entry filters — pure check functions composed by FilterChain."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from updown_core.config.schema import (
    FilterConfig,
    MomentumFilterConfig,
    OrderbookFilterConfig,
    TimeFilterConfig,
    VolumeFilterConfig,
)
from updown_core.models.market import Direction, OrderbookDepth, VolumeSnapshot
from updown_core.models.signal import FilterReport, FilterResult, MomentumResult


@dataclass(frozen=True)
class SignalContext:
    """Everything the filters look at for one candidate entry."""

    direction: Direction
    momentum: MomentumResult
    depth: OrderbookDepth | None
    volume: VolumeSnapshot | None
    now: datetime


# ── Pure check functions ──────────────────────────────────────


def check_momentum(ctx: SignalContext, cfg: MomentumFilterConfig) -> FilterResult:
    m = ctx.momentum
    if not m.direction_matches:
        return FilterResult(
            name="Momentum", passed=False,
            reason=f"direction mismatch (score {m.score:.2f}, want {ctx.direction})",
        )
    if abs(m.score) < cfg.min_score:
        return FilterResult(
            name="Momentum", passed=False,
            reason=f"score {abs(m.score):.2f} < {cfg.min_score:.2f}",
        )
    if m.consistency < cfg.min_consistency:
        return FilterResult(
            name="Momentum", passed=False,
            reason=f"consistency {m.consistency:.2f} < {cfg.min_consistency:.2f}",
        )
    if cfg.require_acceleration and not m.accelerating:
        return FilterResult(name="Momentum", passed=False, reason="not accelerating")
    return FilterResult(name="Momentum", passed=True)


def check_orderbook(ctx: SignalContext, cfg: OrderbookFilterConfig) -> FilterResult:
    """Depth on the side being bought must cover ``min_depth_usd``.

    UP buys YES and consumes YES asks; DOWN is taken against the YES bids.
    """
    if ctx.depth is None:
        return FilterResult(name="Orderbook", passed=False, reason="no depth data")

    side = "ask" if ctx.direction == "UP" else "bid"
    other = "bid" if side == "ask" else "ask"
    depth = ctx.depth.for_side(side)
    if depth < cfg.min_depth_usd:
        return FilterResult(
            name="Orderbook", passed=False,
            reason=f"insufficient {side} depth ${depth:.0f} < ${cfg.min_depth_usd:.0f}",
        )
    if cfg.check_both_sides:
        other_depth = ctx.depth.for_side(other)
        other_min = cfg.min_depth_usd * 0.5
        if other_depth < other_min:
            return FilterResult(
                name="Orderbook", passed=False,
                reason=f"insufficient {other} depth ${other_depth:.0f} < ${other_min:.0f}",
            )
    return FilterResult(name="Orderbook", passed=True)


def check_volume(ctx: SignalContext, cfg: VolumeFilterConfig) -> FilterResult:
    if ctx.volume is None:
        return FilterResult(name="Volume", passed=False, reason="no volume data")

    current = ctx.volume.current_volume
    average = ctx.volume.average_volume
    if current < cfg.min_absolute:
        return FilterResult(
            name="Volume", passed=False,
            reason=f"volume ${current:.0f} < ${cfg.min_absolute:.0f}",
        )
    if average > 0:
        ratio = current / average
        if ratio < cfg.min_ratio:
            return FilterResult(
                name="Volume", passed=False,
                reason=f"volume ratio {ratio:.2f}x < {cfg.min_ratio:.2f}x",
            )
    return FilterResult(name="Volume", passed=True)


def _in_hours(hour: int, start: int, end: int) -> bool:
    if start == end:
        return False
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


def check_time(ctx: SignalContext, cfg: TimeFilterConfig) -> FilterResult:
    """Trading window in a fixed UTC offset (no DST)."""
    now = ctx.now if ctx.now.tzinfo else ctx.now.replace(tzinfo=timezone.utc)
    local = now.astimezone(timezone(timedelta(hours=cfg.utc_offset_hours)))

    if not cfg.allow_weekends and local.weekday() >= 5:
        return FilterResult(name="Time", passed=False, reason=f"weekend ({local:%A})")
    if not _in_hours(local.hour, cfg.start_hour, cfg.end_hour):
        return FilterResult(
            name="Time", passed=False,
            reason=f"hour {local.hour:02d} outside {cfg.start_hour:02d}-{cfg.end_hour:02d}",
        )
    return FilterResult(name="Time", passed=True)


# ── Chain ─────────────────────────────────────────────────────


_CHECKS: tuple[tuple[str, Callable[[SignalContext, Any], FilterResult]], ...] = (
    ("momentum", check_momentum),
    ("orderbook", check_orderbook),
    ("volume", check_volume),
    ("time", check_time),
)


class FilterChain:
    """Runs every enabled filter; the chain passes only if all of them pass."""

    def __init__(self, config: FilterConfig) -> None:
        self.config = config
        self._active = [
            (check, getattr(config, key))
            for key, check in _CHECKS
            if getattr(config, key).enabled
        ]

    @property
    def enabled(self) -> list[str]:
        return [key for key, _ in _CHECKS if getattr(self.config, key).enabled]

    def evaluate(self, ctx: SignalContext) -> FilterReport:
        return FilterReport(results=tuple(check(ctx, cfg) for check, cfg in self._active))
