"""SignalGenerator — the staged entry decision for one asset."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from updown_core.config.schema import AppConfig
from updown_core.models.market import Asset, MarketContext, OrderbookDepth, VolumeSnapshot
from updown_core.models.signal import Signal, SignalDecision
from updown_core.positions.sizing import signal_confidence, size_from_confidence
from updown_core.prices.tracker import PriceTracker
from updown_core.signals.edge import candidate_direction, estimate_edge
from updown_core.signals.filters import FilterChain, SignalContext
from updown_core.signals.momentum import score_momentum

log = structlog.get_logger("signal_generator")


class SignalGenerator:
    """Runs the entry stages in order for one asset.

    1. abstain   no context, stale price feed, or suspended feed
    2. min_move  |change_pct| below the market type's minimum
    3. edge      edge estimate rejected
    4. filters   any enabled filter failed
    5. cooldown  last accepted signal for the asset is too recent

    Only a full pass yields a Signal. The cooldown clock starts on
    acceptance, whatever happens to the signal afterwards.
    """

    def __init__(self, tracker: PriceTracker, config: AppConfig) -> None:
        self.tracker = tracker
        self.config = config
        self.filters = FilterChain(config.filters)
        self._last_accepted: dict[Asset, datetime] = {}

    def last_accepted(self, asset: Asset) -> datetime | None:
        return self._last_accepted.get(asset)

    def in_cooldown(self, asset: Asset, now: datetime) -> bool:
        last = self._last_accepted.get(asset)
        if last is None:
            return False
        return (now - last).total_seconds() < self.config.signals.cooldown_seconds

    def evaluate(
        self,
        asset: Asset,
        context: MarketContext | None,
        depth: OrderbookDepth | None = None,
        volume: VolumeSnapshot | None = None,
        now: datetime | None = None,
        suspended: bool = False,
    ) -> SignalDecision:
        now = now or datetime.now(timezone.utc)
        state = self.tracker.snapshot(asset)

        if context is None:
            return SignalDecision(asset=asset, accepted=False, stage="abstain", reasons=("no market context",))
        if suspended:
            return SignalDecision(asset=asset, accepted=False, stage="abstain", reasons=("feed suspended",))
        if state.current_price == 0 or self.tracker.is_stale(
            asset, self.config.feed.price_staleness_s, now,
        ):
            return SignalDecision(asset=asset, accepted=False, stage="abstain", reasons=("stale price",))

        change_pct = state.change_pct
        thresholds = self.config.edge.for_market(context.market_type)
        if abs(change_pct) < thresholds.min_move_pct:
            return SignalDecision(
                asset=asset, accepted=False, stage="min_move",
                reasons=(f"move {abs(change_pct):.3f}% below min {thresholds.min_move_pct:.3f}%",),
            )

        direction = candidate_direction(change_pct)
        momentum = score_momentum(
            state.history,
            direction,
            full_scale_pct=self.config.momentum.full_scale_pct,
            acceleration_boost=self.config.momentum.acceleration_boost,
        )

        edge = estimate_edge(change_pct, momentum, context, self.config.edge)
        if not edge.passed:
            return SignalDecision(
                asset=asset, accepted=False, stage="edge",
                reasons=(edge.reason,), momentum=momentum, edge=edge,
            )

        report = self.filters.evaluate(SignalContext(
            direction=direction, momentum=momentum, depth=depth, volume=volume, now=now,
        ))
        if not report.passed:
            return SignalDecision(
                asset=asset, accepted=False, stage="filters",
                reasons=tuple(report.failure_reasons),
                momentum=momentum, edge=edge, filters=report,
            )

        if self.in_cooldown(asset, now):
            remaining = self.config.signals.cooldown_seconds - (
                now - self._last_accepted[asset]
            ).total_seconds()
            return SignalDecision(
                asset=asset, accepted=False, stage="cooldown",
                reasons=(f"cooldown {remaining:.0f}s remaining",),
                momentum=momentum, edge=edge, filters=report,
            )

        confidence = signal_confidence(
            momentum.score, edge.edge_pct, self.config.signals.edge_full_scale_pct,
        )
        signal = Signal(
            asset=asset,
            direction=direction,
            market_type=context.market_type,
            trigger_price=state.current_price,
            change_pct=change_pct,
            edge_pct=edge.edge_pct,
            estimated_probability=edge.estimated_probability,
            token_price_cents=edge.market_probability,
            confidence=confidence,
            size_usd=size_from_confidence(confidence, self.config.sizing),
            generated_at=now,
        )
        self._last_accepted[asset] = now
        log.info(
            "signal_accepted",
            asset=asset.value,
            direction=direction,
            market_type=context.market_type,
            change_pct=round(change_pct, 4),
            edge_pct=round(edge.edge_pct, 2),
            confidence=round(confidence, 3),
            size_usd=round(signal.size_usd, 2),
        )
        return SignalDecision(
            asset=asset, accepted=True, stage="accepted", signal=signal,
            momentum=momentum, edge=edge, filters=report,
        )
