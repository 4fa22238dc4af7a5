"""Coordinator — owns per-asset engine state and drives the timer loops."""

from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Literal

import structlog

from updown_core.config.schema import AppConfig
from updown_core.coordinator.events import EventSink, LogEventSink
from updown_core.models.events import (
    Event,
    FilterRejected,
    SignalDetected,
    TradeClosed,
    TradeOpened,
)
from updown_core.models.market import Asset, Direction, MarketContext, OrderbookDepth
from updown_core.models.position import ExecutionResult, LedgerEntry, Position, PositionState
from updown_core.models.signal import Signal, SignalDecision
from updown_core.positions.execution import Executor, build_executor
from updown_core.positions.ledger import Ledger
from updown_core.positions.manager import InvariantViolation, PositionManager
from updown_core.prices.feed import Trade
from updown_core.prices.tracker import PriceTracker
from updown_core.prices.volume import VolumeTracker
from updown_core.signals.generator import SignalGenerator
from updown_core.signals.momentum import score_momentum

log = structlog.get_logger("coordinator")

STATUS_INTERVAL_S = 10.0
VELOCITY_WINDOW_S = 30.0

# Decision stages that are reported as FilterRejected events.
_REPORTED_STAGES = ("edge", "filters")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Coordinator:
    """Wires the price tracker, signal generator and position manager together.

    Inputs (prices, market contexts, order book depth, feed status) are
    pushed in by adapters; the timer loops in ``run`` evaluate entries and
    exits on a fixed cadence.
    """

    def __init__(
        self,
        config: AppConfig,
        executor: Executor | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self.config = config
        self.assets: list[Asset] = list(config.assets)
        self.tracker = PriceTracker(self.assets)
        self.volume = VolumeTracker(self.assets)
        self.generator = SignalGenerator(self.tracker, config)
        self.ledger = Ledger()
        self.positions = PositionManager(config.exits, self.ledger, self.assets)
        self.executor = executor if executor is not None else build_executor(config.execution)
        self.sink = sink if sink is not None else LogEventSink()

        self._lock = threading.Lock()
        self._contexts: dict[Asset, tuple[MarketContext, datetime]] = {}
        self._depth: dict[Asset, OrderbookDepth] = {}
        self._feed_down: set[Asset] = set()
        self._last_rejection: dict[Asset, tuple[str, ...]] = {}
        self._last_decision: dict[Asset, SignalDecision] = {}

    # ── Inputs ────────────────────────────────────────────────

    def ingest(self, asset: Asset, price: Decimal | float | str, timestamp: datetime | None = None) -> bool:
        if asset not in self.assets:
            return False
        return self.tracker.ingest(asset, price, timestamp)

    def record_trade_volume(self, asset: Asset, notional_usd: float, timestamp: datetime | None = None) -> None:
        if asset in self.assets:
            self.volume.record(asset, notional_usd, timestamp or _utcnow())

    def on_trade(self, trade: Trade) -> None:
        """Feed callback: price plus traded notional (price x quantity, USD)."""
        if self.ingest(trade.asset, trade.price, trade.ts):
            self.record_trade_volume(trade.asset, float(trade.price) * trade.quantity, trade.ts)

    def on_feed_status(self, asset: Asset, connected: bool) -> None:
        if connected:
            self.mark_feed_up(asset)
        else:
            self.mark_feed_down(asset)

    def mark_feed_down(self, asset: Asset) -> None:
        with self._lock:
            if asset in self._feed_down:
                return
            self._feed_down.add(asset)
        log.warning("feed_down", asset=asset.value)

    def mark_feed_up(self, asset: Asset) -> None:
        with self._lock:
            if asset not in self._feed_down:
                return
            self._feed_down.discard(asset)
        log.info("feed_up", asset=asset.value)

    def refresh_context(self, context: MarketContext, received_at: datetime | None = None) -> None:
        with self._lock:
            self._contexts[context.asset] = (context, received_at or _utcnow())

    def clear_context(self, asset: Asset) -> None:
        with self._lock:
            self._contexts.pop(asset, None)
            self._depth.pop(asset, None)

    def reset_interval(self, asset: Asset, now: datetime | None = None) -> None:
        self.tracker.reset_interval(asset, now)

    def refresh_orderbook(self, asset: Asset, depth: OrderbookDepth) -> None:
        with self._lock:
            self._depth[asset] = depth

    def get_orderbook_depth(self, asset: Asset, side: Literal["bid", "ask"]) -> float | None:
        with self._lock:
            depth = self._depth.get(asset)
        if depth is None:
            return None
        return depth.for_side(side)

    # ── Lookups ───────────────────────────────────────────────

    def context(self, asset: Asset, now: datetime | None = None) -> MarketContext | None:
        """The asset's market context, or None when absent or stale."""
        now = now or _utcnow()
        with self._lock:
            entry = self._contexts.get(asset)
        if entry is None:
            return None
        ctx, received_at = entry
        if (now - received_at).total_seconds() > self.config.polymarket.context_staleness_s:
            return None
        return ctx

    def quote_for(self, asset: Asset, direction: Direction, now: datetime | None = None) -> float | None:
        ctx = self.context(asset, now)
        if ctx is None:
            return None
        return ctx.quote_for(direction)

    def is_suspended(self, asset: Asset) -> bool:
        with self._lock:
            return asset in self._feed_down

    # ── Evaluation ────────────────────────────────────────────

    def _emit(self, event: Event) -> None:
        try:
            self.sink.emit(event)
        except Exception:
            log.exception("event_sink_error", kind=event.kind)

    def _report_rejection(self, decision: SignalDecision, now: datetime) -> None:
        if decision.accepted or decision.stage not in _REPORTED_STAGES:
            return
        reasons = decision.reasons
        if self._last_rejection.get(decision.asset) == reasons:
            return
        self._last_rejection[decision.asset] = reasons
        self._emit(FilterRejected(asset=decision.asset, reason="; ".join(reasons), ts=now))

    async def evaluate_signals(self, now: datetime | None = None) -> list[Position]:
        """Evaluate every asset with an empty slot and open positions for accepted signals."""
        now = now or _utcnow()
        opened: list[Position] = []
        for asset in self.assets:
            if self.positions.state(asset) != PositionState.EMPTY:
                continue
            ctx = self.context(asset, now)
            with self._lock:
                depth = self._depth.get(asset)
            decision = self.generator.evaluate(
                asset,
                ctx,
                depth=depth,
                volume=self.volume.snapshot(asset, now),
                now=now,
                suspended=self.is_suspended(asset),
            )
            self._last_decision[asset] = decision
            self._report_rejection(decision, now)
            if not decision.accepted or decision.signal is None or ctx is None:
                continue

            self._last_rejection.pop(asset, None)
            self._emit(SignalDetected(signal=decision.signal))
            position = await self._execute(decision.signal, ctx, now)
            if position is not None:
                opened.append(position)
        return opened

    async def _execute(self, signal: Signal, context: MarketContext, now: datetime) -> Position | None:
        request = self.positions.reserve(signal, context, now)
        if request is None:
            return None
        try:
            result = await asyncio.wait_for(
                self.executor.execute(request), timeout=self.config.execution.timeout_s,
            )
        except asyncio.TimeoutError:
            log.warning("execution_timeout", asset=signal.asset.value)
            result = ExecutionResult(filled=False, error="timeout")
        except Exception as exc:
            log.exception("execution_error", asset=signal.asset.value)
            result = ExecutionResult(filled=False, error=str(exc) or type(exc).__name__)

        position = self.positions.confirm(signal.asset, result, now)
        if position is not None:
            self._emit(TradeOpened(position=position))
        return position

    def evaluate_exits(self, now: datetime | None = None) -> list[LedgerEntry]:
        now = now or _utcnow()
        closed = self.positions.evaluate_exits(
            now, lambda asset, direction: self.quote_for(asset, direction, now),
        )
        for entry in closed:
            self._emit(TradeClosed(entry=entry))
        return closed

    # ── Status ────────────────────────────────────────────────

    def status(self, now: datetime | None = None) -> dict[str, Any]:
        """Per-asset diagnostic snapshot, JSON-serialisable."""
        now = now or _utcnow()
        assets: dict[str, Any] = {}
        for asset in self.assets:
            state = self.tracker.snapshot(asset)
            with self._lock:
                entry = self._contexts.get(asset)
                depth = self._depth.get(asset)
            ctx = self.context(asset, now)
            momentum = score_momentum(
                state.history,
                full_scale_pct=self.config.momentum.full_scale_pct,
                acceleration_boost=self.config.momentum.acceleration_boost,
            )
            info: dict[str, Any] = {
                "price": str(state.current_price),
                "interval_start_price": str(state.interval_start_price),
                "change_pct": round(state.change_pct, 4),
                "velocity_pct": round(state.velocity_pct(VELOCITY_WINDOW_S, now), 4),
                "samples": len(state.history),
                "momentum_score": round(momentum.score, 3),
                "momentum_consistency": round(momentum.consistency, 3),
                "accelerating": momentum.accelerating,
                "feed_up": not self.is_suspended(asset),
                "price_age_s": (
                    round((now - state.last_updated).total_seconds(), 1)
                    if state.last_updated else None
                ),
                "market": None,
                "position": None,
                "last_decision": None,
            }
            if entry is not None:
                raw_ctx, received_at = entry
                min_move = self.config.edge.for_market(raw_ctx.market_type).min_move_pct
                info["market"] = {
                    "market_type": raw_ctx.market_type,
                    "yes_price_cents": round(raw_ctx.yes_price_cents, 2),
                    "no_price_cents": round(raw_ctx.quote_for("DOWN"), 2),
                    "age_s": round((now - received_at).total_seconds(), 1),
                    "fresh": ctx is not None,
                    "min_move_pct": min_move,
                    "threshold_progress_pct": (
                        round(abs(state.change_pct) / min_move * 100, 1) if min_move > 0 else None
                    ),
                    "description": raw_ctx.description,
                }
            if depth is not None:
                info["orderbook"] = depth.model_dump()
            pos = self.positions.position(asset)
            if pos is not None:
                info["position"] = {
                    "state": pos.state.value,
                    "direction": pos.direction,
                    "entry_token_price": pos.entry_token_price,
                    "last_token_price": pos.last_token_price,
                    "pnl_pct": round(pos.pnl_pct(pos.last_token_price), 2),
                    "held_s": round(pos.elapsed_seconds(now), 1),
                }
            elif self.positions.state(asset) == PositionState.PENDING:
                info["position"] = {"state": PositionState.PENDING.value}
            decision = self._last_decision.get(asset)
            if decision is not None:
                info["last_decision"] = {
                    "stage": decision.stage,
                    "accepted": decision.accepted,
                    "reasons": list(decision.reasons),
                }
            assets[asset.value] = info

        return {
            "ts": now.isoformat(),
            "execution_mode": self.config.execution.mode,
            "open_positions": self.positions.open_count,
            "closed_trades": len(self.ledger),
            "realised_pnl_usd": round(self.ledger.total_pnl_usd(), 4),
            "assets": assets,
        }

    def _log_status(self) -> None:
        snapshot = self.status()
        for name, info in snapshot["assets"].items():
            market = info["market"] or {}
            log.info(
                "asset_status",
                asset=name,
                price=info["price"],
                change_pct=info["change_pct"],
                velocity_pct=info["velocity_pct"],
                momentum=info["momentum_score"],
                yes_cents=market.get("yes_price_cents"),
                threshold_progress_pct=market.get("threshold_progress_pct"),
                position=(info["position"] or {}).get("state"),
            )
        log.info(
            "engine_status",
            open_positions=snapshot["open_positions"],
            closed_trades=snapshot["closed_trades"],
            realised_pnl_usd=snapshot["realised_pnl_usd"],
        )

    # ── Timer loops ───────────────────────────────────────────

    async def _signal_loop(self) -> None:
        interval = self.config.signals.check_interval_ms / 1000
        while True:
            try:
                await self.evaluate_signals()
            except InvariantViolation:
                raise
            except Exception:
                log.exception("signal_tick_error")
            await asyncio.sleep(interval)

    async def _exit_loop(self) -> None:
        interval = self.config.exits.check_interval_ms / 1000
        while True:
            try:
                self.evaluate_exits()
            except InvariantViolation:
                raise
            except Exception:
                log.exception("exit_tick_error")
            await asyncio.sleep(interval)

    async def _status_loop(self) -> None:
        while True:
            await asyncio.sleep(STATUS_INTERVAL_S)
            try:
                self._log_status()
            except Exception:
                log.exception("status_tick_error")

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Run the signal, exit and status loops until *stop_event* is set.

        An InvariantViolation from any loop stops the others and propagates.
        """
        stop_event = stop_event or asyncio.Event()
        loops = [
            asyncio.create_task(self._signal_loop(), name="signal_loop"),
            asyncio.create_task(self._exit_loop(), name="exit_loop"),
            asyncio.create_task(self._status_loop(), name="status_loop"),
        ]
        stopper = asyncio.create_task(stop_event.wait(), name="stop_wait")
        log.info("coordinator_started", assets=[a.value for a in self.assets])
        try:
            done, _ = await asyncio.wait([*loops, stopper], return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task is not stopper:
                    task.result()
        finally:
            for task in [*loops, stopper]:
                task.cancel()
            await asyncio.gather(*loops, stopper, return_exceptions=True)
            log.info(
                "coordinator_stopped",
                open_positions=self.positions.open_count,
                closed_trades=len(self.ledger),
            )
