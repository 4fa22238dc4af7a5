"""PositionManager — per-asset position state machine and exit checks."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import structlog

from updown_core.config.schema import ExitConfig
from updown_core.models.market import Asset, Direction, MarketContext
from updown_core.models.position import (
    CloseReason,
    ExecutionRequest,
    ExecutionResult,
    LedgerEntry,
    Position,
    PositionState,
)
from updown_core.models.signal import Signal
from updown_core.positions.ledger import Ledger
from updown_core.positions.sizing import calculate_pnl_pct, calculate_pnl_usd

log = structlog.get_logger("position_manager")

QuoteLookup = Callable[[Asset, Direction], float | None]


class InvariantViolation(RuntimeError):
    """A position state transition that must never happen."""


@dataclass
class _Slot:
    state: PositionState = PositionState.EMPTY
    position: Position | None = None
    pending_signal: Signal | None = None
    pending_context: MarketContext | None = None


class PositionManager:
    """At most one live position per asset.

    EMPTY -> PENDING (reserved while execution is in flight) -> OPEN -> CLOSED,
    after which the slot is EMPTY again. A signal arriving for a non-empty
    slot is discarded.
    """

    def __init__(self, config: ExitConfig, ledger: Ledger | None = None, assets: list[Asset] | None = None) -> None:
        self.config = config
        self.ledger = ledger if ledger is not None else Ledger()
        self._lock = threading.Lock()
        self._slots: dict[Asset, _Slot] = {a: _Slot() for a in (assets or list(Asset))}
        self._open_count = 0

    # ── Queries ───────────────────────────────────────────────

    @property
    def open_count(self) -> int:
        with self._lock:
            return self._open_count

    def state(self, asset: Asset) -> PositionState:
        with self._lock:
            return self._slots[asset].state

    def position(self, asset: Asset) -> Position | None:
        with self._lock:
            pos = self._slots[asset].position
            return pos.model_copy() if pos is not None else None

    def open_positions(self) -> list[Position]:
        with self._lock:
            return [
                s.position.model_copy() for s in self._slots.values()
                if s.state == PositionState.OPEN and s.position is not None
            ]

    # ── Transitions ───────────────────────────────────────────

    def reserve(self, signal: Signal, context: MarketContext, now: datetime) -> ExecutionRequest | None:
        """Claim the asset's slot for *signal*. Returns None if it is not empty."""
        with self._lock:
            slot = self._slots[signal.asset]
            if slot.state != PositionState.EMPTY:
                log.info(
                    "signal_discarded", asset=signal.asset.value, state=slot.state.value,
                )
                return None
            slot.state = PositionState.PENDING
            slot.pending_signal = signal
            slot.pending_context = context
        return ExecutionRequest(
            asset=signal.asset,
            direction=signal.direction,
            size_usd=signal.size_usd,
            reference_price=signal.token_price_cents,
            token_id=context.token_for(signal.direction),
        )

    def confirm(self, asset: Asset, result: ExecutionResult, now: datetime) -> Position | None:
        """Resolve a pending slot: OPEN on fill, back to EMPTY otherwise."""
        with self._lock:
            slot = self._slots[asset]
            if (
                slot.state != PositionState.PENDING
                or slot.pending_signal is None
                or slot.pending_context is None
            ):
                raise InvariantViolation(f"confirm on {asset.value} in state {slot.state.value}")
            signal = slot.pending_signal
            context = slot.pending_context
            slot.pending_signal = None
            slot.pending_context = None

            if not result.filled or result.fill_price is None or result.fill_price <= 0:
                slot.state = PositionState.EMPTY
                log.warning(
                    "execution_not_filled", asset=asset.value, error=result.error,
                )
                return None

            position = Position(
                asset=asset,
                direction=signal.direction,
                market_type=signal.market_type,
                entry_underlying_price=signal.trigger_price,
                entry_token_price=result.fill_price,
                last_token_price=result.fill_price,
                size_usd=signal.size_usd,
                opened_at=now,
                interval_duration_s=context.interval_seconds,
                resolves_at=context.resolves_at,
                token_id=context.token_for(signal.direction),
            )
            slot.state = PositionState.OPEN
            slot.position = position
            self._open_count += 1

        log.info(
            "position_opened",
            asset=asset.value,
            direction=position.direction,
            market_type=position.market_type,
            entry_token_price=position.entry_token_price,
            size_usd=round(position.size_usd, 2),
        )
        return position.model_copy()

    def open(
        self,
        signal: Signal,
        context: MarketContext,
        entry_token_price: float,
        now: datetime,
    ) -> Position | None:
        """Reserve and confirm a filled entry in one step."""
        if self.reserve(signal, context, now) is None:
            return None
        return self.confirm(
            signal.asset, ExecutionResult(filled=True, fill_price=entry_token_price), now,
        )

    def close(
        self,
        asset: Asset,
        reason: CloseReason,
        exit_token_price: float,
        now: datetime,
    ) -> LedgerEntry:
        with self._lock:
            slot = self._slots[asset]
            if slot.state != PositionState.OPEN or slot.position is None:
                raise InvariantViolation(f"close on {asset.value} in state {slot.state.value}")
            pos = slot.position
            pos.state = PositionState.CLOSED
            pnl_pct = calculate_pnl_pct(pos.entry_token_price, exit_token_price)
            entry = LedgerEntry(
                asset=pos.asset,
                direction=pos.direction,
                market_type=pos.market_type,
                entry_underlying_price=pos.entry_underlying_price,
                entry_token_price=pos.entry_token_price,
                exit_token_price=exit_token_price,
                size_usd=pos.size_usd,
                opened_at=pos.opened_at,
                closed_at=now,
                pnl_pct=pnl_pct,
                pnl_usd=calculate_pnl_usd(pos.size_usd, pnl_pct),
                close_reason=reason,
                hold_seconds=pos.elapsed_seconds(now),
            )
            self.ledger.append(entry)
            self._slots[asset] = _Slot()
            self._open_count -= 1

        log.info(
            "position_closed",
            asset=asset.value,
            close_reason=reason,
            entry_token_price=entry.entry_token_price,
            exit_token_price=exit_token_price,
            pnl_pct=round(pnl_pct, 2),
            pnl_usd=round(entry.pnl_usd, 4),
            hold_seconds=round(entry.hold_seconds, 1),
        )
        return entry

    # ── Exit checks ───────────────────────────────────────────

    def exit_reason(self, position: Position, token_price: float, now: datetime) -> CloseReason | None:
        """Exit rule for *position* at *token_price*, or None to keep holding.

        Nothing fires before ``min_hold_seconds``. After that the priority is
        take_profit, then stop_loss, then time_exit.
        """
        elapsed = position.elapsed_seconds(now)
        if elapsed < self.config.min_hold_seconds:
            return None
        pnl = position.pnl_pct(token_price)
        if pnl >= self.config.take_profit_pct:
            return "take_profit"
        if pnl <= self.config.stop_loss_pct:
            return "stop_loss"
        if elapsed >= self.config.time_exit_fraction * position.interval_duration_s:
            return "time_exit"
        return None

    def evaluate_exits(self, now: datetime, quote_for: QuoteLookup) -> list[LedgerEntry]:
        """Check every open position and close those whose exit rule fires.

        A missing quote skips the asset for this tick, except once the
        interval has ended: then time_exit fires at the last known price.
        """
        closed: list[LedgerEntry] = []
        for pos in self.open_positions():
            quote = quote_for(pos.asset, pos.direction)
            if quote is None:
                if now >= pos.interval_end and pos.elapsed_seconds(now) >= self.config.min_hold_seconds:
                    log.warning("exit_without_quote", asset=pos.asset.value)
                    closed.append(self.close(pos.asset, "time_exit", pos.last_token_price, now))
                continue

            with self._lock:
                live = self._slots[pos.asset].position
                if live is not None:
                    live.last_token_price = quote

            reason = self.exit_reason(pos, quote, now)
            if reason is not None:
                closed.append(self.close(pos.asset, reason, quote, now))
        return closed
