"""Tests for the PositionManager state machine and exit rules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from updown_core.config.schema import ExitConfig
from updown_core.models.market import Asset, MarketContext
from updown_core.models.position import ExecutionResult, PositionState
from updown_core.models.signal import Signal
from updown_core.positions.manager import InvariantViolation, PositionManager

NOW = datetime(2026, 3, 4, 15, 0, tzinfo=timezone.utc)


def _signal(asset=Asset.BTC, direction="UP", token_price=50.0, size=10.0, market_type="15m"):
    return Signal(
        asset=asset,
        direction=direction,
        market_type=market_type,
        trigger_price=Decimal("100.17"),
        change_pct=0.17,
        edge_pct=3.0,
        estimated_probability=53.0,
        token_price_cents=token_price,
        confidence=0.65,
        size_usd=size,
        generated_at=NOW,
    )


def _ctx(asset=Asset.BTC, market_type="15m", resolves_at=None):
    return MarketContext(
        asset=asset,
        market_type=market_type,
        yes_price_cents=50.0,
        yes_token_id="yes-tok",
        no_token_id="no-tok",
        resolves_at=resolves_at,
    )


def _manager(**overrides):
    return PositionManager(ExitConfig(**overrides))


def _opened(manager=None, entry=50.0, **signal_kwargs):
    manager = manager or _manager()
    sig = _signal(token_price=entry, **signal_kwargs)
    manager.open(sig, _ctx(asset=sig.asset, market_type=sig.market_type), entry, NOW)
    return manager


def _quotes(price):
    return lambda asset, direction: price


class TestLifecycle:
    def test_open_sets_state_and_count(self):
        pm = _opened()
        assert pm.state(Asset.BTC) == PositionState.OPEN
        assert pm.open_count == 1
        pos = pm.position(Asset.BTC)
        assert pos.entry_token_price == 50.0
        assert pos.interval_duration_s == 900
        assert pos.token_id == "yes-tok"

    def test_down_position_holds_no_token(self):
        pm = _opened(direction="DOWN")
        assert pm.position(Asset.BTC).token_id == "no-tok"

    def test_reserve_then_confirm(self):
        pm = _manager()
        request = pm.reserve(_signal(), _ctx(), NOW)
        assert request.reference_price == 50.0
        assert request.size_usd == 10.0
        assert request.token_id == "yes-tok"
        assert pm.state(Asset.BTC) == PositionState.PENDING
        assert pm.open_count == 0

        pos = pm.confirm(Asset.BTC, ExecutionResult(filled=True, fill_price=51.0), NOW)
        assert pos.entry_token_price == 51.0
        assert pm.state(Asset.BTC) == PositionState.OPEN
        assert pm.open_count == 1

    def test_unfilled_result_returns_slot_to_empty(self):
        pm = _manager()
        pm.reserve(_signal(), _ctx(), NOW)
        result = pm.confirm(Asset.BTC, ExecutionResult(filled=False, error="rejected"), NOW)
        assert result is None
        assert pm.state(Asset.BTC) == PositionState.EMPTY
        assert pm.open_count == 0

    def test_second_signal_discarded_while_open(self):
        pm = _opened()
        assert pm.reserve(_signal(token_price=40.0), _ctx(), NOW) is None
        assert pm.position(Asset.BTC).entry_token_price == 50.0

    def test_second_signal_discarded_while_pending(self):
        pm = _manager()
        pm.reserve(_signal(), _ctx(), NOW)
        assert pm.reserve(_signal(), _ctx(), NOW) is None

    def test_assets_are_independent(self):
        pm = _opened()
        _opened(pm, asset=Asset.ETH)
        assert pm.open_count == 2
        assert {p.asset for p in pm.open_positions()} == {Asset.BTC, Asset.ETH}

    def test_close_appends_ledger_and_resets_slot(self):
        pm = _opened()
        entry = pm.close(Asset.BTC, "take_profit", 60.0, NOW + timedelta(seconds=90))
        assert entry.pnl_pct == pytest.approx(20.0)
        assert entry.pnl_usd == pytest.approx(2.0)
        assert entry.hold_seconds == pytest.approx(90)
        assert pm.state(Asset.BTC) == PositionState.EMPTY
        assert pm.position(Asset.BTC) is None
        assert pm.open_count == 0
        assert pm.ledger.entries() == [entry]

    def test_slot_reusable_after_close(self):
        pm = _opened()
        pm.close(Asset.BTC, "time_exit", 50.0, NOW + timedelta(seconds=800))
        assert pm.reserve(_signal(), _ctx(), NOW) is not None

    def test_position_returns_copy(self):
        pm = _opened()
        pm.position(Asset.BTC).last_token_price = 1.0
        assert pm.position(Asset.BTC).last_token_price == 50.0


class TestInvariants:
    def test_close_without_position_raises(self):
        with pytest.raises(InvariantViolation):
            _manager().close(Asset.BTC, "stop_loss", 40.0, NOW)

    def test_double_close_raises(self):
        pm = _opened()
        pm.close(Asset.BTC, "stop_loss", 40.0, NOW + timedelta(seconds=61))
        with pytest.raises(InvariantViolation):
            pm.close(Asset.BTC, "stop_loss", 40.0, NOW + timedelta(seconds=62))

    def test_confirm_without_reservation_raises(self):
        with pytest.raises(InvariantViolation):
            _manager().confirm(Asset.BTC, ExecutionResult(filled=True, fill_price=50.0), NOW)

    def test_confirm_without_market_context_raises(self):
        pm = _manager()
        pm.reserve(_signal(), _ctx(), NOW)
        pm._slots[Asset.BTC].pending_context = None
        with pytest.raises(InvariantViolation):
            pm.confirm(Asset.BTC, ExecutionResult(filled=True, fill_price=50.0), NOW)


class TestExitRules:
    def test_stop_loss_after_min_hold(self):
        pm = _opened(entry=50.0)
        closed = pm.evaluate_exits(NOW + timedelta(seconds=61), _quotes(42.5))
        assert len(closed) == 1
        assert closed[0].close_reason == "stop_loss"
        assert closed[0].pnl_pct == pytest.approx(-15.0)
        assert pm.open_count == 0

    def test_take_profit(self):
        pm = _opened(entry=50.0)
        closed = pm.evaluate_exits(NOW + timedelta(seconds=61), _quotes(57.5))
        assert closed[0].close_reason == "take_profit"
        assert closed[0].exit_token_price == 57.5

    def test_nothing_fires_inside_min_hold(self):
        pm = _opened(entry=50.0)
        assert pm.evaluate_exits(NOW + timedelta(seconds=30), _quotes(10.0)) == []
        assert pm.evaluate_exits(NOW + timedelta(seconds=30), _quotes(90.0)) == []
        assert pm.state(Asset.BTC) == PositionState.OPEN

    def test_time_exit_at_fraction_of_interval(self):
        pm = _opened(entry=50.0)
        # 15m interval, 0.8 fraction -> 720s
        assert pm.evaluate_exits(NOW + timedelta(seconds=719), _quotes(51.0)) == []
        closed = pm.evaluate_exits(NOW + timedelta(seconds=720), _quotes(51.0))
        assert closed[0].close_reason == "time_exit"

    def test_take_profit_beats_time_exit(self):
        pm = _opened(entry=50.0)
        closed = pm.evaluate_exits(NOW + timedelta(seconds=800), _quotes(60.0))
        assert closed[0].close_reason == "take_profit"

    def test_stop_loss_beats_time_exit(self):
        pm = _opened(entry=50.0)
        closed = pm.evaluate_exits(NOW + timedelta(seconds=800), _quotes(40.0))
        assert closed[0].close_reason == "stop_loss"

    def test_exit_reason_boundaries(self):
        pm = _opened(entry=50.0)
        pos = pm.position(Asset.BTC)
        later = NOW + timedelta(seconds=61)
        assert pm.exit_reason(pos, 57.5, later) == "take_profit"
        assert pm.exit_reason(pos, 45.0, later) == "stop_loss"
        assert pm.exit_reason(pos, 45.5, later) is None

    def test_missing_quote_skips_asset(self):
        pm = _opened(entry=50.0)
        assert pm.evaluate_exits(NOW + timedelta(seconds=300), _quotes(None)) == []
        assert pm.state(Asset.BTC) == PositionState.OPEN

    def test_missing_quote_after_interval_end_exits_at_last_price(self):
        pm = _opened(entry=50.0)
        pm.evaluate_exits(NOW + timedelta(seconds=120), _quotes(52.0))
        assert pm.position(Asset.BTC).last_token_price == 52.0

        closed = pm.evaluate_exits(NOW + timedelta(seconds=901), _quotes(None))
        assert closed[0].close_reason == "time_exit"
        assert closed[0].exit_token_price == 52.0

    def test_resolves_at_defines_interval_end(self):
        pm = _manager()
        sig = _signal()
        pm.open(sig, _ctx(resolves_at=NOW + timedelta(seconds=200)), 50.0, NOW)
        closed = pm.evaluate_exits(NOW + timedelta(seconds=201), _quotes(None))
        assert closed[0].close_reason == "time_exit"

    def test_custom_thresholds(self):
        pm = _opened(_manager(take_profit_pct=5.0, min_hold_seconds=0), entry=50.0)
        closed = pm.evaluate_exits(NOW + timedelta(seconds=1), _quotes(53.0))
        assert closed[0].close_reason == "take_profit"

    def test_only_positions_with_firing_rule_close(self):
        pm = _opened(entry=50.0)
        _opened(pm, entry=50.0, asset=Asset.ETH)

        def quotes(asset, direction):
            return 40.0 if asset == Asset.BTC else 51.0

        closed = pm.evaluate_exits(NOW + timedelta(seconds=61), quotes)
        assert [e.asset for e in closed] == [Asset.BTC]
        assert pm.state(Asset.ETH) == PositionState.OPEN
        assert len(pm.ledger) == 1
