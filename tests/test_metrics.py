"""Tests for the metrics formulas and ledger aggregation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from updown_core.coordinator.persistence import persist_ledger_entry
from updown_core.metrics.formulas import (
    avg_hold_seconds,
    expectancy,
    max_drawdown_usd,
    profit_factor,
    sharpe_ratio,
    win_rate,
)
from updown_core.metrics.ledger import compute_ledger_metrics, compute_persisted_metrics
from updown_core.models.market import Asset
from updown_core.models.position import LedgerEntry

NOW = datetime(2026, 3, 4, 15, 0, tzinfo=timezone.utc)


def _entry(pnl_usd, asset=Asset.BTC, reason="take_profit", hold=120.0, minutes=0):
    pnl_pct = pnl_usd / 10.0 * 100
    return LedgerEntry(
        asset=asset,
        direction="UP",
        market_type="15m",
        entry_underlying_price=Decimal("100"),
        entry_token_price=50.0,
        exit_token_price=50.0 * (1 + pnl_pct / 100),
        size_usd=10.0,
        opened_at=NOW + timedelta(minutes=minutes),
        closed_at=NOW + timedelta(minutes=minutes, seconds=hold),
        pnl_pct=pnl_pct,
        pnl_usd=pnl_usd,
        close_reason=reason,
        hold_seconds=hold,
    )


class TestFormulas:
    def test_win_rate(self):
        assert win_rate(3, 4) == pytest.approx(75.0)
        assert win_rate(0, 0) == 0.0

    def test_profit_factor(self):
        assert profit_factor(300.0, 100.0) == pytest.approx(3.0)
        assert profit_factor(300.0, 0.0) == 0.0

    def test_expectancy(self):
        assert expectancy(60.0, 2.0, -1.0) == pytest.approx(0.6 * 2.0 - 0.4 * 1.0)

    def test_sharpe_ratio(self):
        assert sharpe_ratio([1.0]) == 0.0
        assert sharpe_ratio([2.0, 2.0, 2.0]) == 0.0
        assert sharpe_ratio([1.0, 3.0]) == pytest.approx(2.0 / 1.4142135623730951)

    def test_max_drawdown_from_zero(self):
        assert max_drawdown_usd([]) == 0.0
        assert max_drawdown_usd([-1.0, -1.0]) == pytest.approx(2.0)
        assert max_drawdown_usd([2.0, -3.0, 1.0, -1.5]) == pytest.approx(3.5)

    def test_avg_hold_seconds(self):
        assert avg_hold_seconds([60.0, 120.0]) == pytest.approx(90.0)
        assert avg_hold_seconds([]) == 0.0


class TestLedgerMetrics:
    def test_empty(self):
        m = compute_ledger_metrics([])
        assert m.total_trades == 0
        assert m.to_dict()["by_close_reason"] == {}

    def test_aggregates(self):
        entries = [
            _entry(1.5, minutes=0),
            _entry(-1.0, reason="stop_loss", minutes=5),
            _entry(0.5, reason="time_exit", hold=600.0, minutes=10),
        ]
        m = compute_ledger_metrics(entries)
        assert m.total_trades == 3
        assert m.wins == 2
        assert m.total_pnl_usd == pytest.approx(1.0)
        assert m.win_rate == pytest.approx(200 / 3)
        assert m.profit_factor == pytest.approx(2.0)
        assert m.avg_win_usd == pytest.approx(1.0)
        assert m.avg_loss_usd == pytest.approx(-1.0)
        assert m.max_drawdown_usd == pytest.approx(1.0)
        assert m.avg_hold_seconds == pytest.approx(280.0)
        assert m.by_close_reason == {"take_profit": 1, "stop_loss": 1, "time_exit": 1}

    def test_persisted_matches_memory(self, db_session):
        entries = [_entry(1.5), _entry(-1.0, asset=Asset.ETH, reason="stop_loss", minutes=5)]
        for e in entries:
            persist_ledger_entry(db_session, e)

        persisted = compute_persisted_metrics(db_session)
        memory = compute_ledger_metrics(entries)
        assert persisted.total_trades == 2
        assert persisted.total_pnl_usd == pytest.approx(memory.total_pnl_usd)
        assert persisted.max_drawdown_usd == pytest.approx(memory.max_drawdown_usd)

    def test_persisted_filters_by_asset(self, db_session):
        persist_ledger_entry(db_session, _entry(1.5))
        persist_ledger_entry(db_session, _entry(-1.0, asset=Asset.ETH, minutes=5))
        m = compute_persisted_metrics(db_session, "ETH")
        assert m.total_trades == 1
        assert m.total_pnl_usd == pytest.approx(-1.0)
