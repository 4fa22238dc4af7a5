"""Tests for PriceTracker and VolumeTracker."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from updown_core.models.market import Asset
from updown_core.prices import HISTORY_SIZE, PriceTracker, VolumeTracker

NOW = datetime(2026, 3, 4, 15, 0, tzinfo=timezone.utc)


def _feed(tracker, prices, asset=Asset.BTC, start=NOW):
    for i, p in enumerate(prices):
        assert tracker.ingest(asset, Decimal(str(p)), start + timedelta(seconds=i))


class TestIngest:
    def test_first_price_seeds_interval_start(self):
        tracker = PriceTracker()
        tracker.ingest(Asset.BTC, Decimal("60000"), NOW)
        state = tracker.snapshot(Asset.BTC)
        assert state.interval_start_price == Decimal("60000")
        assert state.current_price == Decimal("60000")
        assert state.interval_started_at == NOW
        assert state.change_pct == 0.0

    def test_later_prices_keep_interval_start(self):
        tracker = PriceTracker()
        _feed(tracker, [100, 101, 102])
        state = tracker.snapshot(Asset.BTC)
        assert state.interval_start_price == Decimal("100")
        assert state.current_price == Decimal("102")
        assert state.change_pct == pytest.approx(2.0)

    def test_history_bounded_fifo(self):
        tracker = PriceTracker()
        prices = list(range(100, 100 + HISTORY_SIZE + 5))
        _feed(tracker, prices)
        history = tracker.snapshot(Asset.BTC).history
        assert len(history) == HISTORY_SIZE
        assert [int(s.price) for s in history] == prices[-HISTORY_SIZE:]

    def test_history_oldest_first(self):
        tracker = PriceTracker()
        _feed(tracker, [1, 2, 3])
        history = tracker.snapshot(Asset.BTC).history
        assert history[0].timestamp < history[-1].timestamp

    @pytest.mark.parametrize("bad", [0, -5, "nan", "inf", "abc"])
    def test_rejects_invalid_prices(self, bad):
        tracker = PriceTracker()
        assert tracker.ingest(Asset.BTC, bad, NOW) is False
        state = tracker.snapshot(Asset.BTC)
        assert state.history == ()
        assert state.current_price == 0

    def test_assets_are_independent(self):
        tracker = PriceTracker()
        _feed(tracker, [100, 110], asset=Asset.ETH)
        assert tracker.snapshot(Asset.BTC).history == ()
        assert tracker.snapshot(Asset.ETH).change_pct == pytest.approx(10.0)

    def test_untracked_asset_raises(self):
        tracker = PriceTracker([Asset.BTC])
        with pytest.raises(KeyError):
            tracker.ingest(Asset.SOL, Decimal("1"), NOW)


class TestResetInterval:
    def test_reset_moves_start_to_current(self):
        tracker = PriceTracker()
        _feed(tracker, [100, 105])
        tracker.reset_interval(Asset.BTC, NOW + timedelta(minutes=15))
        state = tracker.snapshot(Asset.BTC)
        assert state.interval_start_price == Decimal("105")
        assert state.change_pct == 0.0
        assert state.interval_started_at == NOW + timedelta(minutes=15)

    def test_reset_keeps_history(self):
        tracker = PriceTracker()
        _feed(tracker, [100, 101, 102])
        tracker.reset_interval(Asset.BTC, NOW)
        assert len(tracker.snapshot(Asset.BTC).history) == 3


class TestSnapshot:
    def test_snapshot_is_isolated_from_later_writes(self):
        tracker = PriceTracker()
        _feed(tracker, [100, 101])
        before = tracker.snapshot(Asset.BTC)
        tracker.ingest(Asset.BTC, Decimal("200"), NOW + timedelta(seconds=5))
        assert before.current_price == Decimal("101")
        assert len(before.history) == 2


class TestStaleness:
    def test_never_updated_is_stale(self):
        assert PriceTracker().is_stale(Asset.BTC, 30, NOW) is True

    def test_fresh_and_stale(self):
        tracker = PriceTracker()
        tracker.ingest(Asset.BTC, Decimal("100"), NOW)
        assert tracker.last_updated(Asset.BTC) == NOW
        assert tracker.is_stale(Asset.BTC, 30, NOW + timedelta(seconds=10)) is False
        assert tracker.is_stale(Asset.BTC, 30, NOW + timedelta(seconds=31)) is True


class TestVolumeTracker:
    def test_no_data_returns_none(self):
        assert VolumeTracker().snapshot(Asset.BTC, NOW) is None

    def test_current_and_average(self):
        vt = VolumeTracker()
        vt.record(Asset.BTC, 100, NOW - timedelta(minutes=2))
        vt.record(Asset.BTC, 300, NOW - timedelta(minutes=1))
        vt.record(Asset.BTC, 500, NOW)
        vt.record(Asset.BTC, 250, NOW + timedelta(seconds=10))
        snap = vt.snapshot(Asset.BTC, NOW + timedelta(seconds=20))
        assert snap.current_volume == 750
        assert snap.average_volume == pytest.approx(200)

    def test_current_is_zero_after_quiet_minute(self):
        vt = VolumeTracker()
        vt.record(Asset.BTC, 100, NOW)
        snap = vt.snapshot(Asset.BTC, NOW + timedelta(minutes=1))
        assert snap.current_volume == 0
        assert snap.average_volume == 100

    def test_ignores_non_positive_quantity(self):
        vt = VolumeTracker()
        vt.record(Asset.BTC, 0, NOW)
        assert vt.snapshot(Asset.BTC, NOW) is None
