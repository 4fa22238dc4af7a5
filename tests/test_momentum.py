"""Tests for momentum scoring."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from updown_core.config.schema import MomentumFilterConfig
from updown_core.models.market import PriceSample
from updown_core.signals.filters import SignalContext, check_momentum
from updown_core.signals.momentum import direction_matches, pct_deltas, score_momentum

NOW = datetime(2026, 3, 4, 15, 0, tzinfo=timezone.utc)

# Nine deltas, eight positive, growing in the second half.
RISING = ["100.00", "100.01", "100.02", "100.015", "100.03", "100.05", "100.07", "100.10", "100.13", "100.17"]


def _history(prices):
    return tuple(
        PriceSample(timestamp=NOW + timedelta(seconds=i), price=Decimal(p))
        for i, p in enumerate(prices)
    )


class TestScoreMomentum:
    def test_empty_history(self):
        m = score_momentum(())
        assert (m.score, m.consistency, m.accelerating, m.direction_matches) == (0, 0, False, False)

    def test_single_sample(self):
        m = score_momentum(_history(["100"]), "UP")
        assert m.score == 0
        assert m.consistency == 0
        assert m.accelerating is False
        assert m.direction_matches is False

    def test_flat_history_is_zero(self):
        m = score_momentum(_history(["100", "100", "100"]), "UP")
        assert m.score == 0
        assert m.direction_matches is False

    def test_consistent_acceleration_passes_filter(self):
        m = score_momentum(_history(RISING), "UP")
        assert m.score >= 0.4
        assert m.consistency >= 0.8
        assert m.accelerating is True
        assert m.direction_matches is True

        ctx = SignalContext(direction="UP", momentum=m, depth=None, volume=None, now=NOW)
        assert check_momentum(ctx, MomentumFilterConfig()).passed is True

    def test_falling_history_scores_negative(self):
        falling = [str(200 - Decimal(p)) for p in RISING]
        m = score_momentum(_history(falling), "DOWN")
        assert m.score <= -0.4
        assert m.direction_matches is True
        assert score_momentum(_history(falling), "UP").direction_matches is False

    def test_decelerating_move(self):
        m = score_momentum(_history(["100", "100.05", "100.09", "100.10", "100.105"]), "UP")
        assert m.accelerating is False
        assert m.consistency == 1.0

    def test_small_move_scales_score_down(self):
        m = score_momentum(_history(["100", "100.01", "100.02"]), "UP", full_scale_pct=0.10)
        # 0.02% net move against a 0.10% full scale
        assert 0 < m.score < 0.4

    def test_mixed_deltas_lower_consistency(self):
        m = score_momentum(_history(["100", "100.2", "100.1", "100.3", "100.2", "100.4"]), "UP")
        assert m.consistency == pytest.approx(3 / 5)

    def test_score_bounded(self):
        m = score_momentum(_history(["100", "150", "300"]), "UP")
        assert m.score == 1.0

    def test_accepts_plain_decimals(self):
        m = score_momentum([Decimal(p) for p in RISING], "UP")
        assert m.direction_matches is True

    def test_without_direction_never_matches(self):
        assert score_momentum(_history(RISING)).direction_matches is False


class TestHelpers:
    def test_pct_deltas_zero_previous(self):
        assert pct_deltas([Decimal(0), Decimal(5), Decimal(10)]) == [0.0, 100.0]

    def test_direction_matches(self):
        assert direction_matches(0.5, "UP") is True
        assert direction_matches(-0.5, "DOWN") is True
        assert direction_matches(0.5, "DOWN") is False
        assert direction_matches(0.0, "UP") is False
        assert direction_matches(0.0, "DOWN") is False
