"""Underlying price tracking and the market data feed."""

from updown_core.prices.feed import BinanceTradeFeed, Trade
from updown_core.prices.tracker import HISTORY_SIZE, PriceTracker
from updown_core.prices.volume import VolumeTracker

__all__ = [
    "HISTORY_SIZE",
    "BinanceTradeFeed",
    "PriceTracker",
    "Trade",
    "VolumeTracker",
]
