"""Coordinator — wires feeds, signal generation and position management."""

from updown_core.coordinator.coordinator import Coordinator
from updown_core.coordinator.events import (
    CollectingEventSink,
    DatabaseEventSink,
    EventSink,
    FanoutEventSink,
    LogEventSink,
)
from updown_core.coordinator.refresh import MarketRefresher, select_market

__all__ = [
    "CollectingEventSink",
    "Coordinator",
    "DatabaseEventSink",
    "EventSink",
    "FanoutEventSink",
    "LogEventSink",
    "MarketRefresher",
    "select_market",
]
