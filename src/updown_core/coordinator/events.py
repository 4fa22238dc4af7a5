"""Event sinks — where engine events go once the coordinator emits them."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from typing import Protocol

import structlog
from sqlalchemy.orm import Session

from updown_core.coordinator.persistence import (
    mark_signal_acted_on,
    persist_ledger_entry,
    persist_signal,
)
from updown_core.db.engine import session_scope
from updown_core.models.events import (
    Event,
    FilterRejected,
    SignalDetected,
    TradeClosed,
    TradeOpened,
)
from updown_core.models.market import Asset

log = structlog.get_logger("events")


class EventSink(Protocol):
    def emit(self, event: Event) -> None: ...


class LogEventSink:
    """Writes every event as a structured log line."""

    def emit(self, event: Event) -> None:
        if isinstance(event, SignalDetected):
            s = event.signal
            log.info(
                "event_signal_detected",
                asset=s.asset.value,
                direction=s.direction,
                edge_pct=round(s.edge_pct, 2),
                token_price_cents=round(s.token_price_cents, 2),
            )
        elif isinstance(event, FilterRejected):
            log.info("event_filter_rejected", asset=event.asset.value, reason=event.reason)
        elif isinstance(event, TradeOpened):
            p = event.position
            log.info(
                "event_trade_opened",
                asset=p.asset.value,
                direction=p.direction,
                entry_token_price=p.entry_token_price,
                size_usd=round(p.size_usd, 2),
            )
        elif isinstance(event, TradeClosed):
            log.info(
                "event_trade_closed",
                asset=event.entry.asset.value,
                close_reason=event.close_reason,
                pnl_pct=round(event.pnl_pct, 2),
                pnl_usd=round(event.entry.pnl_usd, 4),
            )


class CollectingEventSink:
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def emit(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list:
        return [e for e in self.events if isinstance(e, kind)]


class FanoutEventSink:
    """Delivers each event to several sinks. One failing sink does not starve the rest."""

    def __init__(self, sinks: Iterable[EventSink]) -> None:
        self.sinks = list(sinks)

    def emit(self, event: Event) -> None:
        for sink in self.sinks:
            try:
                sink.emit(event)
            except Exception:
                log.exception("event_sink_error", sink=type(sink).__name__, kind=event.kind)


class DatabaseEventSink:
    """Persists accepted signals and closed trades to the ledger schema."""

    def __init__(
        self,
        session_factory: Callable[[], AbstractContextManager[Session]] = session_scope,
    ) -> None:
        self._session_factory = session_factory
        self._last_signal_id: dict[Asset, int] = {}

    def emit(self, event: Event) -> None:
        if isinstance(event, SignalDetected):
            with self._session_factory() as session:
                row_id = persist_signal(session, event.signal)
            self._last_signal_id[event.signal.asset] = row_id
        elif isinstance(event, TradeOpened):
            row_id = self._last_signal_id.pop(event.position.asset, None)
            if row_id is not None:
                with self._session_factory() as session:
                    mark_signal_acted_on(session, row_id)
        elif isinstance(event, TradeClosed):
            with self._session_factory() as session:
                persist_ledger_entry(session, event.entry)
