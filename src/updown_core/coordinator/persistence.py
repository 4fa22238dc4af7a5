"""Ledger persistence — write signals and closed trades to the updown_ledger tables."""

from __future__ import annotations

from sqlalchemy.orm import Session

from updown_core.db.tables.ledger import TradeRow
from updown_core.db.tables.signals import SignalRow
from updown_core.models import LedgerEntry, Signal


def persist_signal(session: Session, signal: Signal, metadata: dict | None = None) -> int:
    """Insert an accepted Signal and return the row id."""
    row = SignalRow(
        ts=signal.generated_at,
        asset=signal.asset.value,
        market_type=signal.market_type,
        direction=signal.direction,
        trigger_price=signal.trigger_price,
        change_pct=signal.change_pct,
        edge_pct=signal.edge_pct,
        estimated_probability=signal.estimated_probability,
        token_price_cents=signal.token_price_cents,
        confidence=signal.confidence,
        size_usd=signal.size_usd,
        metadata_=metadata,
        acted_on=False,
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    return row.id


def mark_signal_acted_on(session: Session, signal_id: int) -> None:
    row = session.get(SignalRow, signal_id)
    if row is not None:
        row.acted_on = True
        session.commit()


def persist_ledger_entry(session: Session, entry: LedgerEntry) -> int:
    """Insert a closed trade and return the row id."""
    row = TradeRow(
        asset=entry.asset.value,
        market_type=entry.market_type,
        direction=entry.direction,
        entry_underlying_price=entry.entry_underlying_price,
        entry_token_price=entry.entry_token_price,
        exit_token_price=entry.exit_token_price,
        size_usd=entry.size_usd,
        opened_at=entry.opened_at,
        closed_at=entry.closed_at,
        pnl_pct=entry.pnl_pct,
        pnl_usd=entry.pnl_usd,
        close_reason=entry.close_reason,
        hold_seconds=entry.hold_seconds,
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    return row.id
