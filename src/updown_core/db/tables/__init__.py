"""Import all table modules so Base.metadata knows about them."""

from updown_core.db.tables.ledger import TradeRow
from updown_core.db.tables.signals import SignalRow

__all__ = ["SignalRow", "TradeRow"]
