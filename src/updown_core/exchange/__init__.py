"""Exchange API clients."""

from updown_core.exchange.polymarket import PolymarketClient

__all__ = ["PolymarketClient"]
