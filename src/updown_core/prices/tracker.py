"""PriceTracker — bounded per-asset price history with interval reference."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

import structlog

from updown_core.models.market import Asset, PriceSample, PriceState

log = structlog.get_logger("price_tracker")

HISTORY_SIZE = 10


@dataclass
class _Slot:
    """Mutable per-asset state. Only touched while holding ``lock``."""

    lock: threading.Lock = field(default_factory=threading.Lock)
    history: deque[PriceSample] = field(default_factory=lambda: deque(maxlen=HISTORY_SIZE))
    current_price: Decimal = Decimal(0)
    interval_start_price: Decimal = Decimal(0)
    last_updated: datetime | None = None
    interval_started_at: datetime | None = None


class PriceTracker:
    """Rolling price state for each tracked asset.

    Writers are serialized per asset; readers get a frozen PriceState copy
    and never observe a half-applied update.
    """

    def __init__(self, assets: list[Asset] | None = None) -> None:
        self._slots: dict[Asset, _Slot] = {a: _Slot() for a in (assets or list(Asset))}

    @property
    def assets(self) -> list[Asset]:
        return list(self._slots)

    def _slot(self, asset: Asset) -> _Slot:
        slot = self._slots.get(asset)
        if slot is None:
            raise KeyError(f"untracked asset: {asset}")
        return slot

    def ingest(self, asset: Asset, price: Decimal | float | str, timestamp: datetime | None = None) -> bool:
        """Record a new price. Returns False if the price was rejected."""
        try:
            value = Decimal(str(price))
        except (InvalidOperation, ValueError):
            log.warning("price_rejected", asset=asset.value, raw=str(price))
            return False
        if not value.is_finite() or value <= 0:
            log.warning("price_rejected", asset=asset.value, raw=str(price))
            return False

        ts = timestamp or datetime.now(timezone.utc)
        slot = self._slot(asset)
        with slot.lock:
            slot.history.append(PriceSample(timestamp=ts, price=value))
            slot.current_price = value
            slot.last_updated = ts
            if slot.interval_start_price == 0:
                slot.interval_start_price = value
                slot.interval_started_at = ts
        return True

    def reset_interval(self, asset: Asset, now: datetime | None = None) -> None:
        """Start a new interval at the current price. History is kept."""
        slot = self._slot(asset)
        with slot.lock:
            slot.interval_start_price = slot.current_price
            slot.interval_started_at = now or datetime.now(timezone.utc)
            start = slot.interval_start_price
        log.info("interval_reset", asset=asset.value, start_price=str(start))

    def snapshot(self, asset: Asset) -> PriceState:
        slot = self._slot(asset)
        with slot.lock:
            return PriceState(
                asset=asset,
                current_price=slot.current_price,
                interval_start_price=slot.interval_start_price,
                history=tuple(slot.history),
                last_updated=slot.last_updated,
                interval_started_at=slot.interval_started_at,
            )

    def last_updated(self, asset: Asset) -> datetime | None:
        slot = self._slot(asset)
        with slot.lock:
            return slot.last_updated

    def is_stale(self, asset: Asset, max_age_s: float, now: datetime) -> bool:
        """True if no price has arrived within *max_age_s* seconds."""
        updated = self.last_updated(asset)
        if updated is None:
            return True
        return (now - updated).total_seconds() > max_age_s
