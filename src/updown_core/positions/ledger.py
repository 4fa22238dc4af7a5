"""Append-only ledger of closed positions."""

from __future__ import annotations

import threading
from collections.abc import Iterator

from updown_core.models.market import Asset
from updown_core.models.position import LedgerEntry


class Ledger:
    """Closed-position records in close-time order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[LedgerEntry] = []

    def append(self, entry: LedgerEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self, asset: Asset | None = None) -> list[LedgerEntry]:
        with self._lock:
            items = list(self._entries)
        if asset is None:
            return items
        return [e for e in items if e.asset == asset]

    def total_pnl_usd(self) -> float:
        return sum(e.pnl_usd for e in self.entries())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(self.entries())
