"""VolumeTracker — per-minute traded volume buckets per asset."""

from __future__ import annotations

import threading
from collections import deque
from datetime import datetime

from updown_core.models.market import Asset, VolumeSnapshot


class VolumeTracker:
    """Accumulates traded USD notional into one-minute buckets.

    The current bucket is the one-minute window containing the latest trade;
    the average covers the completed buckets still in the window.
    """

    def __init__(self, assets: list[Asset] | None = None, window_minutes: int = 20) -> None:
        self._window = window_minutes
        self._lock = threading.Lock()
        self._buckets: dict[Asset, deque[tuple[int, float]]] = {
            a: deque(maxlen=window_minutes + 1) for a in (assets or list(Asset))
        }

    def record(self, asset: Asset, notional_usd: float, timestamp: datetime) -> None:
        if notional_usd <= 0:
            return
        minute = int(timestamp.timestamp() // 60)
        with self._lock:
            buckets = self._buckets[asset]
            if buckets and buckets[-1][0] == minute:
                buckets[-1] = (minute, buckets[-1][1] + notional_usd)
            elif not buckets or buckets[-1][0] < minute:
                buckets.append((minute, notional_usd))
            # late trades for an already-closed minute are dropped

    def snapshot(self, asset: Asset, now: datetime) -> VolumeSnapshot | None:
        """Current and average volume, or None when nothing has been recorded."""
        minute = int(now.timestamp() // 60)
        with self._lock:
            buckets = list(self._buckets[asset])
        if not buckets:
            return None
        current = buckets[-1][1] if buckets[-1][0] == minute else 0.0
        completed = [
            qty for m, qty in buckets
            if m < minute and m >= minute - self._window
        ]
        average = sum(completed) / len(completed) if completed else 0.0
        return VolumeSnapshot(current_volume=current, average_volume=average)
