"""Binance trade-stream feed — one WebSocket per asset, auto-reconnect."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

import structlog
import websockets

from updown_core.models.market import Asset

log = structlog.get_logger("binance_feed")


@dataclass(frozen=True)
class Trade:
    """A single parsed trade print."""

    asset: Asset
    price: Decimal
    quantity: float
    ts: datetime


TradeHandler = Callable[[Trade], None]
StatusHandler = Callable[[Asset, bool], None]


class BinanceTradeFeed:
    """Streams ``<symbol>usdt@trade`` for each asset into a trade handler.

    ``on_status(asset, connected)`` is called when a stream connects or
    drops so the consumer can suspend evaluation during an outage.
    """

    def __init__(
        self,
        assets: list[Asset],
        on_trade: TradeHandler,
        on_status: StatusHandler | None = None,
        ws_url_template: str = "wss://stream.binance.com:9443/ws/{symbol}usdt@trade",
        reconnect_delay_s: float = 3.0,
    ) -> None:
        self._assets = list(assets)
        self._on_trade = on_trade
        self._on_status = on_status
        self._url_template = ws_url_template
        self._reconnect_delay_s = reconnect_delay_s
        self._tasks: list[asyncio.Task] = []
        self._running = False

    def url_for(self, asset: Asset) -> str:
        return self._url_template.format(symbol=asset.value.lower())

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for asset in self._assets:
            self._tasks.append(asyncio.create_task(self._ws_loop(asset)))
        log.info("binance_feed_started", assets=[a.value for a in self._assets])

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
        log.info("binance_feed_stopped")

    # ── WebSocket ─────────────────────────────────────────────

    async def _ws_loop(self, asset: Asset) -> None:
        url = self.url_for(asset)
        while self._running:
            try:
                log.info("binance_ws_connecting", asset=asset.value, url=url)
                async with websockets.connect(url) as ws:
                    self._set_status(asset, True)
                    async for raw in ws:
                        if not self._running:
                            break
                        self.handle_message(asset, raw)
                self._set_status(asset, False)
            except asyncio.CancelledError:
                break
            except Exception:
                self._set_status(asset, False)
                log.exception(
                    "binance_ws_error", asset=asset.value, reconnect_in=self._reconnect_delay_s,
                )
            if self._running:
                await asyncio.sleep(self._reconnect_delay_s)

    def handle_message(self, asset: Asset, raw: str | bytes) -> Trade | None:
        """Parse one raw frame and forward it. Malformed frames are logged and dropped."""
        trade = self.parse_trade(asset, raw)
        if trade is None:
            log.debug("binance_message_ignored", asset=asset.value)
            return None
        self._on_trade(trade)
        return trade

    def _set_status(self, asset: Asset, connected: bool) -> None:
        if self._on_status is not None:
            self._on_status(asset, connected)

    @staticmethod
    def parse_trade(asset: Asset, raw: str | bytes) -> Trade | None:
        """Parse a Binance ``trade`` event.

        Expected format: {"e": "trade", "p": "60123.45", "q": "0.012", "T": 1700000000000, ...}
        Returns None for anything that is not a well-formed trade.
        """
        try:
            msg = json.loads(raw)
        except (ValueError, TypeError):
            return None
        if not isinstance(msg, dict) or msg.get("e") != "trade":
            return None
        try:
            price = Decimal(str(msg["p"]))
            quantity = float(msg.get("q", 0))
            ts_ms = msg.get("T") or msg.get("E")
            if ts_ms is not None:
                ts = datetime.fromtimestamp(int(ts_ms) / 1000, tz=timezone.utc)
            else:
                ts = datetime.now(timezone.utc)
        except (KeyError, InvalidOperation, ValueError, TypeError, OverflowError, OSError):
            return None
        return Trade(asset=asset, price=price, quantity=quantity, ts=ts)
