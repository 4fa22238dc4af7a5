"""MarketRefresher — polls Polymarket for each asset's active up/down market."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import httpx
import structlog

from updown_core.config.schema import PolymarketConfig
from updown_core.coordinator.coordinator import Coordinator
from updown_core.exchange.polymarket import PolymarketClient
from updown_core.models.market import Asset, MarketContext
from updown_core.models.position import PositionState

log = structlog.get_logger("market_refresher")


def select_market(
    candidates: list[MarketContext],
    min_yes_cents: float,
    max_yes_cents: float,
) -> MarketContext | None:
    """Pick the undecided market (YES inside the band) closest to 50c."""
    eligible = [
        c for c in candidates
        if min_yes_cents <= c.yes_price_cents <= max_yes_cents
    ]
    if not eligible:
        return None
    return min(eligible, key=lambda c: abs(c.yes_price_cents - 50.0))


class MarketRefresher:
    """Keeps the coordinator's market contexts and order book depth current.

    The selected market is kept while it stays listed and inside the
    selection band; only then is a new one picked, which starts a new
    interval. While an asset holds a position its market keeps being
    quoted even after its price leaves the band.
    """

    def __init__(
        self,
        coordinator: Coordinator,
        client: PolymarketClient,
        config: PolymarketConfig,
    ) -> None:
        self.coordinator = coordinator
        self.client = client
        self.config = config
        self._selected: dict[Asset, str] = {}
        self._task: asyncio.Task | None = None
        self._running = False

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        log.info("market_refresher_started")

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        log.info("market_refresher_stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.refresh_once()
            except asyncio.CancelledError:
                break
            except Exception:
                log.exception("market_refresh_error", retry_in=self.config.refresh_interval_s)
            await asyncio.sleep(self.config.refresh_interval_s)

    # ── Refresh ───────────────────────────────────────────────

    async def refresh_once(self, now: datetime | None = None) -> dict[Asset, MarketContext]:
        """One discovery + order book pass. Returns the contexts pushed."""
        now = now or datetime.now(timezone.utc)
        markets = await self.client.get_markets()

        by_asset: dict[Asset, list[MarketContext]] = {}
        for raw in markets:
            ctx = self.client.parse_updown_market(raw, now)
            if ctx is not None and ctx.asset in self.coordinator.assets:
                by_asset.setdefault(ctx.asset, []).append(ctx)

        pushed: dict[Asset, MarketContext] = {}
        for asset in self.coordinator.assets:
            candidates = by_asset.get(asset, [])
            held = self.coordinator.positions.state(asset) != PositionState.EMPTY
            current = self._selected.get(asset)
            listed = next((c for c in candidates if c.condition_id == current), None)
            if held and current is not None:
                # never switch markets under a live position
                if listed is None:
                    log.info("held_market_unlisted", asset=asset.value, condition_id=current)
                    continue
                ctx = listed
            elif listed is not None and self._in_band(listed):
                # keep the current market while it is still undecided
                ctx = listed
            else:
                ctx = select_market(
                    candidates, self.config.min_yes_price_cents, self.config.max_yes_price_cents,
                )
            if ctx is None:
                if asset in self._selected:
                    log.info("market_lost", asset=asset.value)
                    self._selected.pop(asset)
                    self.coordinator.clear_context(asset)
                continue

            previous = self._selected.get(asset)
            if previous != ctx.condition_id:
                self._selected[asset] = ctx.condition_id
                self.coordinator.reset_interval(asset, now)
                log.info(
                    "market_switched",
                    asset=asset.value,
                    market_type=ctx.market_type,
                    condition_id=ctx.condition_id,
                    yes_price_cents=round(ctx.yes_price_cents, 2),
                    description=ctx.description,
                )
            self.coordinator.refresh_context(ctx, now)
            pushed[asset] = ctx
            await self._refresh_book(ctx)
        return pushed

    def _in_band(self, ctx: MarketContext) -> bool:
        return self.config.min_yes_price_cents <= ctx.yes_price_cents <= self.config.max_yes_price_cents

    async def _refresh_book(self, ctx: MarketContext) -> None:
        if not ctx.yes_token_id:
            return
        try:
            book = await self.client.get_order_book(ctx.yes_token_id)
        except httpx.HTTPError as exc:
            log.warning("orderbook_fetch_failed", asset=ctx.asset.value, error=str(exc))
            return
        depth = self.client.book_depth(book, self.config.book_levels)
        self.coordinator.refresh_orderbook(ctx.asset, depth)
