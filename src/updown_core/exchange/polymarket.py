"""Polymarket exchange client — REST API.

Market discovery uses the gamma API (gamma-api.polymarket.com), which
returns market objects with outcomePrices and clobTokenIds included.
Order books come from the CLOB API (clob.polymarket.com/book).

Several gamma fields (outcomePrices, clobTokenIds) arrive either as a
list or as a JSON string containing a list.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any

import httpx

from updown_core.models.market import Asset, MarketContext, MarketType, OrderbookDepth

_ASSET_PATTERNS: tuple[tuple[Asset, re.Pattern[str]], ...] = (
    (Asset.BTC, re.compile(r"\b(BTC|BITCOIN)\b")),
    (Asset.ETH, re.compile(r"\b(ETH|ETHEREUM)\b")),
    (Asset.SOL, re.compile(r"\b(SOL|SOLANA)\b")),
    (Asset.XRP, re.compile(r"\b(XRP|RIPPLE)\b")),
)

_SLUG_MARKET_TYPES: tuple[tuple[str, MarketType], ...] = (
    ("-5m-", "5m"),
    ("-15m-", "15m"),
    ("-1h-", "1h"),
    ("-4h-", "4h"),
)


class PolymarketClient:
    """Async client for the Polymarket gamma and CLOB APIs."""

    def __init__(
        self,
        base_url: str = "https://gamma-api.polymarket.com",
        clob_url: str = "https://clob.polymarket.com",
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.clob_url = clob_url.rstrip("/")
        self._timeout = timeout
        self._http: httpx.AsyncClient | None = None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self._timeout)
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def get_markets(self, limit: int = 100, max_pages: int = 5) -> list[dict]:
        """Fetch active, unclosed markets, newest first (offset-paginated)."""
        http = await self._get_http()
        all_markets: list[dict] = []
        for page in range(max_pages):
            params: dict[str, Any] = {
                "active": "true",
                "closed": "false",
                "order": "id",
                "ascending": "false",
                "limit": limit,
                "offset": page * limit,
            }
            resp = await http.get(f"{self.base_url}/markets", params=params)
            resp.raise_for_status()
            body = resp.json()
            if not isinstance(body, list) or not body:
                break
            all_markets.extend(body)
            if len(body) < limit:
                break
        return all_markets

    async def get_order_book(self, token_id: str) -> dict:
        """Fetch the CLOB order book for one outcome token."""
        http = await self._get_http()
        resp = await http.get(f"{self.clob_url}/book", params={"token_id": token_id})
        resp.raise_for_status()
        return resp.json()

    # ── Parsing helpers ───────────────────────────────────────

    @staticmethod
    def parse_json_list(raw: Any) -> list:
        """Parse a field that may be a list or a JSON-encoded list."""
        if isinstance(raw, list):
            return raw
        if isinstance(raw, str) and raw.strip():
            try:
                value = json.loads(raw)
            except ValueError:
                return []
            return value if isinstance(value, list) else []
        return []

    @classmethod
    def parse_outcome_prices(cls, raw: Any) -> list[float]:
        try:
            return [float(x) for x in cls.parse_json_list(raw)]
        except (TypeError, ValueError):
            return []

    @staticmethod
    def classify_asset(title: str) -> Asset | None:
        """Extract the asset from a market title or slug, or None if unrelated."""
        t = re.sub(r"[-_]", " ", title.upper())
        for asset, pattern in _ASSET_PATTERNS:
            if pattern.search(t):
                return asset
        return None

    @staticmethod
    def classify_market_type(slug: str) -> MarketType | None:
        """Interval of an up/down market from its slug.

        ``btc-updown-15m-...`` style slugs carry the interval; the hourly
        ``bitcoin-up-or-down-...`` markets do not.
        """
        s = slug.lower()
        for token, market_type in _SLUG_MARKET_TYPES:
            if token in s and "updown" in s:
                return market_type
        if "up-or-down" in s:
            return "1h"
        return None

    @staticmethod
    def _parse_datetime(raw: Any) -> datetime | None:
        if not isinstance(raw, str) or not raw:
            return None
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

    @classmethod
    def parse_updown_market(cls, market: dict, now: datetime) -> MarketContext | None:
        """Build a MarketContext from a gamma market dict.

        Returns None for markets that are not open up/down markets on a
        tracked asset, have already ended, or lack two outcome tokens.
        """
        slug = market.get("slug") or ""
        market_type = cls.classify_market_type(slug)
        if market_type is None:
            return None
        asset = cls.classify_asset(slug) or cls.classify_asset(market.get("question") or "")
        if asset is None:
            return None
        if market.get("closed") is True or market.get("active") is False:
            return None

        resolves_at = cls._parse_datetime(market.get("endDate") or market.get("end_date_iso"))
        if resolves_at is not None and resolves_at <= now:
            return None

        tokens = [str(t) for t in cls.parse_json_list(market.get("clobTokenIds"))]
        if len(tokens) < 2 or not tokens[0] or not tokens[1]:
            return None

        prices = cls.parse_outcome_prices(market.get("outcomePrices"))
        if not prices:
            return None
        yes_cents = prices[0] * 100
        no_cents = prices[1] * 100 if len(prices) > 1 else 100 - yes_cents
        if not (0 <= yes_cents <= 100 and 0 <= no_cents <= 100):
            return None

        return MarketContext(
            asset=asset,
            market_type=market_type,
            yes_price_cents=yes_cents,
            no_price_cents=no_cents,
            resolves_at=resolves_at,
            condition_id=market.get("conditionId") or market.get("condition_id") or "",
            yes_token_id=tokens[0],
            no_token_id=tokens[1],
            description=market.get("question") or slug,
        )

    @staticmethod
    def book_depth(book: dict, levels: int = 5) -> OrderbookDepth:
        """USD depth (sum of price * size) over the top *levels* of each side.

        Spread is relative to the best bid; 100% when there are no bids.
        """
        def _levels(side: str, best_first: bool) -> list[tuple[float, float]]:
            parsed: list[tuple[float, float]] = []
            for lvl in book.get(side) or []:
                try:
                    parsed.append((float(lvl["price"]), float(lvl["size"])))
                except (KeyError, TypeError, ValueError):
                    continue
            # CLOB returns bids ascending and asks descending; best first here
            parsed.sort(key=lambda x: x[0], reverse=best_first)
            return parsed

        bids = _levels("bids", best_first=True)
        asks = _levels("asks", best_first=False)
        bid_depth = sum(p * s for p, s in bids[:levels])
        ask_depth = sum(p * s for p, s in asks[:levels])
        best_bid = bids[0][0] if bids else 0.0
        best_ask = asks[0][0] if asks else 1.0
        spread = (best_ask - best_bid) / best_bid * 100 if best_bid > 0 else 100.0
        return OrderbookDepth(bid_depth_usd=bid_depth, ask_depth_usd=ask_depth, spread_pct=spread)
