"""Tests for the read-only FastAPI surface."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from updown_core.api.app import create_app, get_db
from updown_core.config.schema import AppConfig, DatabaseConfig
from updown_core.coordinator.coordinator import Coordinator
from updown_core.coordinator.events import CollectingEventSink, LogEventSink
from updown_core.coordinator.persistence import persist_ledger_entry
from updown_core.coordinator.runner import build_sink
from updown_core.models.market import Asset, MarketContext, OrderbookDepth

NOW = datetime.now(timezone.utc)

RISING = ["100.00", "100.01", "100.02", "100.015", "100.03", "100.05", "100.07", "100.10", "100.13", "100.17"]


def _coordinator(**overrides):
    # trading hours are not what is under test here
    config = AppConfig(
        assets=[Asset.BTC, Asset.ETH],
        filters={"time": {"enabled": False}},
        **overrides,
    )
    return Coordinator(config, sink=CollectingEventSink())


def _traded(coord):
    for i, p in enumerate(RISING):
        coord.ingest(Asset.BTC, Decimal(p), NOW - timedelta(seconds=9 - i))
    coord.refresh_context(MarketContext(asset=Asset.BTC, market_type="15m", yes_price_cents=48.0), NOW)
    coord.refresh_orderbook(Asset.BTC, OrderbookDepth(bid_depth_usd=1000, ask_depth_usd=1000))
    asyncio.run(coord.evaluate_signals(NOW))
    coord.positions.close(Asset.BTC, "take_profit", 57.5, NOW + timedelta(seconds=61))
    return coord


@pytest.fixture
def coord():
    return _coordinator()


@pytest.fixture
def client(coord):
    return TestClient(create_app(coord))


class TestEndpoints:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["openPositions"] == 0

    def test_status(self, client):
        body = client.get("/api/status").json()
        assert set(body["assets"]) == {"BTC", "ETH"}
        assert body["execution_mode"] == "mock"

    def test_positions(self, coord, client):
        for i, p in enumerate(RISING):
            coord.ingest(Asset.BTC, Decimal(p), NOW - timedelta(seconds=9 - i))
        coord.refresh_context(MarketContext(asset=Asset.BTC, market_type="15m", yes_price_cents=48.0), NOW)
        coord.refresh_orderbook(Asset.BTC, OrderbookDepth(bid_depth_usd=1000, ask_depth_usd=1000))
        asyncio.run(coord.evaluate_signals(NOW))

        positions = client.get("/api/positions").json()["positions"]
        assert len(positions) == 1
        assert positions[0]["asset"] == "BTC"
        assert positions[0]["entry_token_price"] == 48.0

    def test_ledger_and_metrics(self, coord, client):
        _traded(coord)
        ledger = client.get("/api/ledger").json()
        assert ledger["total"] == 1
        assert ledger["entries"][0]["close_reason"] == "take_profit"

        metrics = client.get("/api/metrics").json()
        assert metrics["source"] == "memory"
        assert metrics["metrics"]["total_trades"] == 1
        assert metrics["metrics"]["wins"] == 1

    def test_ledger_filter_by_asset(self, coord, client):
        _traded(coord)
        assert client.get("/api/ledger?asset=eth").json()["total"] == 0
        assert client.get("/api/ledger?asset=btc").json()["total"] == 1

    def test_unknown_asset_404(self, client):
        assert client.get("/api/ledger?asset=DOGE").status_code == 404
        assert client.get("/api/metrics?asset=DOGE").status_code == 404

    def test_persisted_metrics_disabled(self, client):
        assert client.get("/api/metrics/persisted").status_code == 404

    def test_persisted_metrics(self, db_session):
        coord = _traded(_coordinator(database=DatabaseConfig(enabled=True)))
        for entry in coord.ledger.entries():
            persist_ledger_entry(db_session, entry)

        app = create_app(coord)
        app.dependency_overrides[get_db] = lambda: db_session
        body = TestClient(app).get("/api/metrics/persisted").json()
        assert body["source"] == "database"
        assert body["metrics"]["total_trades"] == 1


class TestRunner:
    def test_build_sink_without_database(self):
        assert isinstance(build_sink(AppConfig()), LogEventSink)
