"""FastAPI application exposing engine status, positions, ledger and metrics."""

from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timezone

import structlog
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from updown_core.coordinator.coordinator import Coordinator
from updown_core.db.engine import get_session
from updown_core.metrics import compute_ledger_metrics, compute_persisted_metrics
from updown_core.models.market import Asset

logger = structlog.get_logger("api")


def get_db() -> Generator[Session, None, None]:
    """Ledger database session for one request."""
    yield from get_session()


def require_database(request: Request) -> None:
    if not request.app.state.coordinator.config.database.enabled:
        raise HTTPException(status_code=404, detail="Database persistence is disabled")


def _parse_asset(asset: str | None) -> Asset | None:
    if asset is None:
        return None
    try:
        return Asset(asset.upper())
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown asset {asset!r}")


def create_app(coordinator: Coordinator) -> FastAPI:
    """Build the API around a running coordinator."""
    app = FastAPI(
        title="Up/Down Engine API",
        description="Read-only status of the up/down momentum engine",
        version="0.1.0",
    )
    app.state.coordinator = coordinator
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "openPositions": coordinator.positions.open_count,
        }

    @app.get("/api/status")
    async def get_status():
        return coordinator.status()

    @app.get("/api/positions")
    async def list_positions():
        return {
            "positions": [
                p.model_dump(mode="json") for p in coordinator.positions.open_positions()
            ],
        }

    @app.get("/api/ledger")
    async def list_ledger(
        asset: str | None = None,
        limit: int = Query(default=100, ge=1, le=1000),
    ):
        entries = coordinator.ledger.entries(_parse_asset(asset))
        return {
            "total": len(entries),
            "entries": [e.model_dump(mode="json") for e in entries[-limit:]],
        }

    @app.get("/api/metrics")
    async def get_metrics(asset: str | None = None):
        entries = coordinator.ledger.entries(_parse_asset(asset))
        return {"source": "memory", "metrics": compute_ledger_metrics(entries).to_dict()}

    @app.get("/api/metrics/persisted", dependencies=[Depends(require_database)])
    async def get_persisted_metrics(
        asset: str | None = None,
        session: Session = Depends(get_db),
    ):
        parsed = _parse_asset(asset)
        metrics = compute_persisted_metrics(session, parsed.value if parsed else None)
        return {"source": "database", "metrics": metrics.to_dict()}

    logger.info("api_app_created")
    return app
