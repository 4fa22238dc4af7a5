"""Engine runner — starts the feed, market refresher, API and coordinator loops."""

from __future__ import annotations

import asyncio
import signal

import structlog
import uvicorn

from updown_core.api.app import create_app
from updown_core.config.loader import load_config
from updown_core.config.schema import AppConfig
from updown_core.coordinator.coordinator import Coordinator
from updown_core.coordinator.events import DatabaseEventSink, EventSink, FanoutEventSink, LogEventSink
from updown_core.coordinator.refresh import MarketRefresher
from updown_core.db.engine import dispose_engine, init_engine
from updown_core.exchange.polymarket import PolymarketClient
from updown_core.logging.setup import bind_engine_context, setup_logging
from updown_core.positions.execution import OrderSubmitter, build_executor
from updown_core.prices.feed import BinanceTradeFeed

log = structlog.get_logger("runner")


def build_sink(config: AppConfig) -> EventSink:
    if not config.database.enabled:
        return LogEventSink()
    init_engine(config.database.url)
    return FanoutEventSink([LogEventSink(), DatabaseEventSink()])


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # not available on this platform / outside the main thread
            pass


async def run(
    config: AppConfig,
    stop_event: asyncio.Event | None = None,
    submitter: OrderSubmitter | None = None,
) -> None:
    """Run the engine until *stop_event* is set or an invariant breaks."""
    executor = build_executor(config.execution, submitter)
    coordinator = Coordinator(config, executor=executor, sink=build_sink(config))

    feed = BinanceTradeFeed(
        coordinator.assets,
        on_trade=coordinator.on_trade,
        on_status=coordinator.on_feed_status,
        ws_url_template=config.feed.ws_url_template,
        reconnect_delay_s=config.feed.reconnect_delay_s,
    )
    client = PolymarketClient(config.polymarket.gamma_url, config.polymarket.clob_url)
    refresher = MarketRefresher(coordinator, client, config.polymarket)

    stop_event = stop_event or asyncio.Event()
    bind_engine_context(execution_mode=config.execution.mode)
    _install_signal_handlers(stop_event)

    server: uvicorn.Server | None = None
    api_task: asyncio.Task | None = None
    if config.api.enabled:
        server = uvicorn.Server(uvicorn.Config(
            create_app(coordinator),
            host=config.api.host,
            port=config.api.port,
            log_config=None,  # Use our structlog setup
        ))
        api_task = asyncio.create_task(server.serve())
        # uvicorn may capture SIGINT/SIGTERM itself; its exit stops the engine
        api_task.add_done_callback(lambda _: stop_event.set())
        log.info("api_started", host=config.api.host, port=config.api.port)

    log.info(
        "engine_started",
        assets=[a.value for a in coordinator.assets],
        execution_mode=config.execution.mode,
        database=config.database.enabled,
    )
    await feed.start()
    await refresher.start()
    try:
        await coordinator.run(stop_event)
    finally:
        await refresher.stop()
        await feed.stop()
        await client.close()
        if server is not None and api_task is not None:
            server.should_exit = True
            await api_task
        if config.database.enabled:
            dispose_engine()
        log.info("engine_stopped")


def main(config_path: str | None = None) -> None:
    """Load config, set up logging and run the engine until interrupted."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)
    asyncio.run(run(config))
