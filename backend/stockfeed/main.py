"""FastAPI application for the stock feed.

Run with:
    stockfeed
or, through the uvicorn CLI:
    uvicorn --factory stockfeed.main:create_app --timeout-graceful-shutdown 5

The uvicorn CLI cannot close open SSE streams when shutdown starts, so in that
mode it is the graceful-shutdown timeout that ends them.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .config import Settings, load_settings
from .stocks import (
    BroadcastHub,
    StockPriceSimulator,
    StockStore,
    create_stock_router,
    create_stream_router,
)

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Settings are loaded (and validated) first, so a bad configuration raises
    ConfigurationError before the store, hub or simulator exist.
    """
    if settings is None:
        settings = load_settings()
    configure_logging(settings.log_level)

    store = StockStore(settings.initial_stocks)
    hub = BroadcastHub(write_timeout=settings.write_timeout)
    simulator = StockPriceSimulator(
        store=store,
        hub=hub,
        update_interval=settings.update_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await simulator.start()
        try:
            yield
        finally:
            await simulator.stop()
            await hub.close_all()

    app = FastAPI(title="Stock Market Simulator", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.hub = hub
    app.state.simulator = simulator

    # /stocks/live must be registered before /stocks/{ticker}
    app.include_router(create_stream_router(hub))
    app.include_router(create_stock_router(store))

    logger.info(
        "App created: %d initial stocks, %ds update interval",
        len(store),
        settings.update_interval_seconds,
    )
    return app


class StockFeedServer(uvicorn.Server):
    """uvicorn server that closes every SSE stream when shutdown begins.

    uvicorn waits for open connections to finish before running the lifespan
    shutdown, and an SSE response only finishes once its client is closed.
    Closing the hub first lets the streams end so the wait can complete.
    """

    def __init__(self, config: uvicorn.Config, hub: BroadcastHub) -> None:
        super().__init__(config)
        self._hub = hub

    async def shutdown(self, sockets: list[socket.socket] | None = None) -> None:
        logger.info("Shutting down: closing %d streaming clients", self._hub.client_count)
        await self._hub.close_all()
        await super().shutdown(sockets=sockets)


def create_server(app: FastAPI) -> StockFeedServer:
    """Wrap an app built by create_app() in a StockFeedServer."""
    settings: Settings = app.state.settings
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        timeout_graceful_shutdown=settings.shutdown_timeout,
    )
    return StockFeedServer(config, hub=app.state.hub)


def run() -> None:
    """Console entry point."""
    create_server(create_app()).run()
