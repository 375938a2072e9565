"""Random-walk stock price simulator."""

from __future__ import annotations

import asyncio
import logging

import numpy as np

from .hub import BroadcastHub
from .models import Stock
from .store import StockStore

logger = logging.getLogger(__name__)

MAX_PRICE_DELTA = 1.0  # per tick, in currency units
DEFAULT_SHUTDOWN_TIMEOUT = 5.0


class StockPriceSimulator:
    """Background task that nudges one random stock per tick and broadcasts it.

    Each tick:
      1. snapshot the store and pick one stock uniformly at random
      2. add a delta drawn uniformly from [-1.0, +1.0] to its price
         (Stock normalization clamps at 0 and rounds to cents)
      3. write it back with StockStore.replace()
      4. broadcast the serialized stock through the BroadcastHub

    Ticks run on a fixed-rate schedule and never overlap. A tick that overruns
    the interval pushes the next one back instead of running it concurrently.
    """

    def __init__(
        self,
        store: StockStore,
        hub: BroadcastHub,
        update_interval: float = 5.0,
        rng: np.random.Generator | None = None,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
    ) -> None:
        if update_interval <= 0:
            raise ValueError(f"update_interval must be positive, got {update_interval!r}")
        self._store = store
        self._hub = hub
        self._interval = update_interval
        self._rng = rng if rng is not None else np.random.default_rng()
        self._shutdown_timeout = shutdown_timeout
        self._tick_lock = asyncio.Lock()
        self._stopping = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run_loop(), name="stock-price-simulator")
        logger.info(
            "Simulator started: %d stocks, %.1fs interval",
            len(self._store),
            self._interval,
        )

    async def stop(self) -> None:
        """Stop scheduling ticks. An in-flight tick is allowed to finish."""
        self._stopping.set()
        if self._task and not self._task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._task), timeout=self._shutdown_timeout)
            except asyncio.TimeoutError:
                logger.warning("Simulator tick did not finish within %.1fs, cancelling", self._shutdown_timeout)
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
        self._task = None
        logger.info("Simulator stopped")

    async def tick(self) -> Stock | None:
        """Run one mutate-and-broadcast cycle. Returns the updated stock, if any."""
        async with self._tick_lock:
            stocks = self._store.get_all()
            if not stocks:
                logger.debug("Store is empty, skipping tick")
                return None

            current = stocks[int(self._rng.integers(len(stocks)))]
            delta = float(self._rng.uniform(-MAX_PRICE_DELTA, MAX_PRICE_DELTA))
            updated = current.with_changes(price=current.price + delta)
            self._store.replace(updated.ticker_symbol, updated)

            payload = updated.to_json().encode("utf-8")
            delivered = await self._hub.broadcast(payload)
            logger.debug(
                "Tick: %s %.2f -> %.2f (sent to %d clients)",
                updated.ticker_symbol,
                current.price,
                updated.price,
                delivered,
            )
            return updated

    async def _run_loop(self) -> None:
        """Core loop: tick, then wait for the next slot or a stop signal."""
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        while not self._stopping.is_set():
            try:
                await self.tick()
            except Exception:
                logger.exception("Simulator tick failed")

            next_run += self._interval
            delay = next_run - loop.time()
            if delay < 0:
                logger.warning("Simulator tick overran the interval by %.2fs", -delay)
                next_run = loop.time()
                delay = 0

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
