"""Random-walk price simulator driving the live ticker feed."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import numpy as np

from .history import HistoryGenerator
from .models import HistoricalSeries, Ticker, now_ms
from .seed_tickers import EQUITY, TICK_BIAS, TICK_VOLATILITY
from .store import TickerStore

logger = logging.getLogger(__name__)

BatchListener = Callable[[list[Ticker]], None]


class RandomWalkModel:
    """Biased uniform random walk for live ticks.

    Math:
        pct        = (U[0, 1) - bias) * 2 * volatility
        new_price  = price * (1 + pct)

    With bias < 0.5 the expected move is positive. Crypto symbols use a
    wider volatility than equities.
    """

    MIN_PRICE = 0.01

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        bias: float = TICK_BIAS,
        volatility: dict[str, float] | None = None,
    ) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()
        self._bias = bias
        self._volatility = dict(volatility) if volatility is not None else dict(TICK_VOLATILITY)

    def volatility_for(self, asset_class: str | None) -> float:
        return self._volatility.get(asset_class or EQUITY, self._volatility[EQUITY])

    def step(self, ticker: Ticker, asset_class: str | None, timestamp: int) -> Ticker:
        """Return the next state of `ticker`. Does not touch any store."""
        old_price = ticker.price
        pct = (self._rng.random() - self._bias) * 2 * self.volatility_for(asset_class)
        new_price = max(self.MIN_PRICE, old_price + old_price * pct)

        change = new_price - old_price
        change_percent = change / old_price * 100

        return Ticker(
            symbol=ticker.symbol,
            name=ticker.name,
            price=round(float(new_price), 2),
            change=round(float(change), 2),
            change_percent=round(float(change_percent), 2),
            timestamp=timestamp,
        )


class PriceSimulator:
    """Advances every ticker in a TickerStore on a fixed interval.

    Runs a background asyncio task that calls tick() every `tick_interval`
    seconds. Each tick updates all symbols, writes them to the store as one
    batch, then hands the batch to the registered listener.

    Lifecycle:
        sim = PriceSimulator(store)
        await sim.start(listener)   # Idle -> Running; no-op when Running
        ...
        await sim.stop()            # Running -> Idle; no-op when Idle
    """

    def __init__(
        self,
        store: TickerStore,
        model: RandomWalkModel | None = None,
        generator: HistoryGenerator | None = None,
        tick_interval: float = 3.0,
    ) -> None:
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        self._store = store
        self._model = model or RandomWalkModel()
        self._generator = generator or HistoryGenerator()
        self._interval = tick_interval
        self._listener: BatchListener | None = None
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def tick_interval(self) -> float:
        return self._interval

    async def start(self, listener: BatchListener | None = None) -> None:
        """Begin ticking. The first registered listener stays in place until stop()."""
        if self.is_running:
            logger.debug("Simulator already running; start() ignored")
            return
        self._listener = listener
        self._task = asyncio.create_task(self._run_loop(), name="simulator-loop")
        logger.info(
            "Simulator started with %d tickers, %.3fs interval",
            len(self._store),
            self._interval,
        )

    async def stop(self) -> None:
        """Stop ticking. Safe to call multiple times; no tick fires after return."""
        task, self._task = self._task, None
        self._listener = None
        if task is None:
            return
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Simulator stopped")

    def tick(self) -> list[Ticker]:
        """Advance every ticker once and notify the listener with the full batch.

        Synchronous, so under asyncio it completes without interleaving.
        """
        timestamp = now_ms()
        batch = [
            self._model.step(ticker, self._store.asset_class(ticker.symbol), timestamp)
            for ticker in self._store.get_all()
        ]
        applied = self._store.apply_batch(batch)

        listener = self._listener
        if listener is not None:
            try:
                listener(applied)
            except Exception:
                logger.exception("Batch listener failed")
        return applied

    def generate(self, symbol: str, points: int = 50) -> HistoricalSeries | None:
        """Synthetic long-range series for `symbol`, or None if it is not traded.

        Reads the live price as the anchor; never mutates the store.
        """
        ticker = self._store.get(symbol)
        if ticker is None:
            return None
        return self._generator.generate(
            symbol=symbol,
            anchor_price=ticker.price,
            asset_class=self._store.asset_class(symbol) or EQUITY,
            points=points,
        )

    async def _run_loop(self) -> None:
        """Core loop: sleep, then tick."""
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.tick()
            except Exception:
                logger.exception("Simulator tick failed")
