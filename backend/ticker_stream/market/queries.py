"""Read-side façade used by the HTTP routes."""

from __future__ import annotations

import logging

from ..errors import TickerNotFoundError
from .cache import TTLCache
from .models import HistoricalSeries, Ticker
from .simulator import PriceSimulator
from .store import TickerStore

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_POINTS = 50
DEFAULT_RECENT_LIMIT = 20


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def history_cache_key(symbol: str, points: int) -> str:
    return f"history:{symbol}:{points}"


class MarketQueries:
    """Current prices, recent history and cached long-range series.

    The only writer to the TTL cache. Symbols are uppercased here, so the
    store and the cache always see canonical keys.
    """

    def __init__(
        self,
        store: TickerStore,
        simulator: PriceSimulator,
        cache: TTLCache,
        cache_ttl_ms: int = 5 * 60 * 1000,
    ) -> None:
        self._store = store
        self._simulator = simulator
        self._cache = cache
        self._cache_ttl_ms = cache_ttl_ms

    def list_tickers(self) -> list[Ticker]:
        return self._store.get_all()

    def get_ticker(self, symbol: str) -> Ticker:
        ticker = self._store.get(normalize_symbol(symbol))
        if ticker is None:
            raise TickerNotFoundError(symbol)
        return ticker

    def get_history(self, symbol: str, points: int = DEFAULT_HISTORY_POINTS) -> dict:
        """Generated series for `symbol`, served from cache while fresh.

        Returns {"symbol", "data", "cached"}; raises TickerNotFoundError.
        """
        symbol = normalize_symbol(symbol)
        key = history_cache_key(symbol, points)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("History cache hit: %s", key)
            return {**cached.to_dict(), "cached": True}

        series: HistoricalSeries | None = self._simulator.generate(symbol, points)
        if series is None:
            raise TickerNotFoundError(symbol)

        self._cache.set(key, series, self._cache_ttl_ms)
        logger.debug("History cache miss: %s (%d points generated)", key, len(series))
        return {**series.to_dict(), "cached": False}

    def get_recent(self, symbol: str, limit: int = DEFAULT_RECENT_LIMIT) -> dict:
        """Last `limit` live points. Unknown symbols yield empty data, never an error."""
        symbol = normalize_symbol(symbol)
        points = self._store.recent_history(symbol, limit)
        return {"symbol": symbol, "data": [point.to_dict() for point in points]}
