"""Thread-safe store of live tickers and their rolling price history."""

from __future__ import annotations

import dataclasses
from collections import deque
from collections.abc import Iterable
from threading import Lock

from .models import HistoryPoint, Ticker, now_ms
from .seed_tickers import TickerConfig

DEFAULT_HISTORY_CAPACITY = 100


class TickerStore:
    """Current state for a fixed set of symbols plus a bounded history per symbol.

    Writers: PriceSimulator only (one tick at a time).
    Readers: BroadcastHub snapshots, MarketQueries, PriceSimulator.generate().

    Symbols are fixed at construction and never removed. Lookups are exact
    match; callers normalize case.
    """

    def __init__(
        self,
        configs: Iterable[TickerConfig],
        history_capacity: int = DEFAULT_HISTORY_CAPACITY,
    ) -> None:
        if history_capacity <= 0:
            raise ValueError("history_capacity must be positive")
        self._lock = Lock()
        self._tickers: dict[str, Ticker] = {}
        self._history: dict[str, deque[HistoryPoint]] = {}
        self._asset_classes: dict[str, str] = {}
        self._capacity = history_capacity

        created = now_ms()
        for config in configs:
            if config.symbol in self._tickers:
                raise ValueError(f"Duplicate symbol in ticker table: {config.symbol}")
            if config.base_price <= 0:
                raise ValueError(f"Base price must be positive: {config.symbol}")
            self._tickers[config.symbol] = Ticker(
                symbol=config.symbol,
                name=config.name,
                price=config.base_price,
                timestamp=created,
            )
            self._history[config.symbol] = deque(maxlen=history_capacity)
            self._asset_classes[config.symbol] = config.asset_class

    # --- Reads ---

    def get_all(self) -> list[Ticker]:
        """Snapshot of all tickers in table order."""
        with self._lock:
            return list(self._tickers.values())

    def get(self, symbol: str) -> Ticker | None:
        with self._lock:
            return self._tickers.get(symbol)

    def symbols(self) -> list[str]:
        with self._lock:
            return list(self._tickers)

    def asset_class(self, symbol: str) -> str | None:
        return self._asset_classes.get(symbol)

    def recent_history(self, symbol: str, limit: int) -> list[HistoryPoint]:
        """Last `limit` points for `symbol`, oldest first. Unknown symbols yield []."""
        if limit <= 0:
            return []
        with self._lock:
            history = self._history.get(symbol)
            if not history:
                return []
            return list(history)[-limit:]

    @property
    def history_capacity(self) -> int:
        return self._capacity

    # --- Writes ---

    def apply_update(self, symbol: str, ticker: Ticker) -> Ticker:
        """Replace the stored ticker and append its price to the rolling history.

        Returns the ticker as stored, whose timestamp may have been bumped to
        keep history timestamps strictly increasing.
        """
        with self._lock:
            return self._apply_locked(symbol, ticker)

    def apply_batch(self, tickers: Iterable[Ticker]) -> list[Ticker]:
        """Apply one tick's worth of updates atomically with respect to readers."""
        with self._lock:
            return [self._apply_locked(ticker.symbol, ticker) for ticker in tickers]

    def _apply_locked(self, symbol: str, ticker: Ticker) -> Ticker:
        if symbol not in self._tickers:
            raise KeyError(symbol)
        if ticker.symbol != symbol:
            raise ValueError(f"Ticker symbol {ticker.symbol!r} does not match {symbol!r}")

        history = self._history[symbol]
        if history and ticker.timestamp <= history[-1].timestamp:
            ticker = dataclasses.replace(ticker, timestamp=history[-1].timestamp + 1)

        self._tickers[symbol] = ticker
        # deque(maxlen) evicts the oldest point once at capacity
        history.append(HistoryPoint(timestamp=ticker.timestamp, price=ticker.price))
        return ticker

    def __len__(self) -> int:
        with self._lock:
            return len(self._tickers)

    def __contains__(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._tickers
