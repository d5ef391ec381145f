"""Tests for TickerStore."""

import dataclasses

import pytest

from ticker_stream.market.models import Ticker
from ticker_stream.market.seed_tickers import CRYPTO, DEFAULT_TICKERS, EQUITY, TickerConfig
from ticker_stream.market.store import TickerStore


def _tick(store: TickerStore, symbol: str, price: float, timestamp: int) -> Ticker:
    current = store.get(symbol)
    return dataclasses.replace(current, price=price, timestamp=timestamp)


class TestTickerStore:
    """Unit tests for the TickerStore."""

    def test_initial_tickers_from_table(self, store):
        """Every configured symbol starts at its base price with no change."""
        tickers = store.get_all()
        assert [t.symbol for t in tickers] == [c.symbol for c in DEFAULT_TICKERS]
        for ticker, config in zip(tickers, DEFAULT_TICKERS):
            assert ticker.name == config.name
            assert ticker.price == config.base_price
            assert ticker.change == 0
            assert ticker.change_percent == 0

    def test_get_exact_match(self, store):
        assert store.get("AAPL").symbol == "AAPL"
        assert store.get("aapl") is None
        assert store.get("NOPE") is None

    def test_contains_and_len(self, store):
        assert "BTC-USD" in store
        assert "ETH" not in store
        assert len(store) == len(DEFAULT_TICKERS)

    def test_asset_class(self, store):
        assert store.asset_class("AAPL") == EQUITY
        assert store.asset_class("BTC") == CRYPTO
        assert store.asset_class("NOPE") is None

    def test_get_all_is_snapshot(self, store):
        snapshot = store.get_all()
        store.apply_update("AAPL", _tick(store, "AAPL", 180.0, snapshot[0].timestamp + 10))
        assert snapshot[0].price == 175.50

    def test_apply_update_replaces_and_records(self, store):
        start = store.get("AAPL").timestamp
        store.apply_update("AAPL", _tick(store, "AAPL", 176.25, start + 1000))

        assert store.get("AAPL").price == 176.25
        history = store.recent_history("AAPL", 10)
        assert len(history) == 1
        assert history[0].price == 176.25
        assert history[0].timestamp == start + 1000
        assert history[0].volume is None

    def test_apply_update_unknown_symbol(self, store):
        ticker = Ticker(symbol="ZZZ", name="Nope", price=1.0)
        with pytest.raises(KeyError):
            store.apply_update("ZZZ", ticker)

    def test_apply_update_symbol_mismatch(self, store):
        with pytest.raises(ValueError):
            store.apply_update("TSLA", store.get("AAPL"))

    def test_history_bounded_to_capacity(self, store):
        """After more than 100 updates only the 100 most recent remain, oldest first."""
        start = store.get("AAPL").timestamp
        for i in range(150):
            store.apply_update("AAPL", _tick(store, "AAPL", 100.0 + i, start + 1 + i))

        history = store.recent_history("AAPL", 1000)
        assert len(history) == 100
        assert [p.price for p in history] == [100.0 + i for i in range(50, 150)]
        timestamps = [p.timestamp for p in history]
        assert timestamps == sorted(timestamps)

    def test_custom_capacity(self):
        store = TickerStore(DEFAULT_TICKERS, history_capacity=3)
        start = store.get("TSLA").timestamp
        for i in range(5):
            store.apply_update("TSLA", _tick(store, "TSLA", 200.0 + i, start + 1 + i))
        assert [p.price for p in store.recent_history("TSLA", 10)] == [202.0, 203.0, 204.0]

    def test_recent_history_limit(self, store):
        start = store.get("AAPL").timestamp
        for i in range(30):
            store.apply_update("AAPL", _tick(store, "AAPL", 100.0 + i, start + 1 + i))

        recent = store.recent_history("AAPL", 5)
        assert [p.price for p in recent] == [125.0, 126.0, 127.0, 128.0, 129.0]

    def test_recent_history_unknown_symbol_is_empty(self, store):
        assert store.recent_history("NOPE", 20) == []

    def test_recent_history_non_positive_limit(self, store):
        start = store.get("AAPL").timestamp
        store.apply_update("AAPL", _tick(store, "AAPL", 180.0, start + 1))
        assert store.recent_history("AAPL", 0) == []
        assert store.recent_history("AAPL", -3) == []

    def test_timestamps_forced_strictly_increasing(self, store):
        """An update stamped at or before the last point is bumped forward by 1ms."""
        start = store.get("AAPL").timestamp
        store.apply_update("AAPL", _tick(store, "AAPL", 180.0, start + 5))
        stored = store.apply_update("AAPL", _tick(store, "AAPL", 181.0, start + 5))

        assert stored.timestamp == start + 6
        assert store.get("AAPL").timestamp == start + 6
        history = store.recent_history("AAPL", 10)
        assert [p.timestamp for p in history] == [start + 5, start + 6]

    def test_apply_batch(self, store):
        start = store.get_all()[0].timestamp
        batch = [dataclasses.replace(t, price=t.price + 1, timestamp=start + 1) for t in store.get_all()]
        applied = store.apply_batch(batch)

        assert [t.symbol for t in applied] == store.symbols()
        for config in DEFAULT_TICKERS:
            assert store.get(config.symbol).price == config.base_price + 1
            assert len(store.recent_history(config.symbol, 10)) == 1

    def test_duplicate_symbol_rejected(self):
        configs = [TickerConfig("AAPL", "Apple", 1.0), TickerConfig("AAPL", "Apple", 2.0)]
        with pytest.raises(ValueError):
            TickerStore(configs)

    def test_non_positive_base_price_rejected(self):
        with pytest.raises(ValueError):
            TickerStore([TickerConfig("AAPL", "Apple", 0.0)])
