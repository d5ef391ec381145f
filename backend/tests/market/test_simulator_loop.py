"""Integration tests for PriceSimulator's background tick loop."""

import asyncio

import pytest

from ticker_stream.market.seed_tickers import DEFAULT_TICKERS
from ticker_stream.market.simulator import PriceSimulator


@pytest.mark.asyncio
class TestPriceSimulatorLoop:
    """Integration tests for start()/stop() and the tick cadence."""

    async def test_start_runs_ticks(self, store):
        """Test that ticks fire periodically after start()."""
        batches = []
        sim = PriceSimulator(store, tick_interval=0.02)
        await sim.start(batches.append)

        await asyncio.sleep(0.15)  # Several tick cycles
        await sim.stop()

        assert len(batches) >= 2
        assert all(len(batch) == len(DEFAULT_TICKERS) for batch in batches)
        assert len(store.recent_history("AAPL", 100)) == len(batches)

    async def test_state_machine(self, store):
        sim = PriceSimulator(store, tick_interval=0.05)
        assert sim.is_running is False

        await sim.start()
        assert sim.is_running is True

        await sim.stop()
        assert sim.is_running is False

    async def test_start_twice_keeps_first_listener(self, store):
        """A second start() is a no-op: only the first callback ever fires."""
        first, second = [], []
        sim = PriceSimulator(store, tick_interval=0.02)
        await sim.start(first.append)
        task = sim._task
        await sim.start(second.append)

        assert sim._task is task  # Still a single loop
        await asyncio.sleep(0.1)
        await sim.stop()

        assert len(first) >= 1
        assert second == []

    async def test_stop_is_clean(self, store):
        """Test that stop() is clean and idempotent."""
        sim = PriceSimulator(store, tick_interval=0.05)
        await sim.start()
        await sim.stop()
        # Double stop should not raise
        await sim.stop()

    async def test_stop_when_never_started(self, store):
        sim = PriceSimulator(store)
        await sim.stop()  # Should not raise
        assert sim.is_running is False

    async def test_no_ticks_after_stop(self, store):
        batches = []
        sim = PriceSimulator(store, tick_interval=0.01)
        await sim.start(batches.append)
        await asyncio.sleep(0.05)
        await sim.stop()

        count = len(batches)
        await asyncio.sleep(0.05)
        assert len(batches) == count

    async def test_restart_after_stop(self, store):
        first, second = [], []
        sim = PriceSimulator(store, tick_interval=0.02)
        await sim.start(first.append)
        await sim.stop()

        await sim.start(second.append)
        await asyncio.sleep(0.08)
        await sim.stop()

        assert len(second) >= 1

    async def test_exception_resilience(self, store):
        """Test that the loop keeps running after a listener error."""
        calls = []

        def flaky(batch):
            calls.append(batch)
            raise RuntimeError("boom")

        sim = PriceSimulator(store, tick_interval=0.02)
        await sim.start(flaky)
        await asyncio.sleep(0.12)

        # Task should still be running
        assert sim._task is not None
        assert not sim._task.done()
        assert len(calls) >= 2

        await sim.stop()
