"""Static ticker table and per-asset-class parameters for the simulator."""

from __future__ import annotations

from dataclasses import dataclass

EQUITY = "equity"
CRYPTO = "crypto"


@dataclass(frozen=True, slots=True)
class TickerConfig:
    """Startup configuration for one tradable symbol."""

    symbol: str
    name: str
    base_price: float
    asset_class: str = EQUITY


# Default tradable universe. Loaded once at startup; symbols never change at runtime.
DEFAULT_TICKERS: tuple[TickerConfig, ...] = (
    TickerConfig("AAPL", "Apple Inc.", 175.50),
    TickerConfig("TSLA", "Tesla Inc.", 242.80),
    TickerConfig("BTC-USD", "Bitcoin USD", 37500.00, CRYPTO),
    TickerConfig("BTC", "Bitcoin", 92330.00, CRYPTO),
)

# Live tick model: fraction of price a single tick can move (before the 2x spread)
TICK_VOLATILITY: dict[str, float] = {
    EQUITY: 0.001,
    CRYPTO: 0.003,  # Crypto moves ~3x as much per tick
}

# Fraction of the draw subtracted from rand() on each tick.
# Below 0.5 the walk drifts upward.
TICK_BIAS = 0.2

# Long-range series generator: base per-step volatility
SERIES_VOLATILITY: dict[str, float] = {
    EQUITY: 0.008,
    CRYPTO: 0.015,
}

# Sampling interval bands for generated series: (max points, interval ms)
SERIES_INTERVAL_BANDS: tuple[tuple[int, int], ...] = (
    (100, 60_000),  # 1 minute
    (500, 20 * 60_000),  # 20 minutes
    (1000, 45 * 60_000),  # 45 minutes
)
SERIES_COARSEST_INTERVAL = 2 * 60 * 60_000  # 2 hours beyond 1000 points
