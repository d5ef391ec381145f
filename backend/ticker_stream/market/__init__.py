"""Market data subsystem for the ticker stream.

Public API:
    Ticker, HistoryPoint, HistoricalSeries - Immutable price records
    TickerConfig, DEFAULT_TICKERS          - Static ticker table
    TTLCache                               - Thread-safe cache with per-entry expiry
    TickerStore                            - Live tickers + bounded rolling history
    PriceSimulator                         - Tick loop and series generator
    BroadcastHub                           - WebSocket fan-out with handshake auth
    MarketQueries                          - Read-side façade for the HTTP routes
"""

from .cache import TTLCache, run_cache_sweeper
from .history import HistoryGenerator
from .hub import BroadcastHub
from .models import HistoricalSeries, HistoryPoint, Ticker
from .queries import MarketQueries
from .seed_tickers import DEFAULT_TICKERS, TickerConfig
from .simulator import PriceSimulator, RandomWalkModel
from .store import TickerStore

__all__ = [
    "Ticker",
    "HistoryPoint",
    "HistoricalSeries",
    "TickerConfig",
    "DEFAULT_TICKERS",
    "TTLCache",
    "run_cache_sweeper",
    "TickerStore",
    "RandomWalkModel",
    "HistoryGenerator",
    "PriceSimulator",
    "BroadcastHub",
    "MarketQueries",
]
