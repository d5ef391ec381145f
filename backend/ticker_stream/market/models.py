"""Data models for market data."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


def now_ms() -> int:
    """Current wall-clock time as Unix epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class Ticker:
    """Immutable snapshot of a single symbol's live price."""

    symbol: str
    name: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    timestamp: int = field(default_factory=now_ms)  # Unix milliseconds

    @property
    def previous_price(self) -> float:
        """Price before the last tick."""
        return round(self.price - self.change, 2)

    @property
    def direction(self) -> str:
        """'up', 'down', or 'flat'."""
        if self.change > 0:
            return "up"
        elif self.change < 0:
            return "down"
        return "flat"

    def to_dict(self) -> dict:
        """Serialize for JSON / WebSocket transmission."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class HistoryPoint:
    """One sample of a price series."""

    timestamp: int
    price: float
    volume: int | None = None

    def to_dict(self) -> dict:
        data: dict = {"timestamp": self.timestamp, "price": self.price}
        if self.volume is not None:
            data["volume"] = self.volume
        return data


@dataclass(frozen=True, slots=True)
class HistoricalSeries:
    """A generated price series for one symbol, oldest point first."""

    symbol: str
    data: tuple[HistoryPoint, ...] = ()

    def __len__(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "data": [point.to_dict() for point in self.data],
        }
