"""Synthetic long-range price series generator."""

from __future__ import annotations

import numpy as np

from .models import HistoricalSeries, HistoryPoint, now_ms
from .seed_tickers import (
    EQUITY,
    SERIES_COARSEST_INTERVAL,
    SERIES_INTERVAL_BANDS,
    SERIES_VOLATILITY,
)


class HistoryGenerator:
    """Regime-switching random walk that back-fills a plausible price history.

    The walk starts below the live price and is anchored to it:

        price(0)    = anchor * start_ratio
        change(t)   = U[-1, 1) * vol(t) + direction * strength  [+ event]
        price(t+1)  = clamp(price(t) * (1 + change(t)), anchor * floor, anchor * ceiling)

    Where:
        vol(t)      = base asset-class volatility * U[0.5, 2.0)
        direction   = +1 / -1, re-rolled with an upward bias when the current
                      regime runs out (or at random, 5% per step)
        strength    = U[0, max_trend_strength)
        event       = (U[0, 1) - 0.3) * 0.04 with 3% probability per step

    Timestamps step backward from `now` at an interval chosen from the
    requested number of points, so output is oldest first.
    """

    START_RATIO = 0.85
    FLOOR_RATIO = 0.5
    CEILING_RATIO = 1.3

    REGIME_SWITCH_PROBABILITY = 0.05
    UP_REGIME_PROBABILITY = 0.6
    MAX_TREND_STRENGTH = 0.0003
    MIN_REGIME_LENGTH = 20
    MAX_REGIME_LENGTH = 70  # exclusive

    EVENT_PROBABILITY = 0.03
    EVENT_SKEW = 0.3
    EVENT_SCALE = 0.04

    MIN_VOLUME = 100_000
    MAX_VOLUME = 1_100_000  # exclusive

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        event_probability: float = EVENT_PROBABILITY,
    ) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()
        self._event_prob = event_probability

    @staticmethod
    def interval_for(points: int) -> int:
        """Sampling interval in milliseconds for a series of `points` samples."""
        for max_points, interval in SERIES_INTERVAL_BANDS:
            if points <= max_points:
                return interval
        return SERIES_COARSEST_INTERVAL

    def generate(
        self,
        symbol: str,
        anchor_price: float,
        asset_class: str = EQUITY,
        points: int = 50,
        now: int | None = None,
    ) -> HistoricalSeries:
        """Build `points` samples ending at `now` (ms), anchored to `anchor_price`."""
        if points <= 0:
            return HistoricalSeries(symbol=symbol)
        if anchor_price <= 0:
            raise ValueError("anchor_price must be positive")

        rng = self._rng
        end = now if now is not None else now_ms()
        interval = self.interval_for(points)
        base_volatility = SERIES_VOLATILITY.get(asset_class, SERIES_VOLATILITY[EQUITY])
        min_price = anchor_price * self.FLOOR_RATIO
        max_price = anchor_price * self.CEILING_RATIO

        price = anchor_price * self.START_RATIO
        direction = 1 if rng.random() > 0.5 else -1
        strength = 0.0
        remaining = 0

        data: list[HistoryPoint] = []
        for i in range(points - 1, -1, -1):
            if remaining <= 0 or rng.random() < self.REGIME_SWITCH_PROBABILITY:
                direction = 1 if rng.random() < self.UP_REGIME_PROBABILITY else -1
                strength = rng.random() * self.MAX_TREND_STRENGTH
                remaining = int(rng.integers(self.MIN_REGIME_LENGTH, self.MAX_REGIME_LENGTH))
            remaining -= 1

            volatility = base_volatility * (0.5 + rng.random() * 1.5)
            change = (rng.random() - 0.5) * 2 * volatility
            change += direction * strength

            # Market event: sudden jump, skewed upward
            if rng.random() < self._event_prob:
                change += (rng.random() - self.EVENT_SKEW) * self.EVENT_SCALE

            price = min(max_price, max(min_price, price * (1 + change)))

            data.append(
                HistoryPoint(
                    timestamp=end - i * interval,
                    price=round(float(price), 2),
                    volume=int(rng.integers(self.MIN_VOLUME, self.MAX_VOLUME)),
                )
            )

        return HistoricalSeries(symbol=symbol, data=tuple(data))
