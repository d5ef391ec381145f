"""Ticker read endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from ..auth import TokenService
from ..errors import InternalServiceError, ServiceError
from ..market.queries import DEFAULT_HISTORY_POINTS, DEFAULT_RECENT_LIMIT, MarketQueries
from .deps import lenient_int, optional_auth

logger = logging.getLogger(__name__)


def create_tickers_router(
    queries: MarketQueries,
    tokens: TokenService,
    max_history_points: int = 5000,
) -> APIRouter:
    """Create the /api/tickers router bound to a MarketQueries instance.

    Authentication is optional on every route; a valid token only adds the
    username to the debug log.
    """
    router = APIRouter(prefix="/api", tags=["tickers"])
    claims_dependency = optional_auth(tokens)

    @router.get("/tickers")
    async def list_tickers(claims: dict[str, Any] | None = Depends(claims_dependency)) -> dict:
        try:
            tickers = queries.list_tickers()
        except Exception:
            logger.exception("Failed to list tickers")
            raise InternalServiceError("Failed to fetch tickers")
        _log_access("tickers", claims)
        return {"tickers": [ticker.to_dict() for ticker in tickers]}

    @router.get("/tickers/{symbol}")
    async def get_ticker(
        symbol: str,
        claims: dict[str, Any] | None = Depends(claims_dependency),
    ) -> dict:
        try:
            ticker = queries.get_ticker(symbol)
        except ServiceError:
            raise
        except Exception:
            logger.exception("Failed to fetch ticker %s", symbol)
            raise InternalServiceError("Failed to fetch ticker")
        _log_access(f"tickers/{ticker.symbol}", claims)
        return {"ticker": ticker.to_dict()}

    @router.get("/tickers/{symbol}/history")
    async def get_history(
        symbol: str,
        points: str | None = None,
        claims: dict[str, Any] | None = Depends(claims_dependency),
    ) -> dict:
        count = lenient_int(points, DEFAULT_HISTORY_POINTS, maximum=max_history_points)
        try:
            return queries.get_history(symbol, count)
        except ServiceError:
            raise
        except Exception:
            logger.exception("Failed to build history for %s", symbol)
            raise InternalServiceError("Failed to fetch historical data")

    @router.get("/tickers/{symbol}/recent")
    async def get_recent(
        symbol: str,
        limit: str | None = None,
        claims: dict[str, Any] | None = Depends(claims_dependency),
    ) -> dict:
        count = lenient_int(limit, DEFAULT_RECENT_LIMIT)
        try:
            return queries.get_recent(symbol, count)
        except Exception:
            logger.exception("Failed to fetch recent data for %s", symbol)
            raise InternalServiceError("Failed to fetch recent data")

    return router


def _log_access(resource: str, claims: dict[str, Any] | None) -> None:
    if claims is not None:
        logger.debug("%s read by %s", resource, claims.get("username"))
