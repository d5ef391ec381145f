"""Composition root: builds the market components and the FastAPI app."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import create_auth_router, create_stream_router, create_tickers_router
from .auth import TokenService, UserDirectory
from .config import Settings
from .errors import ServiceError
from .logging_utils import setup_logging
from .market import (
    DEFAULT_TICKERS,
    BroadcastHub,
    MarketQueries,
    PriceSimulator,
    TickerConfig,
    TickerStore,
    TTLCache,
    run_cache_sweeper,
)

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the app wires together. One instance per app, no globals."""

    settings: Settings
    store: TickerStore
    cache: TTLCache
    simulator: PriceSimulator
    hub: BroadcastHub
    queries: MarketQueries
    tokens: TokenService
    users: UserDirectory


def build_services(
    settings: Settings,
    tickers: Iterable[TickerConfig] = DEFAULT_TICKERS,
) -> Services:
    """Construct components in dependency order: store, simulator, hub, queries."""
    store = TickerStore(tickers, history_capacity=settings.history_capacity)
    simulator = PriceSimulator(store, tick_interval=settings.tick_interval)
    tokens = TokenService(settings.jwt_secret, expires_in=settings.token_ttl_seconds)
    hub = BroadcastHub(store, simulator, tokens, send_queue_size=settings.send_queue_size)
    cache = TTLCache()
    queries = MarketQueries(store, simulator, cache, cache_ttl_ms=settings.cache_ttl_ms)
    return Services(
        settings=settings,
        store=store,
        cache=cache,
        simulator=simulator,
        hub=hub,
        queries=queries,
        tokens=tokens,
        users=UserDirectory.with_demo_user(),
    )


def create_app(
    settings: Settings | None = None,
    tickers: Iterable[TickerConfig] = DEFAULT_TICKERS,
) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)
    services = build_services(settings, tickers)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await services.hub.start()
        sweeper = asyncio.create_task(
            run_cache_sweeper(services.cache, settings.cache_sweep_interval),
            name="cache-sweeper",
        )
        logger.info(
            "Ticker stream ready (env=%s, %d tickers, tick=%dms)",
            settings.app_env,
            len(services.store),
            settings.tick_interval_ms,
        )
        try:
            yield
        finally:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
            await services.hub.close()
            logger.info("Ticker stream shut down")

    app = FastAPI(title="Ticker Stream API", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info("%s %s -> %d", request.method, request.url.path, response.status_code)
        return response

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid request"})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(create_auth_router(services.tokens, services.users))
    app.include_router(
        create_tickers_router(
            services.queries,
            services.tokens,
            max_history_points=settings.max_history_points,
        )
    )
    app.include_router(create_stream_router(services.hub))
    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
