"""HTTP and WebSocket routers. Each factory takes the components it serves."""

from .auth import create_auth_router
from .stream import create_stream_router
from .tickers import create_tickers_router

__all__ = [
    "create_auth_router",
    "create_stream_router",
    "create_tickers_router",
]
