"""WebSocket endpoint for live price updates."""

from __future__ import annotations

from fastapi import APIRouter, WebSocket

from ..market.hub import BroadcastHub


def create_stream_router(hub: BroadcastHub) -> APIRouter:
    """Create the streaming router with a reference to the broadcast hub.

    Clients connect to ``/ws/`` with a token in the ``Authorization: Bearer``
    header or a ``?token=`` query parameter and receive:

        {"type": "price_update", "data": [{"symbol": "AAPL", "price": 175.62, ...}, ...]}

    once on connect and again after every simulator tick.
    """
    router = APIRouter(tags=["streaming"])

    @router.websocket("/ws/")
    @router.websocket("/ws")
    async def stream_prices(websocket: WebSocket) -> None:
        await hub.serve(websocket)

    return router
