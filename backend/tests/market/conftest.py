"""Fixtures for market data tests.

Provides an in-memory stand-in for a Starlette WebSocket so the broadcast hub
can be exercised without running a server.
"""

import asyncio
from types import SimpleNamespace

import pytest


class FakeWebSocket:
    """Records what the hub does to a socket and feeds it client frames."""

    def __init__(self, headers=None, query_params=None, send_delay: float = 0.0) -> None:
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.query_params = dict(query_params or {})
        self.client = SimpleNamespace(host="127.0.0.1", port=50000)
        self.accepted = False
        self.calls: list[str] = []
        self.closed = False
        self.close_code = None
        self.close_reason = None
        self.sent: list[dict] = []
        self.send_delay = send_delay
        self.fail_sends = False
        self._inbound: asyncio.Queue = asyncio.Queue()

    # --- Server side (called by the hub) ---

    async def accept(self) -> None:
        self.accepted = True
        self.calls.append("accept")

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        if self.closed:
            raise RuntimeError("Cannot call close twice")
        self.closed = True
        self.calls.append("close")
        self.close_code = code
        self.close_reason = reason
        self._inbound.put_nowait({"type": "websocket.disconnect", "code": code})

    async def send_json(self, message: dict) -> None:
        if self.fail_sends:
            raise ConnectionResetError("peer went away")
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        self.sent.append(message)

    async def receive(self) -> dict:
        return await self._inbound.get()

    # --- Client side (called by tests) ---

    def client_send(self, text: str) -> None:
        self._inbound.put_nowait({"type": "websocket.receive", "text": text})

    def client_disconnect(self) -> None:
        self._inbound.put_nowait({"type": "websocket.disconnect", "code": 1000})

    def sent_of_type(self, event: str) -> list[dict]:
        return [m for m in self.sent if m.get("type") == event]


@pytest.fixture
def make_socket():
    """Factory for FakeWebSocket instances."""
    return FakeWebSocket
