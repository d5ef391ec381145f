"""WebSocket fan-out of simulator batches to authenticated clients."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket, status
from starlette.websockets import WebSocketDisconnect

from ..auth import TokenError, TokenService, extract_token
from .models import Ticker
from .simulator import PriceSimulator
from .store import TickerStore

logger = logging.getLogger(__name__)

PRICE_UPDATE = "price_update"
SUBSCRIBE = "subscribe"
UNSUBSCRIBE = "unsubscribe"

# Client event -> acknowledgement event
_ACKS = {SUBSCRIBE: "subscribed", UNSUBSCRIBE: "unsubscribed"}


class AdmissionError(Exception):
    """A WebSocket handshake was refused. `reason` is sent in the close frame."""

    close_code = status.WS_1008_POLICY_VIOLATION
    reason = "Connection rejected"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(self.reason if detail is None else f"{self.reason}: {detail}")


class MissingTokenError(AdmissionError):
    reason = "Missing token"


class InvalidTokenError(AdmissionError):
    reason = "Invalid token"


class HubClosedError(AdmissionError):
    close_code = status.WS_1013_TRY_AGAIN_LATER
    reason = "Server closed"


@dataclass(eq=False)
class Connection:
    """One accepted WebSocket client.

    Outbound messages go through a bounded queue drained by a sender task, so
    a slow client never blocks the simulator. When the queue is full the
    oldest message is discarded.
    """

    websocket: WebSocket
    claims: dict[str, Any]
    queue: asyncio.Queue
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    subscriptions: set[str] = field(default_factory=set)
    dropped: int = 0
    sender: asyncio.Task | None = None

    @property
    def username(self) -> str:
        return str(self.claims.get("username", "?"))

    def enqueue(self, message: dict) -> bool:
        """Queue a message for sending. Returns False if an older one was dropped."""
        kept_all = True
        while True:
            try:
                self.queue.put_nowait(message)
                return kept_all
            except asyncio.QueueFull:
                try:
                    self.queue.get_nowait()
                except asyncio.QueueEmpty:
                    continue
                self.dropped += 1
                kept_all = False


class BroadcastHub:
    """Admits authenticated WebSocket clients and relays every tick to all of them.

    Lifecycle:
        hub = BroadcastHub(store, simulator, tokens)
        await hub.start()           # registers publish() with the simulator
        await hub.serve(websocket)  # one call per incoming connection
        await hub.close()           # stops the simulator, disconnects everyone

    All methods must be called from the event loop that runs the simulator.
    Subscriptions are recorded and acknowledged but do not filter what a
    connection receives.
    """

    def __init__(
        self,
        store: TickerStore,
        simulator: PriceSimulator,
        tokens: TokenService,
        send_queue_size: int = 32,
    ) -> None:
        if send_queue_size <= 0:
            raise ValueError("send_queue_size must be positive")
        self._store = store
        self._simulator = simulator
        self._tokens = tokens
        self._queue_size = send_queue_size
        self._connections: dict[str, Connection] = {}
        self._closed = False

    # --- Lifecycle ---

    async def start(self) -> None:
        if self._closed:
            raise RuntimeError("BroadcastHub is closed")
        await self._simulator.start(self.publish)

    async def close(self) -> None:
        """Stop the simulator and disconnect every client. Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self._simulator.stop()

        connections = list(self._connections.values())
        self._connections.clear()
        for conn in connections:
            await self._terminate(conn, status.WS_1001_GOING_AWAY, "Server shutting down")
        logger.info("Broadcast hub closed (%d connections terminated)", len(connections))

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    # --- Fan-out ---

    def publish(self, batch: list[Ticker]) -> None:
        """Simulator listener: queue one price_update for every live connection."""
        if self._closed:
            return
        message = _price_update(batch)
        for conn in list(self._connections.values()):
            if not conn.enqueue(message):
                logger.warning(
                    "Slow consumer %s: dropped oldest queued message (%d dropped so far)",
                    conn.id,
                    conn.dropped,
                )

    # --- Connections ---

    def authenticate(self, websocket: WebSocket) -> dict[str, Any]:
        """Return the verified token claims for a handshake, or raise AdmissionError."""
        if self._closed:
            raise HubClosedError()
        token = extract_token(websocket.headers, websocket.query_params)
        if token is None:
            raise MissingTokenError()
        try:
            return self._tokens.verify(token)
        except TokenError as e:
            raise InvalidTokenError(str(e)) from e

    async def serve(self, websocket: WebSocket) -> None:
        """Handle one WebSocket from handshake to disconnect.

        Rejected handshakes are accepted and then closed, because an ASGI
        server turns a close before accept into a bare HTTP 403 and the
        client never sees the reason.
        """
        client = _client_label(websocket)
        await websocket.accept()
        try:
            claims = self.authenticate(websocket)
        except AdmissionError as e:
            logger.info("WebSocket rejected from %s: %s", client, e)
            await websocket.close(code=e.close_code, reason=e.reason)
            return

        conn = Connection(
            websocket=websocket,
            claims=claims,
            queue=asyncio.Queue(maxsize=self._queue_size),
        )
        # Snapshot goes first so the client never sees a delta before the full state
        conn.enqueue(_price_update(self._store.get_all()))
        conn.sender = asyncio.create_task(self._pump(conn), name=f"ws-sender-{conn.id}")
        self._connections[conn.id] = conn
        logger.info(
            "Client connected: %s (%s, user=%s, total=%d)",
            conn.id,
            client,
            conn.username,
            len(self._connections),
        )

        try:
            await self._receive_loop(conn)
        finally:
            await self._drop(conn)

    def handle_message(self, conn: Connection, raw: str) -> dict | None:
        """Process one client frame. Returns the reply that was queued, if any."""
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed message from %s", conn.id)
            return None
        if not isinstance(message, dict):
            logger.warning("Ignoring non-object message from %s", conn.id)
            return None

        event = message.get("type")
        payload = message.get("data")
        if not isinstance(event, str):
            logger.warning("Ignoring message without a string type from %s", conn.id)
            return None
        ack = _ACKS.get(event)
        if ack is None:
            logger.debug("Ignoring unknown event %r from %s", event, conn.id)
            return None

        symbols = _symbols_in(payload)
        if event == SUBSCRIBE:
            conn.subscriptions |= symbols
        else:
            conn.subscriptions -= symbols
        logger.info("%s request from %s: %s", event.capitalize(), conn.id, payload)

        reply = {"type": ack, "data": {"success": True, "data": payload}}
        conn.enqueue(reply)
        return reply

    # --- Internals ---

    async def _receive_loop(self, conn: Connection) -> None:
        while True:
            try:
                message = await conn.websocket.receive()
            except WebSocketDisconnect:
                return
            if message["type"] == "websocket.disconnect":
                return
            raw = message.get("text")
            if raw is None and message.get("bytes") is not None:
                raw = message["bytes"].decode("utf-8", errors="replace")
            if raw is not None:
                self.handle_message(conn, raw)

    async def _pump(self, conn: Connection) -> None:
        """Sender task: drain the connection's queue onto the socket."""
        while True:
            message = await conn.queue.get()
            try:
                await conn.websocket.send_json(message)
            except Exception as e:
                logger.info("Send to %s failed (%s); dropping connection", conn.id, e)
                self._connections.pop(conn.id, None)
                # Closing ends the receive loop in serve(), which finishes the cleanup
                try:
                    await conn.websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="Send failed")
                except Exception as close_error:
                    logger.debug("Close of %s failed: %s", conn.id, close_error)
                return

    async def _drop(self, conn: Connection) -> None:
        if self._connections.pop(conn.id, None) is not None:
            logger.info("Client disconnected: %s (total=%d)", conn.id, len(self._connections))
        await _cancel(conn.sender)

    async def _terminate(self, conn: Connection, code: int, reason: str) -> None:
        await _cancel(conn.sender)
        try:
            await conn.websocket.close(code=code, reason=reason)
        except Exception as e:
            # Client already gone; nothing left to close
            logger.debug("Close of %s failed: %s", conn.id, e)


def _price_update(tickers: list[Ticker]) -> dict:
    return {"type": PRICE_UPDATE, "data": [ticker.to_dict() for ticker in tickers]}


def _symbols_in(payload: Any) -> set[str]:
    """Symbols named by a subscribe payload: "AAPL", ["AAPL"], or {"symbols": [...]}."""
    if isinstance(payload, dict):
        payload = payload.get("symbols", payload.get("symbol"))
    if isinstance(payload, str):
        payload = [payload]
    if not isinstance(payload, list):
        return set()
    return {item.strip().upper() for item in payload if isinstance(item, str) and item.strip()}


def _client_label(websocket: WebSocket) -> str:
    client = websocket.client
    return f"{client.host}:{client.port}" if client else "unknown"


async def _cancel(task: asyncio.Task | None) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
