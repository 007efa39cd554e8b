"""Websocket server that passes client requests to a protocol handler."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable

import websockets
from websockets.exceptions import ConnectionClosed

from .protocol import HabdecMessage

log = logging.getLogger(__name__)

RequestHandler = Callable[[str], "list[HabdecMessage]"]


def _frame(message: HabdecMessage) -> str | bytes:
    """Return the websocket frame for ``message``: bytes for binary, text otherwise."""
    payload = message.payload
    if message.is_binary:
        return payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload).decode("utf-8", errors="replace")
    return payload


class _Session:
    """One connected client with its own ordered outgoing queue."""

    def __init__(self, websocket) -> None:
        self.websocket = websocket
        self.queue: asyncio.Queue[HabdecMessage] = asyncio.Queue()

    def send(self, message: HabdecMessage) -> None:
        self.queue.put_nowait(message)

    async def write_loop(self) -> None:
        while True:
            message = await self.queue.get()
            try:
                await self.websocket.send(_frame(message))
            except ConnectionClosed:
                return


class WebsocketServer:
    """Accept websocket clients and answer their requests.

    ``handler`` takes one request string and returns the messages to send;
    messages marked for all clients go to every connected session, the
    others only to the session that made the request.
    """

    def __init__(self, host: str = "0.0.0.0", port: int = 5555,
                 handler: RequestHandler | None = None) -> None:
        self.host = host
        self.port = port
        self.handler = handler if handler is not None else (lambda request: [])
        self.listening = threading.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._sessions: set[_Session] = set()
        self._sessions_lock = threading.Lock()

    async def serve(self) -> None:
        """Listen on ``host:port`` until cancelled.

        Once listening, ``port`` holds the bound port and ``listening`` is set.
        Raises OSError when the address cannot be bound.
        """
        self._loop = asyncio.get_running_loop()
        async with websockets.serve(self._session, self.host, self.port) as ws_server:
            sockets = list(ws_server.sockets or [])
            if sockets:
                self.port = sockets[0].getsockname()[1]
            self.listening.set()
            try:
                await asyncio.Future()
            finally:
                self.listening.clear()

    def run(self) -> None:
        """Serve in a new event loop, blocking the calling thread."""
        asyncio.run(self.serve())

    def sessions_send(self, message: HabdecMessage) -> None:
        """Queue ``message`` for every connected client; safe from any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._broadcast(message)
        else:
            loop.call_soon_threadsafe(self._broadcast, message)

    def session_count(self) -> int:
        """Number of connected clients."""
        with self._sessions_lock:
            return len(self._sessions)

    def _broadcast(self, message: HabdecMessage) -> None:
        with self._sessions_lock:
            sessions = list(self._sessions)
        for session in sessions:
            session.send(message)

    async def _session(self, websocket, path=None) -> None:
        session = _Session(websocket)
        with self._sessions_lock:
            self._sessions.add(session)
        log.info("New Client %s", getattr(websocket, "remote_address", None))
        writer = asyncio.create_task(session.write_loop())
        try:
            async for raw in websocket:
                request = raw if isinstance(raw, str) else bytes(raw).decode("utf-8", "replace")
                for message in self.handler(request):
                    if message.to_all_clients:
                        self._broadcast(message)
                    else:
                        session.send(message)
        except ConnectionClosed:
            pass
        finally:
            with self._sessions_lock:
                self._sessions.discard(session)
            writer.cancel()