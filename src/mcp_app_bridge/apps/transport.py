# mcp_app_bridge/apps/transport.py
"""Outbound channels a :class:`BridgeSession` writes envelopes to.

A transport only needs ``async send(text)``.  Inbound messages are fed
to :meth:`BridgeSession.handle_message` by whoever owns the channel;
:class:`WebSocketTransport` does both over a ``websockets`` client
connection.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

try:
    import websockets
    from websockets.asyncio.client import ClientConnection, connect
except ImportError as exc:
    raise ImportError(
        "The WebSocket transport requires websockets. Install with:  pip install websockets"
    ) from exc

if TYPE_CHECKING:
    from mcp_app_bridge.apps.session import BridgeSession

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Anything that can carry a serialized envelope to the host."""

    async def send(self, message: str) -> None: ...


class QueueTransport:
    """Collects outbound messages in memory.

    Useful for headless sessions and tests: ``sent`` holds the raw
    strings, :attr:`envelopes` the decoded objects.
    """

    def __init__(self) -> None:
        self.sent: list[str] = []
        self._event = asyncio.Event()

    async def send(self, message: str) -> None:
        self.sent.append(message)
        self._event.set()

    @property
    def envelopes(self) -> list[dict[str, Any]]:
        return [json.loads(m) for m in self.sent]

    def find(self, method: str) -> list[dict[str, Any]]:
        """Decoded outbound messages carrying *method*."""
        return [e for e in self.envelopes if e.get("method") == method]

    async def wait_for(self, method: str, timeout: float = 1.0) -> dict[str, Any]:
        """Wait until a message with *method* has been sent; returns the latest."""

        async def _poll() -> dict[str, Any]:
            while True:
                found = self.find(method)
                if found:
                    return found[-1]
                self._event.clear()
                await self._event.wait()

        return await asyncio.wait_for(_poll(), timeout)

    def clear(self) -> None:
        self.sent.clear()


class WebSocketTransport:
    """A ``websockets`` client connection to the host page."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._ws: ClientConnection | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        if self._ws is not None:
            return
        self._ws = await connect(self.url)
        logger.info("Connected to host at %s", self.url)

    async def send(self, message: str) -> None:
        if self._ws is None:
            raise ConnectionError(f"Not connected to {self.url}")
        await self._ws.send(message)

    async def receive_loop(self, session: BridgeSession) -> None:
        """Feed every inbound text frame to *session* until the socket closes."""
        if self._ws is None:
            raise ConnectionError(f"Not connected to {self.url}")
        try:
            async for message in self._ws:
                if isinstance(message, str):
                    await session.handle_message(message)
        except websockets.ConnectionClosed:
            pass
        logger.info("Connection to %s closed", self.url)

    async def run(self, session: BridgeSession) -> None:
        """Attach *session*, perform the handshake and serve until closed.

        The receive loop must already be running while the handshake
        waits for its response, so it is started first.
        """
        await self.connect()
        session.set_transport(self)
        receiver = asyncio.create_task(self.receive_loop(session))
        try:
            await session.start()
            await receiver
        finally:
            if not receiver.done():
                receiver.cancel()
            await session.teardown()
            await self.close()

    async def close(self) -> None:
        ws = self._ws
        self._ws = None
        if ws is not None:
            await ws.close()

    async def __aenter__(self) -> WebSocketTransport:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
