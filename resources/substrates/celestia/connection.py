"""Connection contract and ``websockets`` implementation for the RPC transport."""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from resources.substrates.celestia.config import CelestiaSettings


class RpcConnection(Protocol):
    """One open, full-duplex text message channel to a node.

    ``recv`` and ``send`` raise ``ConnectionError`` once the channel is
    closed, whatever the underlying library reports.
    """

    async def send(self, message: str) -> None:
        """Send one text frame."""

    async def recv(self) -> str:
        """Wait for the next inbound text frame."""

    async def close(self) -> None:
        """Close the channel; idempotent."""


Connector = Callable[[], Awaitable[RpcConnection]]


class WebsocketConnection:
    """``RpcConnection`` over one ``websockets`` client connection."""

    def __init__(self, websocket: ClientConnection) -> None:
        self._websocket = websocket

    async def send(self, message: str) -> None:
        try:
            await self._websocket.send(message)
        except ConnectionClosed as exc:
            raise ConnectionError(f"websocket closed: {exc}") from exc

    async def recv(self) -> str:
        try:
            frame = await self._websocket.recv()
        except ConnectionClosed as exc:
            raise ConnectionError(f"websocket closed: {exc}") from exc
        if isinstance(frame, bytes):
            return frame.decode("utf-8", errors="replace")
        return frame

    async def close(self) -> None:
        await self._websocket.close()


def create_websocket_connector(settings: CelestiaSettings) -> Connector:
    """Return a connector opening one authenticated websocket per call."""
    headers: dict[str, str] | None = None
    if settings.auth_token != "":
        headers = {"Authorization": f"Bearer {settings.auth_token}"}

    async def _connect() -> RpcConnection:
        websocket = await connect(
            settings.url,
            additional_headers=headers,
            open_timeout=settings.connect_timeout_seconds,
            max_size=None,
        )
        return WebsocketConnection(websocket)

    return _connect
