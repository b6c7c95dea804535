"""In-memory doubles for exercising the RPC transport without a node."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass
class FakeConnection:
    """Scriptable connection: ``handler`` may answer each sent request."""

    handler: Callable[[dict[str, Any]], dict[str, Any] | None] | None = None
    sent: list[dict[str, Any]] = field(default_factory=list)
    closed: bool = False
    _inbox: asyncio.Queue[str | None] = field(default_factory=asyncio.Queue)

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionError("closed")
        request = json.loads(message)
        self.sent.append(request)
        if self.handler is not None:
            response = self.handler(request)
            if response is not None:
                self.push(response)

    async def recv(self) -> str:
        item = await self._inbox.get()
        if item is None:
            raise ConnectionError("closed")
        return item

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(None)

    def push(self, payload: dict[str, Any] | str) -> None:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        self._inbox.put_nowait(text)

    def drop(self) -> None:
        """Simulate an abnormal close from the node side."""
        self.closed = True
        self._inbox.put_nowait(None)


@dataclass
class ScaledClock:
    """Clock recording requested sleeps and sleeping a fraction of each."""

    scale: float = 0.001
    sleeps: list[float] = field(default_factory=list)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        await asyncio.sleep(seconds * self.scale)


def result_for(value: Any) -> Callable[[dict[str, Any]], dict[str, Any]]:
    """Return a handler answering every request with ``value``."""

    def _handler(request: dict[str, Any]) -> dict[str, Any]:
        return {"jsonrpc": "2.0", "id": request["id"], "result": value}

    return _handler


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` on the running loop until true or ``timeout``."""

    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout=timeout)
