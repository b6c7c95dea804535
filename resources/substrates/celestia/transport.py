"""JSON-RPC 2.0 transport over one persistent node connection.

The transport owns a single connection, correlates responses to requests by
id, and reconnects after abnormal closes under a bounded ``ReconnectPolicy``.
Calls are never serialized: any number may be in flight and each resolves
when its response arrives.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from packages.blobvault_shared.logging import fields, get_logger, log_context
from resources.substrates.celestia.config import CelestiaSettings
from resources.substrates.celestia.connection import (
    Connector,
    RpcConnection,
    create_websocket_connector,
)
from resources.substrates.celestia.errors import (
    RpcConnectionTimeoutError,
    RpcDisconnectedError,
    RpcRequestTimeoutError,
    SubstrateRejectedError,
    SubstrateResponseShapeError,
)
from resources.substrates.celestia.retry import AsyncioClock, Clock, ReconnectPolicy

_LOGGER = get_logger(__name__)

JSONRPC_VERSION = "2.0"


class ConnectionState(str, Enum):
    """Lifecycle states of the transport connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class _PendingCall:
    method: str
    future: asyncio.Future[Any]


class RpcTransport:
    """Request/response multiplexer with capped-backoff reconnect."""

    def __init__(
        self,
        *,
        settings: CelestiaSettings,
        connector: Connector | None = None,
        clock: Clock | None = None,
        policy: ReconnectPolicy | None = None,
    ) -> None:
        self._settings = settings
        self._connector = connector or create_websocket_connector(settings)
        self._clock = clock or AsyncioClock()
        self._policy = policy or ReconnectPolicy(
            base_delay_seconds=settings.reconnect_base_delay_seconds,
            max_delay_seconds=settings.reconnect_max_delay_seconds,
            max_attempts=settings.reconnect_max_attempts,
        )
        self._state = ConnectionState.DISCONNECTED
        self._terminal = False
        self._closed = False
        self._next_id = 0
        self._pending: dict[int, _PendingCall] = {}
        self._connection: RpcConnection | None = None
        self._connected = asyncio.Event()
        self._connect_task: asyncio.Task[None] | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def terminal(self) -> bool:
        """Whether reconnects are exhausted and only ``reconnect()`` recovers."""
        return self._terminal

    @property
    def policy(self) -> ReconnectPolicy:
        return self._policy

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def __aenter__(self) -> "RpcTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def connect(self) -> None:
        """Start establishing the connection unless already underway."""
        if self._state is not ConnectionState.DISCONNECTED:
            return
        self._closed = False
        self._begin_connect()

    async def reconnect(self) -> None:
        """Clear the terminal flag, reset the policy and connect again."""
        self._terminal = False
        self._policy.reset()
        _cancel(self._reconnect_task)
        self._reconnect_task = None
        await self.connect()

    async def wait_connected(self) -> None:
        """Wait up to the connect window for ``CONNECTED``."""
        if self._state is ConnectionState.CONNECTED:
            return
        waiter = asyncio.ensure_future(self._connected.wait())
        timer = asyncio.ensure_future(
            self._clock.sleep(self._settings.connect_timeout_seconds)
        )
        try:
            await asyncio.wait({waiter, timer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            timer.cancel()

        if self._state is ConnectionState.CONNECTED:
            return
        if self._terminal:
            raise _terminal_error()
        raise RpcConnectionTimeoutError(
            message=(
                f"connection timeout: unable to reach a node at {self._settings.url}. "
                f"Start a node with: {self._settings.start_hint}"
            ),
            url=self._settings.url,
        )

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Send one request and wait for its ``result``."""
        if self._terminal:
            raise _terminal_error()
        if self._state is not ConnectionState.CONNECTED:
            await self.connect()
            await self.wait_connected()

        connection = self._connection
        if connection is None:
            raise RpcDisconnectedError(message="not connected to node")

        self._next_id += 1
        request_id = self._next_id
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = _PendingCall(method=method, future=future)
        envelope = {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "method": method,
            "params": list(params or []),
        }

        with log_context({fields.RPC_METHOD: method, fields.RPC_REQUEST_ID: request_id}):
            _LOGGER.debug("RPC request sent")
            try:
                await connection.send(json.dumps(envelope))
                return await asyncio.wait_for(
                    future, timeout=self._settings.request_timeout_seconds
                )
            except ConnectionError as exc:
                raise RpcDisconnectedError(
                    message=f"connection lost while sending {method}"
                ) from exc
            except asyncio.TimeoutError:
                _LOGGER.warning("RPC request timed out")
                raise RpcRequestTimeoutError(
                    message=(
                        f"{method} got no response within "
                        f"{self._settings.request_timeout_seconds}s"
                    ),
                    method=method,
                ) from None
            finally:
                self._pending.pop(request_id, None)

    async def close(self) -> None:
        """Stop reconnecting, close the connection and fail in-flight calls."""
        self._closed = True
        tasks = [
            task
            for task in (self._reconnect_task, self._connect_task, self._reader_task)
            if task is not None and task is not asyncio.current_task()
        ]
        for task in tasks:
            task.cancel()
        self._reconnect_task = None
        self._connect_task = None
        self._reader_task = None

        connection = self._connection
        self._connection = None
        self._set_state(ConnectionState.DISCONNECTED)
        self._fail_pending(RpcDisconnectedError(message="transport closed"))
        if connection is not None:
            await connection.close()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _begin_connect(self) -> None:
        self._set_state(ConnectionState.CONNECTING)
        self._connect_task = asyncio.create_task(self._establish())

    async def _establish(self) -> None:
        try:
            connection = await self._connector()
        except Exception as exc:  # noqa: BLE001
            with log_context({fields.ERRORS: [f"{type(exc).__name__}: {exc}"]}):
                _LOGGER.warning("Node connection failed")
            self._on_connection_lost()
            return

        if self._closed:
            await connection.close()
            return
        self._connection = connection
        self._policy.reset()
        self._set_state(ConnectionState.CONNECTED)
        self._reader_task = asyncio.create_task(self._read_loop(connection))

    async def _read_loop(self, connection: RpcConnection) -> None:
        while True:
            try:
                message = await connection.recv()
            except Exception as exc:  # noqa: BLE001
                if connection is self._connection:
                    with log_context({fields.ERRORS: [f"{type(exc).__name__}: {exc}"]}):
                        _LOGGER.warning("Node connection closed")
                    self._connection = None
                    self._on_connection_lost()
                return
            try:
                self._dispatch(message)
            except Exception as exc:  # noqa: BLE001
                with log_context({fields.ERRORS: [f"{type(exc).__name__}: {exc}"]}):
                    _LOGGER.warning("Dropping frame that failed to dispatch")

    def _dispatch(self, message: str) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            _LOGGER.warning("Ignoring unparseable frame from node")
            return
        if not isinstance(payload, dict):
            _LOGGER.debug("Ignoring non-object frame from node")
            return

        request_id = payload.get("id")
        pending = None
        if isinstance(request_id, int) and not isinstance(request_id, bool):
            pending = self._pending.get(request_id)
        if pending is None:
            with log_context({fields.RPC_METHOD: payload.get("method")}):
                _LOGGER.debug("Ignoring unmatched frame from node")
            return
        if pending.future.done():
            return

        error = payload.get("error")
        if error is not None:
            pending.future.set_exception(_rejection(pending.method, error))
        elif "result" in payload:
            pending.future.set_result(payload["result"])
        else:
            pending.future.set_exception(
                SubstrateResponseShapeError(
                    message=f"{pending.method} response has neither result nor error",
                    method=pending.method,
                )
            )

    def _on_connection_lost(self) -> None:
        self._set_state(ConnectionState.DISCONNECTED)
        self._fail_pending(RpcDisconnectedError(message="connection to node lost"))
        if self._closed:
            return

        delay = self._policy.next_delay()
        if delay is None:
            self._terminal = True
            with log_context({fields.RECONNECT_ATTEMPT: self._policy.attempts}):
                _LOGGER.error("Reconnect attempts exhausted; transport is terminal")
            return

        with log_context(
            {
                fields.RECONNECT_ATTEMPT: self._policy.attempts,
                fields.RECONNECT_DELAY_SECONDS: delay,
            }
        ):
            _LOGGER.info("Scheduling node reconnect")
        _cancel(self._reconnect_task)
        self._reconnect_task = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await self._clock.sleep(delay)
        if self._closed or self._state is not ConnectionState.DISCONNECTED:
            return
        self._begin_connect()

    def _fail_pending(self, error: RpcDisconnectedError) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for call in pending:
            if not call.future.done():
                call.future.set_exception(error)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        if state is ConnectionState.CONNECTED:
            self._connected.set()
        else:
            self._connected.clear()
        with log_context({fields.CONNECTION_STATE: state.value}):
            _LOGGER.debug("Transport state changed")


def _rejection(method: str, error: object) -> SubstrateRejectedError:
    if isinstance(error, dict):
        raw_code = error.get("code")
        rpc_code = raw_code if isinstance(raw_code, int) else 0
        rpc_message = str(error.get("message") or "unknown error")
    else:
        rpc_code, rpc_message = 0, str(error)
    return SubstrateRejectedError(
        message=f"node rejected {method}: {rpc_message}",
        rpc_code=rpc_code,
        rpc_message=rpc_message,
        method=method,
    )


def _terminal_error() -> RpcDisconnectedError:
    return RpcDisconnectedError(
        message="disconnected from node after exhausting reconnect attempts",
        terminal=True,
    )


def _cancel(task: asyncio.Task[None] | None) -> None:
    if task is not None and not task.done():
        task.cancel()
