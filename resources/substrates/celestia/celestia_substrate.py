"""JSON-RPC-backed blob substrate implementation."""

from __future__ import annotations

import base64

from resources.substrates.celestia.errors import (
    BlobNotFoundError,
    SubstrateRejectedError,
    SubstrateResponseShapeError,
)
from resources.substrates.celestia.namespace import Namespace, validate_namespace
from resources.substrates.celestia.responses import (
    parse_blob_response,
    parse_submit_response,
)
from resources.substrates.celestia.substrate import (
    Blob,
    BlobSubstrate,
    SubmitOptions,
    SubmitResult,
    SubstrateHealthStatus,
)
from resources.substrates.celestia.transport import ConnectionState, RpcTransport

SUBMIT_METHOD = "blob.Submit"
GET_METHOD = "blob.Get"
SHARE_VERSION = 0
_NOT_FOUND_MARKER = "not found"


class RpcBlobSubstrate(BlobSubstrate):
    """Concrete blob substrate speaking the node's ``blob.*`` RPC methods."""

    def __init__(
        self,
        *,
        transport: RpcTransport,
        default_options: SubmitOptions | None = None,
    ) -> None:
        self._transport = transport
        self._default_options = default_options or SubmitOptions()

    async def submit(
        self,
        *,
        namespace: Namespace,
        data: bytes,
        options: SubmitOptions | None = None,
    ) -> SubmitResult:
        """Submit one blob; the namespace is revalidated before any I/O."""
        checked = validate_namespace(namespace.raw)
        resolved = options or self._default_options
        blob = {
            "namespace": checked.to_base64(),
            "data": base64.b64encode(data).decode("ascii"),
            "share_version": SHARE_VERSION,
        }
        result = await self._transport.call(
            SUBMIT_METHOD, [[blob], resolved.to_params()]
        )
        payload = parse_submit_response(SUBMIT_METHOD, result)
        return SubmitResult(
            height=payload.height,
            namespace=checked,
            commitment=payload.commitment,
        )

    async def get(
        self,
        *,
        height: int,
        namespace: Namespace,
        commitment: str | None = None,
    ) -> Blob:
        """Fetch the blob at ``height`` in ``namespace``."""
        checked = validate_namespace(namespace.raw)
        if height < 0:
            raise ValueError("height must be >= 0")
        params: list[object] = [height, checked.to_base64()]
        if commitment is not None:
            params.append(commitment)

        try:
            result = await self._transport.call(GET_METHOD, params)
        except SubstrateRejectedError as exc:
            if _NOT_FOUND_MARKER not in exc.rpc_message.lower():
                raise
            raise _not_found(height, checked) from exc
        payload = parse_blob_response(GET_METHOD, result)
        if payload is None:
            raise _not_found(height, checked)
        if (
            payload.namespace_b64 is not None
            and payload.namespace_b64 != checked.to_base64()
        ):
            raise SubstrateResponseShapeError(
                message=f"{GET_METHOD} returned a blob from a different namespace",
                method=GET_METHOD,
            )
        return Blob(
            height=height,
            namespace=checked,
            data=payload.data,
            share_version=payload.share_version,
            commitment=payload.commitment,
        )

    async def health(self) -> SubstrateHealthStatus:
        """Report readiness from the transport connection state."""
        state = self._transport.state
        if self._transport.terminal:
            return SubstrateHealthStatus(
                ready=False, detail="reconnect attempts exhausted"
            )
        return SubstrateHealthStatus(
            ready=state is ConnectionState.CONNECTED,
            detail=state.value,
        )


def _not_found(height: int, namespace: Namespace) -> BlobNotFoundError:
    return BlobNotFoundError(
        message=f"no blob at height {height} in namespace {namespace}",
        height=height,
    )
