"""Read-only node queries: account, balance, peers and sampling progress."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from resources.substrates.celestia.errors import SubstrateResponseShapeError
from resources.substrates.celestia.transport import RpcTransport

UTIA_PER_TIA = 1_000_000


class Balance(BaseModel):
    """Account balance in the chain's base denomination."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    amount: int
    denom: str = "utia"

    @property
    def tia(self) -> float:
        return self.amount / UTIA_PER_TIA


class P2PInfo(BaseModel):
    """Peer identity and listen addresses of the node."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    addrs: list[str] = []


class SamplingStats(BaseModel):
    """Data-availability sampling progress of a light node."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    head_of_sampled_chain: int = 0
    head_of_catchup: int = 0
    network_head_height: int = 0
    concurrency: int = 0
    catch_up_done: bool = False
    is_running: bool = False


class NodeInfoReader:
    """Typed wrappers over the node's informational RPC methods."""

    def __init__(self, *, transport: RpcTransport) -> None:
        self._transport = transport

    async def account_address(self) -> str:
        """Return the bech32 account address the node signs with."""
        result = await self._transport.call("state.AccountAddress", [])
        if isinstance(result, dict):
            result = result.get("address")
        if not isinstance(result, str) or result == "":
            raise _shape_error("state.AccountAddress")
        return result

    async def balance(self) -> Balance:
        result = await self._transport.call("state.Balance", [])
        return _validate(Balance, "state.Balance", result)

    async def p2p_info(self) -> P2PInfo:
        result = await self._transport.call("p2p.Info", [])
        if isinstance(result, dict) and "ID" in result and "id" not in result:
            result = {"id": result["ID"], "addrs": result.get("Addrs") or []}
        return _validate(P2PInfo, "p2p.Info", result)

    async def sampling_stats(self) -> SamplingStats:
        result = await self._transport.call("das.SamplingStats", [])
        return _validate(SamplingStats, "das.SamplingStats", result)


def _validate(model: type[Any], method: str, result: Any) -> Any:
    if not isinstance(result, dict):
        raise _shape_error(method)
    try:
        return model.model_validate(result)
    except ValueError as exc:
        raise _shape_error(method) from exc


def _shape_error(method: str) -> SubstrateResponseShapeError:
    return SubstrateResponseShapeError(
        message=f"unrecognized {method} response",
        method=method,
    )
