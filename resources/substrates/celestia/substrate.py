"""Transport-agnostic contract for blob submit/retrieve operations."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from resources.substrates.celestia.namespace import Namespace


class SubmitOptions(BaseModel):
    """Per-submission transaction options."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    gas_price: float | None = Field(default=None, gt=0)

    def to_params(self) -> dict[str, float]:
        """Render the options object sent as the second ``blob.Submit`` param."""
        if self.gas_price is None:
            return {}
        return {"gas_price": self.gas_price}


class SubmitResult(BaseModel):
    """Position assigned to one submitted blob."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    height: int = Field(ge=0)
    namespace: Namespace
    commitment: str | None = None


class Blob(BaseModel):
    """One blob read back from the substrate."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    height: int = Field(ge=0)
    namespace: Namespace
    data: bytes
    share_version: int = 0
    commitment: str | None = None


class SubstrateHealthStatus(BaseModel):
    """Blob substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class BlobSubstrate(Protocol):
    """Protocol for append-only, namespaced blob storage."""

    async def submit(
        self,
        *,
        namespace: Namespace,
        data: bytes,
        options: SubmitOptions | None = None,
    ) -> SubmitResult:
        """Submit one blob and return the position the substrate assigned."""

    async def get(
        self,
        *,
        height: int,
        namespace: Namespace,
        commitment: str | None = None,
    ) -> Blob:
        """Fetch one blob by position; raise ``BlobNotFoundError`` if absent."""

    async def health(self) -> SubstrateHealthStatus:
        """Probe substrate readiness and detail."""
