"""Pydantic settings for the Celestia substrate component."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, model_validator

from packages.blobvault_shared.config import (
    BlobVaultSettings,
    resolve_component_settings,
)
from resources.substrates.celestia.component import RESOURCE_COMPONENT_ID

DEFAULT_START_HINT = (
    "celestia light start --p2p.network mammoth "
    "--core.ip global.grpc.mamochain.com --core.port 9090 --rpc.skip-auth"
)


class CelestiaSettings(BaseModel):
    """Node endpoint, timeouts and reconnect policy for the JSON-RPC transport."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = "ws://localhost:26658"
    auth_token: str = Field(default="", repr=False)
    auth_token_env: str = ""
    connect_timeout_seconds: float = Field(default=1.0, gt=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    reconnect_base_delay_seconds: float = Field(default=1.0, gt=0)
    reconnect_max_delay_seconds: float = Field(default=5.0, gt=0)
    reconnect_max_attempts: int = Field(default=5, ge=0)
    gas_price: float | None = Field(default=None, gt=0)
    start_hint: str = DEFAULT_START_HINT

    @model_validator(mode="after")
    def _resolve_fields(self) -> "CelestiaSettings":
        """Normalize the URL and resolve the auth token reference."""
        url = self.url.strip()
        if not url.startswith(("ws://", "wss://")):
            raise ValueError("substrate.celestia.url must be a ws:// or wss:// URL")
        if self.reconnect_max_delay_seconds < self.reconnect_base_delay_seconds:
            raise ValueError(
                "substrate.celestia.reconnect_max_delay_seconds must be >= "
                "reconnect_base_delay_seconds"
            )
        object.__setattr__(self, "url", url)
        object.__setattr__(
            self,
            "auth_token",
            _resolve_auth_token(
                auth_token=self.auth_token, auth_token_env=self.auth_token_env
            ),
        )
        return self


def _resolve_auth_token(*, auth_token: str, auth_token_env: str) -> str:
    """Resolve the token from an inline value or environment variable reference."""
    inline = auth_token.strip()
    env_name = auth_token_env.strip()
    if inline != "" and env_name != "":
        raise ValueError(
            "substrate.celestia.auth_token and auth_token_env are mutually exclusive"
        )
    if inline != "" or env_name == "":
        return inline

    resolved = os.environ.get(env_name, "").strip()
    if resolved == "":
        raise ValueError(
            f"substrate.celestia.auth_token_env references missing env var '{env_name}'"
        )
    return resolved


def resolve_celestia_settings(settings: BlobVaultSettings) -> CelestiaSettings:
    """Resolve Celestia substrate settings from ``components.substrate.celestia``."""
    return resolve_component_settings(
        settings=settings,
        component_id=str(RESOURCE_COMPONENT_ID),
        model=CelestiaSettings,
    )
