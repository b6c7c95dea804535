"""Pydantic settings for Record Authority Service."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from packages.blobvault_shared.config import (
    BlobVaultSettings,
    resolve_component_settings,
)
from packages.blobvault_shared.crypto import DEFAULT_ITERATIONS, DEFAULT_SALT
from services.state.record_authority.component import SERVICE_COMPONENT_ID

DEFAULT_STATE_PATH = "~/.local/share/blobvault/state.db"


class RecordAuthoritySettings(BaseModel):
    """Local state location, listing fan-out and key derivation parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    state_path: str = DEFAULT_STATE_PATH
    list_concurrency: int = Field(default=8, gt=0, le=64)
    kdf_salt: str = Field(default=DEFAULT_SALT, min_length=1)
    kdf_iterations: int = Field(default=DEFAULT_ITERATIONS, gt=0)
    schema_version: str = "1.0"

    def resolved_state_path(self) -> Path:
        """Return the SQLite state file path with ``~`` expanded."""
        return Path(self.state_path).expanduser()


def resolve_record_authority_settings(
    settings: BlobVaultSettings,
) -> RecordAuthoritySettings:
    """Resolve service settings from ``components.service.record_authority``."""
    return resolve_component_settings(
        settings=settings,
        component_id=str(SERVICE_COMPONENT_ID),
        model=RecordAuthoritySettings,
    )
