"""Authoritative in-process Python API for Record Authority Service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping

from packages.blobvault_shared.config import BlobVaultSettings
from resources.substrates.celestia import Namespace, SubstrateHealthStatus
from services.state.record_authority.domain import (
    DatabaseInfo,
    RecordListing,
    RecordPointer,
    SchemaInitResult,
    StoredSchema,
)

if TYPE_CHECKING:
    from services.state.record_authority.session import VaultSession


class RecordAuthorityService(ABC):
    """Public API for an encrypted, schema-checked record store on blobs."""

    @abstractmethod
    async def init_schema(
        self,
        *,
        namespace: Namespace | str,
        definition: Mapping[str, Any],
    ) -> SchemaInitResult:
        """Create a database: store its encrypted schema and start an index."""

    @abstractmethod
    async def append_record(self, *, data: Mapping[str, Any]) -> RecordPointer:
        """Validate, encrypt and store one record; index its position."""

    @abstractmethod
    async def list_records(self) -> RecordListing:
        """Read back every indexed record, newest first, with failures."""

    @abstractmethod
    async def get_schema(self) -> StoredSchema:
        """Return the cached schema or fetch and decrypt it."""

    @abstractmethod
    def database_info(self) -> DatabaseInfo | None:
        """Summarize local state, or ``None`` when no database exists."""

    @abstractmethod
    def reset_local_state(self, *, confirm: bool) -> None:
        """Clear all local state, including the secret token."""

    @abstractmethod
    async def health(self) -> SubstrateHealthStatus:
        """Return blob substrate readiness."""


def build_record_authority_service(
    *,
    settings: BlobVaultSettings,
    session: "VaultSession | None" = None,
) -> RecordAuthorityService:
    """Build default Record Authority implementation from typed settings."""
    from services.state.record_authority.implementation import (
        DefaultRecordAuthorityService,
    )
    from services.state.record_authority.session import VaultSession

    resolved = session or VaultSession.from_settings(settings)
    return DefaultRecordAuthorityService(session=resolved)
