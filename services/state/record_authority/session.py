"""Explicit owner of one client's transport, substrate and local state.

A ``VaultSession`` replaces process-global connection and storage state: the
record store receives it explicitly and everything it touches hangs off it.
"""

from __future__ import annotations

from types import TracebackType

from packages.blobvault_shared.config import BlobVaultSettings
from packages.blobvault_shared.crypto import DerivedKey, derive_key, generate_token
from packages.blobvault_shared.logging import get_logger
from resources.substrates.celestia import (
    NodeInfoReader,
    RpcBlobSubstrate,
    RpcTransport,
    SubmitOptions,
    resolve_celestia_settings,
)
from resources.substrates.celestia.connection import Connector
from resources.substrates.celestia.substrate import BlobSubstrate
from services.state.record_authority.config import (
    RecordAuthoritySettings,
    resolve_record_authority_settings,
)
from services.state.record_authority.data import (
    LocalStateRepository,
    SqliteLocalStateRepository,
    create_state_engine,
)

_LOGGER = get_logger(__name__)


class VaultSession:
    """Async context manager owning transport, substrate, state and key cache."""

    def __init__(
        self,
        *,
        settings: RecordAuthoritySettings,
        substrate: BlobSubstrate,
        repository: LocalStateRepository,
        transport: RpcTransport | None = None,
        node_info: NodeInfoReader | None = None,
    ) -> None:
        self._settings = settings
        self._substrate = substrate
        self._repository = repository
        self._transport = transport
        self._node_info = node_info
        self._key_cache: tuple[str, DerivedKey] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: BlobVaultSettings,
        *,
        connector: Connector | None = None,
    ) -> "VaultSession":
        """Build the session and every owned resource from root settings."""
        celestia = resolve_celestia_settings(settings)
        service_settings = resolve_record_authority_settings(settings)
        transport = RpcTransport(settings=celestia, connector=connector)
        repository = SqliteLocalStateRepository(
            create_state_engine(service_settings.resolved_state_path())
        )
        repository.create_schema()
        return cls(
            settings=service_settings,
            substrate=RpcBlobSubstrate(
                transport=transport,
                default_options=SubmitOptions(gas_price=celestia.gas_price),
            ),
            repository=repository,
            transport=transport,
            node_info=NodeInfoReader(transport=transport),
        )

    @property
    def settings(self) -> RecordAuthoritySettings:
        return self._settings

    @property
    def substrate(self) -> BlobSubstrate:
        return self._substrate

    @property
    def repository(self) -> LocalStateRepository:
        return self._repository

    @property
    def transport(self) -> RpcTransport | None:
        return self._transport

    @property
    def node_info(self) -> NodeInfoReader | None:
        return self._node_info

    def has_token(self) -> bool:
        return self._repository.get_token() is not None

    def derived_key(self, *, create: bool = True) -> DerivedKey | None:
        """Return the key for the stored token, generating a token if allowed."""
        token = self._repository.get_token()
        if token is None:
            if not create:
                return None
            token = generate_token()
            self._repository.set_token(token)
            _LOGGER.info("Generated new local secret token")

        if self._key_cache is not None and self._key_cache[0] == token:
            return self._key_cache[1]
        key = derive_key(
            token,
            salt=self._settings.kdf_salt,
            iterations=self._settings.kdf_iterations,
        )
        self._key_cache = (token, key)
        return key

    def forget_key(self) -> None:
        """Drop the cached derived key."""
        self._key_cache = None

    async def close(self) -> None:
        """Close the transport and release local storage."""
        self.forget_key()
        if self._transport is not None:
            await self._transport.close()
        self._repository.dispose()

    async def __aenter__(self) -> "VaultSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()
