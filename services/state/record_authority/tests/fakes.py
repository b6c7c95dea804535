"""In-memory doubles for Record Authority tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from packages.blobvault_shared.errors import BlobVaultError
from resources.substrates.celestia.errors import BlobNotFoundError
from resources.substrates.celestia.namespace import Namespace, validate_namespace
from resources.substrates.celestia.substrate import (
    Blob,
    SubmitOptions,
    SubmitResult,
    SubstrateHealthStatus,
)
from services.state.record_authority.config import RecordAuthoritySettings
from services.state.record_authority.data import (
    SqliteLocalStateRepository,
    create_state_engine,
)
from services.state.record_authority.implementation import (
    DefaultRecordAuthorityService,
)
from services.state.record_authority.session import VaultSession


@dataclass(frozen=True)
class SubmitCall:
    namespace: Namespace
    data: bytes


@dataclass
class FakeBlobSubstrate:
    """Append-only blob store assigning increasing heights."""

    next_height: int = 100
    blobs: dict[tuple[bytes, int], bytes] = field(default_factory=dict)
    submits: list[SubmitCall] = field(default_factory=list)
    gets: list[int] = field(default_factory=list)
    submit_error: BlobVaultError | None = None
    get_errors: dict[int, BlobVaultError] = field(default_factory=dict)

    async def submit(
        self,
        *,
        namespace: Namespace,
        data: bytes,
        options: SubmitOptions | None = None,
    ) -> SubmitResult:
        del options
        checked = validate_namespace(namespace.raw)
        self.submits.append(SubmitCall(namespace=checked, data=data))
        if self.submit_error is not None:
            raise self.submit_error
        self.next_height += 1
        self.blobs[(checked.raw, self.next_height)] = data
        return SubmitResult(height=self.next_height, namespace=checked)

    async def get(
        self,
        *,
        height: int,
        namespace: Namespace,
        commitment: str | None = None,
    ) -> Blob:
        del commitment
        self.gets.append(height)
        if height in self.get_errors:
            raise self.get_errors[height]
        data = self.blobs.get((namespace.raw, height))
        if data is None:
            raise BlobNotFoundError(message=f"no blob at {height}", height=height)
        return Blob(height=height, namespace=namespace, data=data)

    async def health(self) -> SubstrateHealthStatus:
        return SubstrateHealthStatus(ready=True, detail="fake")


def build_service(
    tmp_path: Path, substrate: FakeBlobSubstrate | None = None
) -> DefaultRecordAuthorityService:
    """Build a service over a fake substrate and a temporary SQLite file."""
    settings = RecordAuthoritySettings(
        state_path=str(tmp_path / "state.db"),
        kdf_iterations=1_000,
        list_concurrency=2,
    )
    repository = SqliteLocalStateRepository(
        create_state_engine(settings.resolved_state_path())
    )
    repository.create_schema()
    session = VaultSession(
        settings=settings,
        substrate=substrate or FakeBlobSubstrate(),
        repository=repository,
    )
    return DefaultRecordAuthorityService(session=session)
