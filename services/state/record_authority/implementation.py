"""Concrete Record Authority Service implementation."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any, Mapping

from packages.blobvault_shared.crypto import (
    DerivedKey,
    decrypt_json,
    encrypt_json,
)
from packages.blobvault_shared.errors import (
    BlobVaultError,
    ErrorCategory,
    exception_to_error,
)
from packages.blobvault_shared.logging import (
    fields,
    get_logger,
    log_context,
    public_api_instrumented,
)
from resources.substrates.celestia import (
    Blob,
    Namespace,
    SubmitResult,
    SubstrateHealthStatus,
    from_display_form,
    parse_namespace,
    validate_namespace,
)
from services.state.record_authority.component import SERVICE_COMPONENT_ID
from services.state.record_authority.domain import (
    DatabaseInfo,
    EntryFailure,
    RecordListing,
    RecordPointer,
    SchemaInitResult,
    StoredRecord,
    StoredSchema,
)
from services.state.record_authority.errors import (
    DatabaseAlreadyInitializedError,
    DatabaseNotInitializedError,
    IndexCorruptError,
    ResetNotConfirmedError,
    StoreDependencyError,
)
from services.state.record_authority.service import RecordAuthorityService
from services.state.record_authority.session import VaultSession
from services.state.record_authority.validation import (
    parse_schema_definition,
    validate_record,
)

_LOGGER = get_logger(__name__)


class DefaultRecordAuthorityService(RecordAuthorityService):
    """Default record store backed by a blob substrate and local SQLite state."""

    def __init__(self, *, session: VaultSession) -> None:
        self._session = session
        self._settings = session.settings

    @property
    def session(self) -> VaultSession:
        return self._session

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
        id_fields=("namespace",),
    )
    async def init_schema(
        self,
        *,
        namespace: Namespace | str,
        definition: Mapping[str, Any],
    ) -> SchemaInitResult:
        """Validate inputs locally, then submit the encrypted schema document."""
        checked = _coerce_namespace(namespace)
        field_specs = parse_schema_definition(definition)

        repository = self._session.repository
        existing = repository.get_namespace()
        if existing is not None:
            raise DatabaseAlreadyInitializedError(
                message=(
                    f"a database already exists in namespace {existing}; "
                    "reset local state before initializing another"
                ),
                namespace=existing,
            )

        document = {
            "schema": {name: spec.model_dump() for name, spec in field_specs.items()},
            "createdAt": _iso(_utc_now()),
            "version": self._settings.schema_version,
        }
        key = self._require_key()
        result = await self._submit(
            operation="init_schema",
            namespace=checked,
            payload=encrypt_json(document, key).encode("ascii"),
        )

        repository.initialize_database(
            namespace=checked.to_display_form(),
            schema_position=result.height,
            schema_document=document,
        )
        with log_context({fields.NAMESPACE: checked.to_display_form()}):
            _LOGGER.info("Database initialized")
        return SchemaInitResult(
            namespace=checked.to_display_form(), position=result.height
        )

    @public_api_instrumented(logger=_LOGGER, component_id=str(SERVICE_COMPONENT_ID))
    async def append_record(self, *, data: Mapping[str, Any]) -> RecordPointer:
        """Validate against the schema before any network call, then store."""
        namespace = self._require_namespace()
        schema = await self._load_schema(namespace)
        validate_record(data, schema.fields)

        now = _utc_now()
        document = {"data": dict(data), "createdAt": _iso(now)}
        key = self._require_key()
        result = await self._submit(
            operation="append_record",
            namespace=namespace,
            payload=encrypt_json(document, key).encode("ascii"),
        )
        return self._session.repository.append_pointer(
            position=result.height, timestamp=now
        )

    @public_api_instrumented(logger=_LOGGER, component_id=str(SERVICE_COMPONENT_ID))
    async def list_records(self) -> RecordListing:
        """Fetch every indexed position concurrently; failures never abort siblings."""
        namespace = self._require_namespace()
        pointers = self._session.repository.list_pointers()
        key = self._require_key()
        limiter = asyncio.Semaphore(self._settings.list_concurrency)

        outcomes = await asyncio.gather(
            *(
                self._read_entry(
                    pointer=pointer, namespace=namespace, key=key, limiter=limiter
                )
                for pointer in pointers
            )
        )
        records = [item for item in outcomes if isinstance(item, StoredRecord)]
        failures = [item for item in outcomes if isinstance(item, EntryFailure)]
        records.sort(
            key=lambda record: (_parse_iso(record.created_at), record.position),
            reverse=True,
        )

        if failures:
            with log_context(
                {
                    fields.INDEX_SIZE: len(pointers),
                    fields.FAILED_COUNT: len(failures),
                }
            ):
                _LOGGER.warning("Some indexed records could not be read")
        return RecordListing(
            records=records, failures=failures, index_size=len(pointers)
        )

    @public_api_instrumented(logger=_LOGGER, component_id=str(SERVICE_COMPONENT_ID))
    async def get_schema(self) -> StoredSchema:
        """Return the cached schema, fetching and decrypting it when absent."""
        return await self._load_schema(self._require_namespace())

    def database_info(self) -> DatabaseInfo | None:
        """Summarize local state without contacting the substrate."""
        repository = self._session.repository
        namespace = repository.get_namespace()
        position = repository.get_schema_position()
        if namespace is None or position is None:
            return None
        return DatabaseInfo(
            namespace=namespace,
            schema_position=position,
            index_size=repository.index_size(),
            has_token=self._session.has_token(),
        )

    @public_api_instrumented(logger=_LOGGER, component_id=str(SERVICE_COMPONENT_ID))
    def reset_local_state(self, *, confirm: bool) -> None:
        """Clear every local state entry; records already stored stay unreadable."""
        if confirm is not True:
            raise ResetNotConfirmedError()
        self._session.repository.clear_all()
        self._session.forget_key()
        _LOGGER.warning("Local state cleared")

    async def health(self) -> SubstrateHealthStatus:
        """Return blob substrate readiness."""
        return await self._session.substrate.health()

    def _require_namespace(self) -> Namespace:
        stored = self._session.repository.get_namespace()
        if stored is None:
            raise DatabaseNotInitializedError()
        return from_display_form(stored)

    def _require_key(self) -> DerivedKey:
        key = self._session.derived_key(create=True)
        assert key is not None
        return key

    async def _load_schema(self, namespace: Namespace) -> StoredSchema:
        repository = self._session.repository
        position = repository.get_schema_position()
        if position is None:
            raise DatabaseNotInitializedError()

        document = repository.get_cached_schema()
        if document is None:
            blob = await self._fetch(
                operation="get_schema", namespace=namespace, position=position
            )
            document = decrypt_json(blob.data, self._require_key())
            schema = _stored_schema(document, position)
            repository.set_cached_schema(document)
            return schema
        return _stored_schema(document, position)

    async def _read_entry(
        self,
        *,
        pointer: RecordPointer,
        namespace: Namespace,
        key: DerivedKey,
        limiter: asyncio.Semaphore,
    ) -> StoredRecord | EntryFailure:
        async with limiter:
            try:
                blob = await self._fetch(
                    operation="list_records",
                    namespace=namespace,
                    position=pointer.position,
                )
                document = decrypt_json(blob.data, key)
                return _stored_record(document, pointer.position)
            except BlobVaultError as exc:
                detail = exc.to_error_detail()
            except Exception as exc:  # noqa: BLE001
                detail = exception_to_error(exc)

        with log_context(
            {fields.POSITION: pointer.position, fields.ERROR_CODE: detail.code}
        ):
            _LOGGER.warning("Indexed record unreadable")
        return EntryFailure(position=pointer.position, error=detail)

    async def _submit(
        self, *, operation: str, namespace: Namespace, payload: bytes
    ) -> SubmitResult:
        try:
            return await self._session.substrate.submit(
                namespace=namespace, data=payload
            )
        except BlobVaultError as exc:
            if exc.category is ErrorCategory.VALIDATION:
                raise
            raise _dependency_error(operation=operation, position=None, exc=exc) from exc

    async def _fetch(
        self, *, operation: str, namespace: Namespace, position: int
    ) -> Blob:
        try:
            return await self._session.substrate.get(
                height=position, namespace=namespace
            )
        except BlobVaultError as exc:
            if exc.category is ErrorCategory.VALIDATION:
                raise
            raise _dependency_error(
                operation=operation, position=position, exc=exc
            ) from exc


def _coerce_namespace(namespace: Namespace | str) -> Namespace:
    if isinstance(namespace, Namespace):
        return validate_namespace(namespace.raw)
    return parse_namespace(namespace)


def _dependency_error(
    *, operation: str, position: int | None, exc: BlobVaultError
) -> StoreDependencyError:
    where = "" if position is None else f" at position {position}"
    return StoreDependencyError(
        message=f"{operation} failed{where}: {exc.message}",
        retryable=exc.retryable,
        operation=operation,
        position=position,
        cause=exc.to_error_detail(),
    )


def _stored_schema(document: object, position: int) -> StoredSchema:
    if (
        not isinstance(document, dict)
        or not isinstance(document.get("createdAt"), str)
        or not isinstance(document.get("version"), str)
    ):
        raise IndexCorruptError(
            message=f"position {position} does not hold a schema document",
            position=position,
        )
    return StoredSchema(
        fields=parse_schema_definition(document.get("schema")),
        created_at=document["createdAt"],
        version=document["version"],
        position=position,
    )


def _stored_record(document: object, position: int) -> StoredRecord:
    if (
        not isinstance(document, dict)
        or not isinstance(document.get("data"), dict)
        or not isinstance(document.get("createdAt"), str)
        or _parse_iso(document["createdAt"]) is None
    ):
        raise IndexCorruptError(
            message=f"position {position} does not hold a record document",
            position=position,
        )
    return StoredRecord(
        position=position,
        data=document["data"],
        created_at=document["createdAt"],
    )


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _iso(value: datetime) -> str:
    """Render ``value`` as ISO-8601 UTC with millisecond precision and ``Z``."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def _parse_iso(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
