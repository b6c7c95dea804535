"""Behavior tests for the Record Authority service over a fake substrate."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from resources.substrates.celestia.errors import (
    NamespaceInvalidError,
    RpcDisconnectedError,
    SubstrateRejectedError,
)
from resources.substrates.celestia.namespace import encode_namespace
from services.state.record_authority.errors import (
    DatabaseAlreadyInitializedError,
    DatabaseNotInitializedError,
    ResetNotConfirmedError,
    SchemaInvalidError,
    SchemaViolationError,
    StoreDependencyError,
)
from services.state.record_authority.tests.fakes import (
    FakeBlobSubstrate,
    build_service,
)

NAME_SCHEMA = {"name": {"type": "string", "required": True}}


def test_init_append_list_round_trip(tmp_path: Path) -> None:
    """Init, one valid append, one rejected append, then list one record."""
    substrate = FakeBlobSubstrate()
    service = build_service(tmp_path, substrate)
    namespace = encode_namespace("people")

    async def scenario() -> None:
        initialized = await service.init_schema(
            namespace=namespace, definition=NAME_SCHEMA
        )
        assert initialized.namespace == namespace.to_display_form()
        assert initialized.position == 101

        pointer = await service.append_record(data={"name": "a"})
        assert pointer.position == 102

        with pytest.raises(SchemaViolationError) as exc_info:
            await service.append_record(data={})
        assert exc_info.value.field_name == "name"
        assert exc_info.value.reason == "required"
        assert len(substrate.submits) == 2

        listing = await service.list_records()
        assert [record.data for record in listing.records] == [{"name": "a"}]
        assert listing.failures == []
        assert listing.all_failed is False

    asyncio.run(scenario())


def test_list_after_token_loss_reports_failures_not_records(tmp_path: Path) -> None:
    service = build_service(tmp_path)

    async def scenario() -> None:
        await service.init_schema(
            namespace=encode_namespace("people"), definition=NAME_SCHEMA
        )
        await service.append_record(data={"name": "a"})
        await service.append_record(data={"name": "b"})

        service.session.repository.clear_token()
        listing = await service.list_records()

        assert listing.records == []
        assert len(listing.failures) == 2
        assert listing.all_failed is True
        assert {failure.error.code for failure in listing.failures} == {
            "DECRYPTION_FAILED"
        }

    asyncio.run(scenario())


def test_payloads_on_substrate_are_opaque(tmp_path: Path) -> None:
    substrate = FakeBlobSubstrate()
    service = build_service(tmp_path, substrate)

    async def scenario() -> None:
        await service.init_schema(
            namespace=encode_namespace("people"), definition=NAME_SCHEMA
        )
        await service.append_record(data={"name": "distinctive-value"})

    asyncio.run(scenario())

    for call in substrate.submits:
        assert b"distinctive-value" not in call.data


def test_init_rejects_reserved_namespace_before_network(tmp_path: Path) -> None:
    substrate = FakeBlobSubstrate()
    service = build_service(tmp_path, substrate)

    with pytest.raises(NamespaceInvalidError) as exc_info:
        asyncio.run(
            service.init_schema(namespace="00" * 28 + "04", definition=NAME_SCHEMA)
        )

    assert exc_info.value.rule == "reserved"
    assert substrate.submits == []
    assert service.database_info() is None


def test_init_rejects_invalid_schema_before_network(tmp_path: Path) -> None:
    substrate = FakeBlobSubstrate()
    service = build_service(tmp_path, substrate)

    with pytest.raises(SchemaInvalidError):
        asyncio.run(
            service.init_schema(
                namespace=encode_namespace("people"),
                definition={"name": {"type": "text"}},
            )
        )

    assert substrate.submits == []


def test_init_refuses_when_database_already_exists(tmp_path: Path) -> None:
    substrate = FakeBlobSubstrate()
    service = build_service(tmp_path, substrate)

    async def scenario() -> None:
        await service.init_schema(
            namespace=encode_namespace("people"), definition=NAME_SCHEMA
        )
        with pytest.raises(DatabaseAlreadyInitializedError):
            await service.init_schema(
                namespace=encode_namespace("other"), definition=NAME_SCHEMA
            )

    asyncio.run(scenario())

    assert len(substrate.submits) == 1


def test_operations_require_initialized_database(tmp_path: Path) -> None:
    service = build_service(tmp_path)

    with pytest.raises(DatabaseNotInitializedError):
        asyncio.run(service.append_record(data={"name": "a"}))
    with pytest.raises(DatabaseNotInitializedError):
        asyncio.run(service.list_records())
    with pytest.raises(DatabaseNotInitializedError):
        asyncio.run(service.get_schema())


def test_list_returns_newest_first(tmp_path: Path) -> None:
    service = build_service(tmp_path)

    async def scenario() -> list[str]:
        await service.init_schema(
            namespace=encode_namespace("people"), definition=NAME_SCHEMA
        )
        for name in ("first", "second", "third"):
            await service.append_record(data={"name": name})
        listing = await service.list_records()
        return [record.data["name"] for record in listing.records]

    assert asyncio.run(scenario()) == ["third", "second", "first"]


def test_one_unreadable_position_does_not_abort_siblings(tmp_path: Path) -> None:
    substrate = FakeBlobSubstrate()
    service = build_service(tmp_path, substrate)

    async def scenario() -> None:
        await service.init_schema(
            namespace=encode_namespace("people"), definition=NAME_SCHEMA
        )
        await service.append_record(data={"name": "kept"})
        lost = await service.append_record(data={"name": "lost"})
        substrate.get_errors[lost.position] = RpcDisconnectedError(
            message="connection to node lost"
        )

        listing = await service.list_records()

        assert [record.data["name"] for record in listing.records] == ["kept"]
        assert len(listing.failures) == 1
        failure = listing.failures[0]
        assert failure.position == lost.position
        assert failure.error.code == "DEPENDENCY_FAILURE"
        assert failure.error.retryable is True
        assert failure.error.metadata["cause_code"] == "DISCONNECTED"
        assert listing.all_failed is False

    asyncio.run(scenario())


def test_substrate_rejection_surfaces_as_non_retryable_dependency_error(
    tmp_path: Path,
) -> None:
    substrate = FakeBlobSubstrate()
    service = build_service(tmp_path, substrate)

    async def scenario() -> None:
        await service.init_schema(
            namespace=encode_namespace("people"), definition=NAME_SCHEMA
        )
        substrate.submit_error = SubstrateRejectedError(
            message="node rejected blob.Submit: insufficient fee",
            rpc_code=11,
            rpc_message="insufficient fee",
        )
        with pytest.raises(StoreDependencyError) as exc_info:
            await service.append_record(data={"name": "a"})

        assert exc_info.value.operation == "append_record"
        assert exc_info.value.retryable is False
        assert exc_info.value.cause.code == "SUBSTRATE_REJECTED"
        assert service.session.repository.index_size() == 0

    asyncio.run(scenario())


def test_disconnect_during_append_is_retryable(tmp_path: Path) -> None:
    substrate = FakeBlobSubstrate()
    service = build_service(tmp_path, substrate)

    async def scenario() -> None:
        await service.init_schema(
            namespace=encode_namespace("people"), definition=NAME_SCHEMA
        )
        substrate.submit_error = RpcDisconnectedError(message="connection lost")
        with pytest.raises(StoreDependencyError) as exc_info:
            await service.append_record(data={"name": "a"})
        assert exc_info.value.retryable is True

    asyncio.run(scenario())


def test_get_schema_refetches_and_recaches_when_cache_is_empty(tmp_path: Path) -> None:
    substrate = FakeBlobSubstrate()
    service = build_service(tmp_path, substrate)

    async def scenario() -> None:
        initialized = await service.init_schema(
            namespace=encode_namespace("people"), definition=NAME_SCHEMA
        )
        service.session.repository.clear_cached_schema()

        schema = await service.get_schema()

        assert schema.position == initialized.position
        assert schema.version == "1.0"
        assert schema.definition() == {"name": {"type": "string", "required": True}}
        assert substrate.gets == [initialized.position]
        assert service.session.repository.get_cached_schema() is not None

        await service.get_schema()
        assert substrate.gets == [initialized.position]

    asyncio.run(scenario())


def test_database_info_reports_local_state(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    namespace = encode_namespace("people")

    assert service.database_info() is None

    async def scenario() -> None:
        await service.init_schema(namespace=namespace, definition=NAME_SCHEMA)
        await service.append_record(data={"name": "a"})

    asyncio.run(scenario())
    info = service.database_info()

    assert info is not None
    assert info.namespace == namespace.to_display_form()
    assert info.schema_position == 101
    assert info.index_size == 1
    assert info.has_token is True


def test_reset_requires_confirmation_then_clears_everything(tmp_path: Path) -> None:
    service = build_service(tmp_path)
    asyncio.run(
        service.init_schema(
            namespace=encode_namespace("people"), definition=NAME_SCHEMA
        )
    )

    with pytest.raises(ResetNotConfirmedError):
        service.reset_local_state(confirm=False)
    assert service.database_info() is not None

    service.reset_local_state(confirm=True)

    assert service.database_info() is None
    assert service.session.has_token() is False
    assert service.session.repository.index_size() == 0
