"""CLI tests for blobvault Typer commands."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from actors.cli import main as cli_main
from resources.substrates.celestia.errors import RpcDisconnectedError
from resources.substrates.celestia.namespace import encode_namespace
from resources.substrates.celestia.node_info import NodeInfoReader
from services.state.record_authority.config import RecordAuthoritySettings
from services.state.record_authority.data import (
    SqliteLocalStateRepository,
    create_state_engine,
)
from services.state.record_authority.session import VaultSession
from services.state.record_authority.tests.fakes import FakeBlobSubstrate

NAMESPACE = encode_namespace("cli-tests").to_display_form()
SCHEMA = json.dumps(
    {"name": {"type": "string", "required": True}, "age": {"type": "number"}}
)


@dataclass
class _NodeTransport:
    """Transport double answering node info methods from canned results."""

    results: dict[str, Any] = field(
        default_factory=lambda: {
            "state.AccountAddress": "celestia1qqqsyqcyq5rqwzqf",
            "state.Balance": {"amount": "2500000", "denom": "utia"},
            "p2p.Info": {"ID": "12D3KooWPeer", "Addrs": ["/ip4/127.0.0.1/tcp/2121"]},
            "das.SamplingStats": {
                "head_of_sampled_chain": 90,
                "network_head_height": 100,
                "catch_up_done": False,
            },
        }
    )
    calls: list[str] = field(default_factory=list)

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        del params
        self.calls.append(method)
        return self.results[method]


@dataclass
class _Harness:
    substrate: FakeBlobSubstrate
    transport: _NodeTransport
    config_path: Path
    runner: CliRunner = field(default_factory=CliRunner)

    def invoke(self, *args: str, input: str | None = None) -> Any:
        return self.runner.invoke(
            cli_main.app,
            ["--config", str(self.config_path), *args],
            input=input,
        )


@pytest.fixture
def harness(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> _Harness:
    substrate = FakeBlobSubstrate()
    transport = _NodeTransport()
    settings = RecordAuthoritySettings(
        state_path=str(tmp_path / "state.db"), kdf_iterations=1_000
    )

    def _open_session(cfg: cli_main.CliConfig) -> VaultSession:
        del cfg
        repository = SqliteLocalStateRepository(
            create_state_engine(settings.resolved_state_path())
        )
        repository.create_schema()
        return VaultSession(
            settings=settings,
            substrate=substrate,
            repository=repository,
            node_info=NodeInfoReader(transport=transport),  # type: ignore[arg-type]
        )

    monkeypatch.setattr(cli_main, "_open_session", _open_session)
    monkeypatch.setattr(cli_main, "configure_logging", lambda **_: None)
    return _Harness(
        substrate=substrate,
        transport=transport,
        config_path=tmp_path / "missing.yaml",
    )


def test_namespace_generate_from_text(harness: _Harness) -> None:
    """Text input should produce the right-aligned user namespace."""

    result = harness.invoke("namespace", "generate", "cli-tests")

    assert result.exit_code == 0
    assert result.stdout.strip() == NAMESPACE


def test_namespace_generate_random_json(harness: _Harness) -> None:
    """Omitted text should yield a random version-0 namespace."""

    result = harness.invoke("--json", "namespace", "generate")

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["version"] == 0
    assert len(payload["namespace"]) == 58


def test_namespace_generate_rejects_long_text(harness: _Harness) -> None:
    """More than 10 bytes of identifier is a domain error."""

    result = harness.invoke("namespace", "generate", "eleven-char")

    assert result.exit_code == cli_main.DOMAIN_ERROR_EXIT_CODE
    assert "at most 10 bytes" in result.output


def test_namespace_validate_reserved_is_domain_error(harness: _Harness) -> None:
    """Reserved namespaces are refused with exit code 3."""

    result = harness.invoke("--json", "namespace", "validate", "00" * 28 + "01")

    assert result.exit_code == cli_main.DOMAIN_ERROR_EXIT_CODE
    error = json.loads(result.output.strip().splitlines()[-1])
    assert error["code"] == "NAMESPACE_INVALID"
    assert error["retryable"] is False


def test_db_end_to_end(harness: _Harness) -> None:
    """Init, add and list should round-trip through the encrypted store."""

    init = harness.invoke("db", "init", NAMESPACE, SCHEMA)
    assert init.exit_code == 0
    assert f"namespace {NAMESPACE}" in init.stdout

    first = harness.invoke("db", "add", '{"name": "Alice", "age": 30}')
    second = harness.invoke("db", "add", '{"name": "Bob"}')
    assert first.exit_code == 0
    assert second.exit_code == 0
    assert "Record stored at position" in first.stdout

    listed = harness.invoke("--json", "db", "list")
    assert listed.exit_code == 0
    payload = json.loads(listed.stdout)
    assert [record["data"]["name"] for record in payload["records"]] == [
        "Bob",
        "Alice",
    ]
    assert payload["failures"] == []
    assert payload["all_failed"] is False

    for stored in harness.substrate.blobs.values():
        assert b"Alice" not in stored


def test_db_add_schema_violation(harness: _Harness) -> None:
    """A missing required field fails before any submission."""

    harness.invoke("db", "init", NAMESPACE, SCHEMA)
    submitted = len(harness.substrate.submits)

    result = harness.invoke("db", "add", '{"age": 4}')

    assert result.exit_code == cli_main.DOMAIN_ERROR_EXIT_CODE
    assert "name" in result.output
    assert len(harness.substrate.submits) == submitted


def test_db_add_invalid_json_is_usage_error(harness: _Harness) -> None:
    """Malformed JSON arguments are rejected by the parser."""

    result = harness.invoke("db", "add", "{not json")

    assert result.exit_code == 2
    assert "DATA_JSON" in result.output


def test_db_add_disconnected_is_transport_error(harness: _Harness) -> None:
    """Retryable connectivity failures map to exit code 4."""

    harness.invoke("db", "init", NAMESPACE, SCHEMA)
    harness.substrate.submit_error = RpcDisconnectedError(message="connection lost")

    result = harness.invoke("db", "add", '{"name": "Carol"}')

    assert result.exit_code == cli_main.TRANSPORT_ERROR_EXIT_CODE
    assert "connection lost" in result.output


def test_db_schema_and_info(harness: _Harness) -> None:
    """Schema and info render the locally known database."""

    harness.invoke("db", "init", NAMESPACE, SCHEMA)

    schema = harness.invoke("db", "schema")
    info = harness.invoke("db", "info")

    assert schema.exit_code == 0
    assert "name: string (required)" in schema.stdout
    assert "age: number" in schema.stdout
    assert info.exit_code == 0
    assert f"Namespace: {NAMESPACE}" in info.stdout
    assert "Secret token: present" in info.stdout


def test_db_info_without_database(harness: _Harness) -> None:
    result = harness.invoke("db", "info")

    assert result.exit_code == 0
    assert "No database initialized." in result.stdout


def test_db_list_before_init_is_domain_error(harness: _Harness) -> None:
    result = harness.invoke("db", "list")

    assert result.exit_code == cli_main.DOMAIN_ERROR_EXIT_CODE


def test_db_reset_declined_keeps_state(harness: _Harness) -> None:
    """Answering no at the prompt refuses the reset."""

    harness.invoke("db", "init", NAMESPACE, SCHEMA)

    result = harness.invoke("db", "reset", input="n\n")

    assert result.exit_code == cli_main.DOMAIN_ERROR_EXIT_CODE
    info = harness.invoke("db", "info")
    assert f"Namespace: {NAMESPACE}" in info.stdout


def test_db_reset_with_yes_clears_state(harness: _Harness) -> None:
    """`--yes` skips the prompt and forgets the database."""

    harness.invoke("db", "init", NAMESPACE, SCHEMA)
    harness.invoke("db", "add", '{"name": "Alice"}')

    reset = harness.invoke("db", "reset", "--yes")
    assert reset.exit_code == 0
    assert "Local state cleared." in reset.stdout

    info = harness.invoke("db", "info")
    assert "No database initialized." in info.stdout


def test_blob_submit_and_get(harness: _Harness) -> None:
    """Raw blobs are stored unencrypted and read back as text."""

    submitted = harness.invoke("--json", "blob", "submit", NAMESPACE, "hello")
    assert submitted.exit_code == 0
    height = json.loads(submitted.stdout)["height"]

    fetched = harness.invoke("blob", "get", str(height), NAMESPACE)

    assert fetched.exit_code == 0
    assert fetched.stdout.strip() == "hello"


def test_blob_get_missing_is_domain_error(harness: _Harness) -> None:
    result = harness.invoke("blob", "get", "7", NAMESPACE)

    assert result.exit_code == cli_main.DOMAIN_ERROR_EXIT_CODE


def test_node_info_human_output(harness: _Harness) -> None:
    """Node info gathers address, balance, peer and sampling state."""

    result = harness.invoke("node", "info")

    assert result.exit_code == 0
    assert "Address: celestia1qqqsyqcyq5rqwzqf" in result.stdout
    assert "Balance: 2500000 utia" in result.stdout
    assert "Peer ID: 12D3KooWPeer" in result.stdout
    assert "Sampling: 90/100" in result.stdout
    assert sorted(harness.transport.calls) == [
        "das.SamplingStats",
        "p2p.Info",
        "state.AccountAddress",
        "state.Balance",
    ]


def test_invalid_config_file_is_domain_error(
    harness: _Harness, tmp_path: Path
) -> None:
    """A config file that does not hold a mapping fails before any command."""

    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")

    result = harness.runner.invoke(
        cli_main.app, ["--config", str(bad), "namespace", "generate"]
    )

    assert result.exit_code == cli_main.DOMAIN_ERROR_EXIT_CODE
    assert "top-level mapping" in result.output


def test_checked_listing_flags_all_undecryptable() -> None:
    """Listings where every entry fails decryption become an error."""

    from packages.blobvault_shared.crypto import DecryptionFailedError
    from services.state.record_authority.domain import EntryFailure, RecordListing

    detail = DecryptionFailedError().to_error_detail()
    listing = RecordListing(
        records=[],
        failures=[EntryFailure(position=5, error=detail)],
        index_size=1,
    )

    with pytest.raises(DecryptionFailedError):
        cli_main._checked_listing(listing)
