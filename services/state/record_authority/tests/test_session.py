"""Tests for VaultSession construction and key handling."""

from __future__ import annotations

import asyncio
from pathlib import Path

from packages.blobvault_shared.config import load_settings
from resources.substrates.celestia import ConnectionState, RpcBlobSubstrate
from services.state.record_authority.session import VaultSession


def _session(tmp_path: Path) -> VaultSession:
    settings = load_settings(
        config_path=tmp_path / "absent.yaml",
        environ={},
        cli_params={
            "components": {
                "service": {
                    "record_authority": {
                        "state_path": str(tmp_path / "state.db"),
                        "kdf_iterations": 1000,
                    }
                },
                "substrate": {"celestia": {"url": "ws://127.0.0.1:1"}},
            }
        },
    )
    return VaultSession.from_settings(settings)


def test_from_settings_builds_owned_resources(tmp_path: Path) -> None:
    session = _session(tmp_path)
    try:
        assert isinstance(session.substrate, RpcBlobSubstrate)
        assert session.transport is not None
        assert session.transport.state is ConnectionState.DISCONNECTED
        assert session.node_info is not None
        assert session.settings.kdf_iterations == 1000
        assert (tmp_path / "state.db").exists()
    finally:
        asyncio.run(session.close())


def test_derived_key_is_created_once_and_cached(tmp_path: Path) -> None:
    session = _session(tmp_path)
    try:
        assert session.derived_key(create=False) is None
        assert session.has_token() is False

        first = session.derived_key()
        second = session.derived_key()

        assert first is second
        assert session.has_token() is True
    finally:
        asyncio.run(session.close())


def test_new_token_yields_new_key(tmp_path: Path) -> None:
    session = _session(tmp_path)
    try:
        first = session.derived_key()
        session.repository.clear_token()

        second = session.derived_key()

        assert second is not None
        assert first != second
    finally:
        asyncio.run(session.close())


def test_session_is_an_async_context_manager(tmp_path: Path) -> None:
    async def scenario() -> None:
        async with _session(tmp_path) as session:
            assert session.has_token() is False

    asyncio.run(scenario())
