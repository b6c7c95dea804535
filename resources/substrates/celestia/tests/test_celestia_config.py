"""Unit tests for Celestia substrate settings resolution."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from packages.blobvault_shared.config import load_settings
from resources.substrates.celestia.config import (
    CelestiaSettings,
    resolve_celestia_settings,
)


def test_defaults_match_local_light_node() -> None:
    settings = CelestiaSettings()

    assert settings.url == "ws://localhost:26658"
    assert settings.connect_timeout_seconds == 1.0
    assert settings.reconnect_max_attempts == 5
    assert settings.reconnect_max_delay_seconds == 5.0


def test_resolve_reads_grouped_component_namespace(tmp_path) -> None:
    settings = load_settings(
        config_path=tmp_path / "missing.yaml",
        environ={
            "BLOBVAULT_COMPONENTS__SUBSTRATE__CELESTIA__URL": "wss://node.example:443",
            "BLOBVAULT_COMPONENTS__SUBSTRATE__CELESTIA__RECONNECT_MAX_ATTEMPTS": "2",
        },
    )

    resolved = resolve_celestia_settings(settings)

    assert resolved.url == "wss://node.example:443"
    assert resolved.reconnect_max_attempts == 2


def test_auth_token_env_reference_is_resolved(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NODE_TOKEN", "secret-value")

    settings = CelestiaSettings(auth_token_env="NODE_TOKEN")

    assert settings.auth_token == "secret-value"
    assert "secret-value" not in repr(settings)


def test_auth_token_and_env_are_mutually_exclusive() -> None:
    with pytest.raises(ValidationError):
        CelestiaSettings(auth_token="a", auth_token_env="B")


def test_non_websocket_url_is_rejected() -> None:
    with pytest.raises(ValidationError):
        CelestiaSettings(url="http://localhost:26658")


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValidationError):
        CelestiaSettings.model_validate({"endpoint": "ws://x"})
