"""blobvault CLI actor implemented with Typer."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import sys
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable

import typer
from packages.blobvault_shared.config import (
    DEFAULT_CONFIG_PATH,
    BlobVaultSettings,
    load_settings,
)
from packages.blobvault_shared.crypto import DecryptionFailedError
from packages.blobvault_shared.errors import BlobVaultError, codes
from packages.blobvault_shared.logging import configure_logging
from resources.substrates.celestia import (
    Namespace,
    encode_namespace,
    parse_namespace,
    random_namespace,
)
from services.state.record_authority import (
    DefaultRecordAuthorityService,
    RecordListing,
    VaultSession,
)

SUCCESS_EXIT_CODE = 0
DOMAIN_ERROR_EXIT_CODE = 3
TRANSPORT_ERROR_EXIT_CODE = 4

_QUIET_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options shared by every command."""

    settings: BlobVaultSettings
    as_json: bool


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date, Decimal, Path)):
        return str(value)
    if isinstance(value, Namespace):
        return value.to_display_form()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _serialize(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="python"))
    return str(value)


def _emit_output(
    result: Any, as_json: bool, render: Callable[[Any], str] | None = None
) -> None:
    """Render command output in requested format."""

    data = _serialize(result)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    if render is not None:
        typer.echo(render(data))
        return
    if data is None:
        typer.echo("ok")
        return
    if isinstance(data, (dict, list)):
        typer.echo(json.dumps(data, indent=2, sort_keys=True))
        return
    typer.echo(str(data))


def _emit_error(exc: Exception, as_json: bool) -> None:
    """Render mapped errors to stderr."""

    if as_json:
        payload: dict[str, Any] = {"error": str(exc)}
        if isinstance(exc, BlobVaultError):
            payload["code"] = exc.code
            payload["retryable"] = exc.retryable
        typer.echo(json.dumps(payload, sort_keys=True), err=True)
        return
    typer.echo(f"error: {exc}", err=True)


def _exit_code_for(exc: BlobVaultError) -> int:
    """Retryable connectivity failures are transport errors; the rest are domain."""
    return TRANSPORT_ERROR_EXIT_CODE if exc.retryable else DOMAIN_ERROR_EXIT_CODE


def _open_session(cfg: CliConfig) -> VaultSession:
    """Return one session built from global CLI settings."""
    return VaultSession.from_settings(cfg.settings)


def _run_local(
    cfg: CliConfig,
    invoke: Callable[[], Any],
    render: Callable[[Any], str] | None = None,
) -> None:
    """Execute one offline call and map outputs/errors to process semantics."""
    try:
        result = invoke()
    except BlobVaultError as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=_exit_code_for(exc)) from exc

    _emit_output(result, cfg.as_json, render)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _run_command(
    cfg: CliConfig,
    invoke: Callable[[VaultSession], Awaitable[Any]],
    render: Callable[[Any], str] | None = None,
) -> None:
    """Execute one session-backed call and map outputs/errors to process semantics."""

    async def _scoped() -> Any:
        async with _open_session(cfg) as session:
            return await invoke(session)

    _run_local(cfg, lambda: asyncio.run(_scoped()), render)


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


def _parse_json_argument(raw: str, *, name: str) -> Any:
    """Decode one JSON command argument or fail as a usage error."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{name} must be valid JSON: {exc.msg}") from exc


def _namespace_payload(namespace: Namespace) -> dict[str, Any]:
    return {
        "namespace": namespace.to_display_form(),
        "base64": namespace.to_base64(),
        "version": namespace.version,
    }


def _render_namespace(data: dict[str, Any]) -> str:
    return str(data["namespace"])


def _render_init(data: dict[str, Any]) -> str:
    return (
        f"Database initialized in namespace {data['namespace']} "
        f"at position {data['position']}"
    )


def _render_pointer(data: dict[str, Any]) -> str:
    return f"Record stored at position {data['position']}"


def _render_listing(data: dict[str, Any]) -> str:
    """Render records newest first, then unreadable positions."""
    records = data.get("records", [])
    failures = data.get("failures", [])
    if len(records) == 0 and len(failures) == 0:
        return "No records found."
    lines: list[str] = []
    for record in records:
        body = json.dumps(record.get("data", {}), sort_keys=True)
        lines.append(f"- [{record['position']}] {record['created_at']} {body}")
    for failure in failures:
        error = failure.get("error", {})
        lines.append(
            f"! [{failure['position']}] {error.get('code', '')}: "
            f"{error.get('message', '')}"
        )
    return "\n".join(lines)


def _render_schema(data: dict[str, Any]) -> str:
    lines = [
        f"Schema v{data['version']} at position {data['position']} "
        f"(created {data['created_at']})"
    ]
    for name in sorted(data["fields"]):
        spec = data["fields"][name]
        marker = " (required)" if spec.get("required") else ""
        lines.append(f"  {name}: {spec['type']}{marker}")
    return "\n".join(lines)


def _render_info(data: dict[str, Any] | None) -> str:
    if data is None:
        return "No database initialized."
    token = "present" if data["has_token"] else "missing"
    return "\n".join(
        [
            f"Namespace: {data['namespace']}",
            f"Schema position: {data['schema_position']}",
            f"Indexed records: {data['index_size']}",
            f"Secret token: {token}",
        ]
    )


def _render_submit(data: dict[str, Any]) -> str:
    return f"Blob submitted at height {data['height']} in namespace {data['namespace']}"


def _render_blob(data: dict[str, Any]) -> str:
    return str(data["data"])


def _render_node_info(data: dict[str, Any]) -> str:
    balance = data["balance"]
    peer = data["p2p"]
    sampling = data["sampling"]
    lines = [
        f"Address: {data['address']}",
        f"Balance: {balance['amount']} {balance['denom']}",
        f"Peer ID: {peer['id']}",
    ]
    for address in peer.get("addrs", []):
        lines.append(f"  {address}")
    lines.append(
        f"Sampling: {sampling['head_of_sampled_chain']}/"
        f"{sampling['network_head_height']}"
        f"{' (catch-up done)' if sampling.get('catch_up_done') else ''}"
    )
    return "\n".join(lines)


def _checked_listing(listing: RecordListing) -> RecordListing:
    """Fail when every indexed entry exists but none decrypts."""
    if listing.all_failed and all(
        failure.error.code == codes.DECRYPTION_FAILED for failure in listing.failures
    ):
        raise DecryptionFailedError(
            message=(
                f"none of the {listing.index_size} indexed records could be "
                "decrypted; the local secret token was probably reset"
            ),
            reason="token",
        )
    return listing


app = typer.Typer(no_args_is_help=True, help="blobvault command-line interface")
namespace_app = typer.Typer(help="Namespace codec commands")
db_app = typer.Typer(help="Encrypted record store commands")
blob_app = typer.Typer(help="Raw blob commands")
node_app = typer.Typer(help="Node information commands")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        envvar="BLOBVAULT_CONFIG",
        help="Path to the YAML configuration file",
    ),
    node_url: str | None = typer.Option(
        None, "--node-url", help="Node JSON-RPC websocket URL"
    ),
    state_path: str | None = typer.Option(
        None, "--state-path", help="Local state SQLite file"
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at the configured level"
    ),
) -> None:
    """Load settings and store global options for all commands."""

    cli_params: dict[str, Any] = {}
    if node_url is not None:
        cli_params.setdefault("components", {}).setdefault("substrate", {})[
            "celestia"
        ] = {"url": node_url}
    if state_path is not None:
        cli_params.setdefault("components", {}).setdefault("service", {})[
            "record_authority"
        ] = {"state_path": state_path}

    try:
        settings = load_settings(cli_params=cli_params, config_path=config)
    except ValueError as exc:
        _emit_error(exc, as_json)
        raise typer.Exit(code=DOMAIN_ERROR_EXIT_CODE) from exc

    configure_logging(
        level=settings.logging.level if verbose else _QUIET_LOG_LEVEL,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
        stream=sys.stderr,
    )
    ctx.obj = CliConfig(settings=settings, as_json=as_json)


@namespace_app.command("generate")
def namespace_generate(
    ctx: typer.Context,
    text: str | None = typer.Argument(
        None, help="Up to 10 bytes of identifier; random when omitted"
    ),
) -> None:
    """Build a user namespace from text, or a random one."""
    cfg = _require_config(ctx)
    _run_local(
        cfg,
        lambda: _namespace_payload(
            random_namespace() if text is None else encode_namespace(text)
        ),
        _render_namespace,
    )


@namespace_app.command("validate")
def namespace_validate(
    ctx: typer.Context,
    namespace: str = typer.Argument(..., help="Namespace in hex or base64 form"),
) -> None:
    """Check that a namespace is writable."""
    cfg = _require_config(ctx)
    _run_local(
        cfg,
        lambda: _namespace_payload(parse_namespace(namespace)),
        lambda data: f"{data['namespace']} is a valid namespace",
    )


@db_app.command("init")
def db_init(
    ctx: typer.Context,
    namespace: str = typer.Argument(..., help="Namespace in hex or base64 form"),
    schema_json: str = typer.Argument(
        ..., help='Schema, e.g. {"name": {"type": "string", "required": true}}'
    ),
) -> None:
    """Create a database in a namespace with the given schema."""
    cfg = _require_config(ctx)
    definition = _parse_json_argument(schema_json, name="SCHEMA_JSON")
    _run_command(
        cfg,
        lambda session: DefaultRecordAuthorityService(session=session).init_schema(
            namespace=namespace, definition=definition
        ),
        _render_init,
    )


@db_app.command("add")
def db_add(
    ctx: typer.Context,
    data_json: str = typer.Argument(..., help="Record as a JSON object"),
) -> None:
    """Validate and store one record."""
    cfg = _require_config(ctx)
    data = _parse_json_argument(data_json, name="DATA_JSON")
    _run_command(
        cfg,
        lambda session: DefaultRecordAuthorityService(session=session).append_record(
            data=data
        ),
        _render_pointer,
    )


@db_app.command("list")
def db_list(ctx: typer.Context) -> None:
    """List every readable record, newest first."""
    cfg = _require_config(ctx)

    async def _invoke(session: VaultSession) -> dict[str, Any]:
        listing = await DefaultRecordAuthorityService(session=session).list_records()
        _checked_listing(listing)
        return {**listing.model_dump(mode="python"), "all_failed": listing.all_failed}

    _run_command(cfg, _invoke, _render_listing)


@db_app.command("schema")
def db_schema(ctx: typer.Context) -> None:
    """Show the database schema."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda session: DefaultRecordAuthorityService(session=session).get_schema(),
        _render_schema,
    )


@db_app.command("info")
def db_info(ctx: typer.Context) -> None:
    """Summarize local database state without contacting the node."""
    cfg = _require_config(ctx)

    async def _invoke(session: VaultSession) -> Any:
        return DefaultRecordAuthorityService(session=session).database_info()

    _run_command(cfg, _invoke, _render_info)


@db_app.command("reset")
def db_reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Forget the local database: namespace, index and secret token."""
    cfg = _require_config(ctx)
    confirmed = yes or typer.confirm(
        "This makes every stored record permanently unreadable from this "
        "machine. Continue?",
        default=False,
    )

    async def _invoke(session: VaultSession) -> None:
        DefaultRecordAuthorityService(session=session).reset_local_state(
            confirm=confirmed
        )

    _run_command(cfg, _invoke, lambda _: "Local state cleared.")


@blob_app.command("submit")
def blob_submit(
    ctx: typer.Context,
    namespace: str = typer.Argument(..., help="Namespace in hex or base64 form"),
    text: str = typer.Argument(..., help="Plain text to store as-is"),
) -> None:
    """Submit one unencrypted blob."""
    cfg = _require_config(ctx)

    async def _invoke(session: VaultSession) -> dict[str, Any]:
        result = await session.substrate.submit(
            namespace=parse_namespace(namespace), data=text.encode("utf-8")
        )
        return {
            "height": result.height,
            "namespace": result.namespace,
            "commitment": result.commitment,
        }

    _run_command(cfg, _invoke, _render_submit)


@blob_app.command("get")
def blob_get(
    ctx: typer.Context,
    height: int = typer.Argument(..., min=0, help="Block height"),
    namespace: str = typer.Argument(..., help="Namespace in hex or base64 form"),
) -> None:
    """Fetch one blob and print its data as text."""
    cfg = _require_config(ctx)

    async def _invoke(session: VaultSession) -> dict[str, Any]:
        blob = await session.substrate.get(
            height=height, namespace=parse_namespace(namespace)
        )
        return {
            "height": blob.height,
            "namespace": blob.namespace,
            "data": blob.data,
            "share_version": blob.share_version,
            "commitment": blob.commitment,
        }

    _run_command(cfg, _invoke, _render_blob)


@node_app.command("info")
def node_info(ctx: typer.Context) -> None:
    """Show account, balance, peer and sampling state of the node."""
    cfg = _require_config(ctx)

    async def _invoke(session: VaultSession) -> dict[str, Any]:
        reader = session.node_info
        if reader is None:
            raise RuntimeError("session has no node connection")
        address, balance, peer, sampling = await asyncio.gather(
            reader.account_address(),
            reader.balance(),
            reader.p2p_info(),
            reader.sampling_stats(),
        )
        return {
            "address": address,
            "balance": balance,
            "p2p": peer,
            "sampling": sampling,
        }

    _run_command(cfg, _invoke, _render_node_info)


app.add_typer(namespace_app, name="namespace")
app.add_typer(db_app, name="db")
app.add_typer(blob_app, name="blob")
app.add_typer(node_app, name="node")


if __name__ == "__main__":
    app()
