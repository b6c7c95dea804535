"""Celestia substrate modules: namespace codec, RPC transport and blob access."""

from resources.substrates.celestia.celestia_substrate import RpcBlobSubstrate
from resources.substrates.celestia.component import RESOURCE_COMPONENT_ID
from resources.substrates.celestia.config import (
    CelestiaSettings,
    resolve_celestia_settings,
)
from resources.substrates.celestia.namespace import (
    Namespace,
    encode_namespace,
    from_display_form,
    parse_namespace,
    random_namespace,
    to_display_form,
    validate_namespace,
)
from resources.substrates.celestia.node_info import NodeInfoReader
from resources.substrates.celestia.substrate import (
    Blob,
    BlobSubstrate,
    SubmitOptions,
    SubmitResult,
    SubstrateHealthStatus,
)
from resources.substrates.celestia.transport import ConnectionState, RpcTransport

__all__ = [
    "RESOURCE_COMPONENT_ID",
    "Blob",
    "BlobSubstrate",
    "CelestiaSettings",
    "ConnectionState",
    "Namespace",
    "NodeInfoReader",
    "RpcBlobSubstrate",
    "RpcTransport",
    "SubmitOptions",
    "SubmitResult",
    "SubstrateHealthStatus",
    "encode_namespace",
    "from_display_form",
    "parse_namespace",
    "random_namespace",
    "resolve_celestia_settings",
    "to_display_form",
    "validate_namespace",
]
