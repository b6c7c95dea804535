"""Normalization of the response shapes nodes return for blob calls.

Nodes of different versions answer ``blob.Submit`` and ``blob.Get`` with a
handful of shapes. Everything recognized is mapped onto one normalized form;
anything else fails closed with ``SubstrateResponseShapeError``.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Any

from resources.substrates.celestia.errors import SubstrateResponseShapeError


@dataclass(frozen=True)
class SubmitPayload:
    height: int
    commitment: str | None = None


@dataclass(frozen=True)
class BlobPayload:
    namespace_b64: str | None
    data: bytes
    share_version: int = 0
    commitment: str | None = None
    height: int | None = None


def parse_submit_response(method: str, result: Any) -> SubmitPayload:
    """Accept a bare height, ``{"height": ...}`` or a one-element list of either."""
    if isinstance(result, list) and len(result) == 1:
        result = result[0]

    height = _as_height(result)
    if height is not None:
        return SubmitPayload(height=height)

    if isinstance(result, dict):
        height = _as_height(result.get("height"))
        if height is not None:
            commitment = result.get("commitment")
            return SubmitPayload(
                height=height,
                commitment=commitment if isinstance(commitment, str) else None,
            )

    raise _shape_error(method, "submit response carries no block height")


def parse_blob_response(method: str, result: Any) -> BlobPayload | None:
    """Accept a blob object, a list of blobs or ``{"blobs": [...]}``.

    ``None`` (and an empty list) mean the position holds no blob for the
    namespace.
    """
    if result is None:
        return None
    if isinstance(result, dict) and "blobs" in result:
        result = result["blobs"]
    if isinstance(result, list):
        if len(result) == 0:
            return None
        result = result[0]
    if not isinstance(result, dict):
        raise _shape_error(method, "blob response is not an object")

    raw_data = result.get("data")
    if not isinstance(raw_data, str):
        raise _shape_error(method, "blob response has no base64 data field")
    try:
        data = base64.b64decode(raw_data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise _shape_error(method, "blob data is not valid base64") from exc

    namespace = result.get("namespace")
    share_version = result.get("share_version", 0)
    commitment = result.get("commitment")
    return BlobPayload(
        namespace_b64=namespace if isinstance(namespace, str) else None,
        data=data,
        share_version=share_version if isinstance(share_version, int) else 0,
        commitment=commitment if isinstance(commitment, str) else None,
        height=_as_height(result.get("height")),
    )


def _as_height(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None


def _shape_error(method: str, detail: str) -> SubstrateResponseShapeError:
    return SubstrateResponseShapeError(
        message=f"unrecognized {method} response: {detail}",
        method=method,
    )
