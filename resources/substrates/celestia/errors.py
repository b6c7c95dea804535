"""Typed failures raised by the Celestia substrate and its transport."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from packages.blobvault_shared.errors import BlobVaultError, ErrorCategory, codes


@dataclass(kw_only=True, eq=False)
class NamespaceInvalidError(BlobVaultError):
    """Raised when a candidate namespace violates one structural rule."""

    code: ClassVar[str] = codes.NAMESPACE_INVALID
    category: ClassVar[ErrorCategory] = ErrorCategory.VALIDATION

    rule: str

    def error_metadata(self) -> dict[str, str]:
        return {**super().error_metadata(), "rule": self.rule}


@dataclass(kw_only=True, eq=False)
class NamespaceInputTooLongError(BlobVaultError):
    """Raised when user text does not fit the 10-byte namespace identifier."""

    code: ClassVar[str] = codes.NAMESPACE_INPUT_TOO_LONG
    category: ClassVar[ErrorCategory] = ErrorCategory.VALIDATION

    length: int

    def error_metadata(self) -> dict[str, str]:
        return {**super().error_metadata(), "length": str(self.length)}


@dataclass(kw_only=True, eq=False)
class RpcConnectionTimeoutError(BlobVaultError):
    """Raised when the node connection is not established within the window."""

    code: ClassVar[str] = codes.CONNECTION_TIMEOUT
    category: ClassVar[ErrorCategory] = ErrorCategory.DEPENDENCY

    retryable: bool = True
    url: str = ""


@dataclass(kw_only=True, eq=False)
class RpcDisconnectedError(BlobVaultError):
    """Raised when the connection drops or reconnects are exhausted."""

    code: ClassVar[str] = codes.DISCONNECTED
    category: ClassVar[ErrorCategory] = ErrorCategory.DEPENDENCY

    terminal: bool = False

    def __post_init__(self) -> None:
        self.retryable = not self.terminal

    def error_metadata(self) -> dict[str, str]:
        return {**super().error_metadata(), "terminal": str(self.terminal).lower()}


@dataclass(kw_only=True, eq=False)
class RpcRequestTimeoutError(BlobVaultError):
    """Raised when one in-flight call gets no response within its deadline."""

    code: ClassVar[str] = codes.REQUEST_TIMEOUT
    category: ClassVar[ErrorCategory] = ErrorCategory.DEPENDENCY

    retryable: bool = True
    method: str = ""


@dataclass(kw_only=True, eq=False)
class SubstrateRejectedError(BlobVaultError):
    """Raised when the node answers a call with a JSON-RPC error object."""

    code: ClassVar[str] = codes.SUBSTRATE_REJECTED
    category: ClassVar[ErrorCategory] = ErrorCategory.DEPENDENCY

    rpc_code: int
    rpc_message: str
    method: str = ""

    def error_metadata(self) -> dict[str, str]:
        return {
            **super().error_metadata(),
            "rpc_code": str(self.rpc_code),
            "method": self.method,
        }


@dataclass(kw_only=True, eq=False)
class SubstrateResponseShapeError(BlobVaultError):
    """Raised when a response does not match any recognized shape."""

    code: ClassVar[str] = codes.SUBSTRATE_RESPONSE_SHAPE
    category: ClassVar[ErrorCategory] = ErrorCategory.DEPENDENCY

    method: str = ""

    def error_metadata(self) -> dict[str, str]:
        return {**super().error_metadata(), "method": self.method}


@dataclass(kw_only=True, eq=False)
class BlobNotFoundError(BlobVaultError):
    """Raised when no blob exists at the requested height and namespace."""

    code: ClassVar[str] = codes.BLOB_NOT_FOUND
    category: ClassVar[ErrorCategory] = ErrorCategory.NOT_FOUND

    height: int

    def error_metadata(self) -> dict[str, str]:
        return {**super().error_metadata(), "height": str(self.height)}
