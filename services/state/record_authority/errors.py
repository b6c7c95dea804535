"""Typed failures raised by Record Authority Service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from packages.blobvault_shared.errors import (
    BlobVaultError,
    ErrorCategory,
    ErrorDetail,
    codes,
)


@dataclass(kw_only=True, eq=False)
class SchemaInvalidError(BlobVaultError):
    """Raised when a schema definition is malformed."""

    code: ClassVar[str] = codes.SCHEMA_INVALID
    category: ClassVar[ErrorCategory] = ErrorCategory.VALIDATION

    field_name: str = ""

    def error_metadata(self) -> dict[str, str]:
        return {**super().error_metadata(), "field": self.field_name}


@dataclass(kw_only=True, eq=False)
class SchemaViolationError(BlobVaultError):
    """Raised when record data does not conform to the stored schema."""

    code: ClassVar[str] = codes.SCHEMA_VIOLATION
    category: ClassVar[ErrorCategory] = ErrorCategory.VALIDATION

    field_name: str
    reason: str

    def error_metadata(self) -> dict[str, str]:
        return {
            **super().error_metadata(),
            "field": self.field_name,
            "reason": self.reason,
        }


@dataclass(kw_only=True, eq=False)
class DatabaseNotInitializedError(BlobVaultError):
    """Raised when an operation needs a database that was never initialized."""

    code: ClassVar[str] = codes.DATABASE_NOT_INITIALIZED
    category: ClassVar[ErrorCategory] = ErrorCategory.NOT_FOUND

    message: str = "database not initialized; run init first"


@dataclass(kw_only=True, eq=False)
class DatabaseAlreadyInitializedError(BlobVaultError):
    """Raised when init is attempted while local state records a database."""

    code: ClassVar[str] = codes.DATABASE_ALREADY_INITIALIZED
    category: ClassVar[ErrorCategory] = ErrorCategory.CONFLICT

    namespace: str

    def error_metadata(self) -> dict[str, str]:
        return {**super().error_metadata(), "namespace": self.namespace}


@dataclass(kw_only=True, eq=False)
class ResetNotConfirmedError(BlobVaultError):
    """Raised when a destructive reset is requested without confirmation."""

    code: ClassVar[str] = codes.RESET_NOT_CONFIRMED
    category: ClassVar[ErrorCategory] = ErrorCategory.POLICY

    message: str = "reset clears the secret token and index; confirmation required"


@dataclass(kw_only=True, eq=False)
class IndexCorruptError(BlobVaultError):
    """Raised when an indexed position does not hold a readable record."""

    code: ClassVar[str] = codes.INDEX_CORRUPT
    category: ClassVar[ErrorCategory] = ErrorCategory.INTERNAL

    position: int

    def error_metadata(self) -> dict[str, str]:
        return {**super().error_metadata(), "position": str(self.position)}


@dataclass(kw_only=True, eq=False)
class StoreDependencyError(BlobVaultError):
    """Raised when the substrate or transport fails during a store operation.

    ``retryable`` mirrors the cause so callers can tell a dropped connection
    from a rejected submission.
    """

    code: ClassVar[str] = codes.DEPENDENCY_FAILURE
    category: ClassVar[ErrorCategory] = ErrorCategory.DEPENDENCY

    operation: str
    position: int | None = None
    cause: ErrorDetail

    def error_metadata(self) -> dict[str, str]:
        metadata = {
            **super().error_metadata(),
            "operation": self.operation,
            "cause_code": self.cause.code,
        }
        if self.position is not None:
            metadata["position"] = str(self.position)
        return metadata
