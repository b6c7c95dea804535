"""Canonical error types for blobvault.

Two shapes live here. ``ErrorDetail`` is the inert, structured description of
a failure used wherever an error is reported as data (for example one failed
entry of a record listing). ``BlobVaultError`` is the base exception raised
across package boundaries; every concrete error declares its code and
category and converts to an ``ErrorDetail`` on demand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Mapping

from . import codes


class ErrorCategory(str, Enum):
    """High-level error categories shared across component boundaries."""

    UNSPECIFIED = "unspecified"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    POLICY = "policy"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured error object used in results and aggregate reports."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(kw_only=True, eq=False)
class BlobVaultError(Exception):
    """Base exception for every typed blobvault failure."""

    code: ClassVar[str] = codes.INTERNAL_ERROR
    category: ClassVar[ErrorCategory] = ErrorCategory.INTERNAL

    message: str
    retryable: bool = False

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message

    def error_metadata(self) -> dict[str, str]:
        """Return string metadata describing this error instance."""
        return {"exception_type": type(self).__name__}

    def to_error_detail(self) -> ErrorDetail:
        """Convert this exception into an inert ``ErrorDetail``."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            category=self.category,
            retryable=self.retryable,
            metadata=self.error_metadata(),
        )
