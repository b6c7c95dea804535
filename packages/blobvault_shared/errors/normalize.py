"""Exception normalization utilities for shared error contracts."""

from __future__ import annotations

from . import codes
from .types import BlobVaultError, ErrorCategory, ErrorDetail


def exception_to_error(exc: BaseException) -> ErrorDetail:
    """Normalize any exception into a shared ``ErrorDetail``.

    Typed blobvault errors describe themselves. Everything else is mapped
    conservatively by builtin exception family.
    """
    if isinstance(exc, BlobVaultError):
        return exc.to_error_detail()

    metadata = {"exception_type": type(exc).__name__}

    if isinstance(exc, ValueError):
        return ErrorDetail(
            code=codes.INVALID_ARGUMENT,
            message=str(exc),
            category=ErrorCategory.VALIDATION,
            metadata=metadata,
        )

    if isinstance(exc, TimeoutError):
        return ErrorDetail(
            code=codes.DEPENDENCY_TIMEOUT,
            message=str(exc) or "dependency timeout",
            category=ErrorCategory.DEPENDENCY,
            retryable=True,
            metadata=metadata,
        )

    if isinstance(exc, (ConnectionError, OSError)):
        return ErrorDetail(
            code=codes.DEPENDENCY_UNAVAILABLE,
            message=str(exc) or "dependency unavailable",
            category=ErrorCategory.DEPENDENCY,
            retryable=True,
            metadata=metadata,
        )

    return ErrorDetail(
        code=codes.UNEXPECTED_EXCEPTION,
        message=str(exc) or "unexpected exception",
        category=ErrorCategory.INTERNAL,
        metadata=metadata,
    )
