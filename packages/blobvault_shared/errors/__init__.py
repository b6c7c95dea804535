"""Public shared error API for blobvault components."""

from . import codes
from .normalize import exception_to_error
from .types import BlobVaultError, ErrorCategory, ErrorDetail

__all__ = [
    "BlobVaultError",
    "ErrorCategory",
    "ErrorDetail",
    "codes",
    "exception_to_error",
]
