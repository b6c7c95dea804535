"""Error code constants for blobvault.

Codes are stable machine-readable identifiers. The generic codes mirror the
categories in ``ErrorCategory``; the domain codes name the specific failure
modes of the namespace codec, encryption engine, RPC transport and record
store.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
NAMESPACE_INVALID = "NAMESPACE_INVALID"
NAMESPACE_INPUT_TOO_LONG = "NAMESPACE_INPUT_TOO_LONG"
SCHEMA_INVALID = "SCHEMA_INVALID"
SCHEMA_VIOLATION = "SCHEMA_VIOLATION"

# Not found
NOT_FOUND = "NOT_FOUND"
BLOB_NOT_FOUND = "BLOB_NOT_FOUND"
DATABASE_NOT_INITIALIZED = "DATABASE_NOT_INITIALIZED"

# Conflict
CONFLICT = "CONFLICT"
DATABASE_ALREADY_INITIALIZED = "DATABASE_ALREADY_INITIALIZED"

# Policy
POLICY_VIOLATION = "POLICY_VIOLATION"
RESET_NOT_CONFIRMED = "RESET_NOT_CONFIRMED"
DECRYPTION_FAILED = "DECRYPTION_FAILED"

# Dependency / external system
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_TIMEOUT = "DEPENDENCY_TIMEOUT"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"
CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
DISCONNECTED = "DISCONNECTED"
SUBSTRATE_REJECTED = "SUBSTRATE_REJECTED"
SUBSTRATE_RESPONSE_SHAPE = "SUBSTRATE_RESPONSE_SHAPE"
INDEX_CORRUPT = "INDEX_CORRUPT"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
