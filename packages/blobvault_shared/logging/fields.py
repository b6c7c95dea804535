"""Canonical structured logging field names."""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

SERVICE = "service"
ENVIRONMENT = "environment"

# Public API invocation fields.
COMPONENT_ID = "component_id"
API_NAME = "api_name"
PUBLIC_API_INVOCATION_EVENT = "public_api_invocation"
PUBLIC_API_COMPLETION_EVENT = "public_api_completion"
PUBLIC_API_INSTRUMENTATION_FAILURE_EVENT = "public_api_instrumentation_failure"
SUCCESS = "success"
DURATION_MS = "duration_ms"
ERRORS = "errors"
ERROR_CODE = "error_code"
STAGE = "stage"
CONCERN = "concern"

# Transport fields.
RPC_METHOD = "rpc_method"
RPC_REQUEST_ID = "rpc_request_id"
CONNECTION_STATE = "connection_state"
RECONNECT_ATTEMPT = "reconnect_attempt"
RECONNECT_DELAY_SECONDS = "reconnect_delay_seconds"

# Record store fields.
NAMESPACE = "namespace"
POSITION = "position"
INDEX_SIZE = "index_size"
FAILED_COUNT = "failed_count"
