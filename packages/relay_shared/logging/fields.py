"""Canonical logging field names for cross-component consistency.

These constants define a stable key set for structured logs and context
propagation. Producers, the host runtime and the instrumentation concerns all
read and write these names.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Exchange correlation fields.
EXCHANGE_ID = "exchange_id"
ENDPOINT_ID = "endpoint_id"
COLLECTION = "collection"
ACTION = "action"

# Exchange instrumentation fields.
COMPONENT_ID = "component_id"
EXCHANGE_INVOCATION_EVENT = "exchange_invocation"
EXCHANGE_COMPLETION_EVENT = "exchange_completion"
EXCHANGE_INSTRUMENTATION_FAILURE_EVENT = "exchange_instrumentation_failure"
SUCCESS = "success"
SYNCHRONOUS = "synchronous"
DURATION_MS = "duration_ms"
ERRORS = "errors"
OUTCOME = "outcome"
ERROR_CATEGORY = "error_category"
STAGE = "stage"
CONCERN = "concern"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
