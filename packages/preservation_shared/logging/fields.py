"""Canonical logging field names for cross-worker consistency.

These constants define a stable key set for structured logs and context
propagation. Keeping names centralized prevents drift between jobs and the
reporting sinks.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Preservation identity fields.
DRUID = "druid"
VERSION = "version"
STORAGE_AREA = "storage_area"
STORAGE_ROOT = "storage_root"
CHECK_NAME = "check_name"
ENDPOINT_NAME = "endpoint_name"
PART_KEY = "part_key"
RESULT_CODE = "result_code"

# Job fields.
JOB_NAME = "job_name"
JOB_ID = "job_id"
LOCK_KEY = "lock_key"

# Failure fields.
EXCEPTION_TYPE = "exception_type"
OPERATION = "operation"

# Common service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"

# Record attributes passed through ``extra=`` that formatters emit.
STRUCTURED_FIELDS = (
    DRUID,
    VERSION,
    STORAGE_AREA,
    STORAGE_ROOT,
    CHECK_NAME,
    ENDPOINT_NAME,
    PART_KEY,
    RESULT_CODE,
    JOB_NAME,
    JOB_ID,
    LOCK_KEY,
    EXCEPTION_TYPE,
    OPERATION,
)
