"""Error codes attached to ``ErrorDetail`` at service and adapter seams.

Audit result codes such as ``ACTUAL_VERS_GT_DB_OBJ`` describe what an audit
found, not a failure to run it, and live in ``audit_results.codes``.
"""

INVALID_ARGUMENT = "INVALID_ARGUMENT"
MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
VALIDATION_ERROR = "VALIDATION_ERROR"

NOT_FOUND = "NOT_FOUND"
RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

ALREADY_EXISTS = "ALREADY_EXISTS"
CONFLICT = "CONFLICT"

DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_TIMEOUT = "DEPENDENCY_TIMEOUT"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"

INTERNAL_ERROR = "INTERNAL_ERROR"
STORAGE_IO_ERROR = "STORAGE_IO_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
