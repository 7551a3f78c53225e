"""
Shared constants for the validation protocol.

Input/output parameter names and operation selectors are part of the test bed
contract, so they are defined once here and reused by the module definitions,
the request router and the report builder.
"""

# Input and output parameter names
INPUT_ARCHIVE = "archive"
INPUT_DIGEST = "digest"
INPUT_REPORT_URL = "reportUrl"
INPUT_SESSION = "session"
INPUT_OPERATION = "operation"
OUTPUT_SESSION = "session"
OUTPUT_REPORT = "report"

# Report context groups and output items
CONTEXT_INPUT = "input"
CONTEXT_OUTPUT = "output"
OUTPUT_UPLOAD = "upload"
OUTPUT_VALIDATION = "validation"
OUTPUT_REPORT_URL = "reportUrl"

# Operation names
OPERATION_VALIDATE = "validate"
OPERATION_UPLOAD = "upload"
OPERATION_REPORT = "report"
OPERATION_INITIALISE = "initialise"

# Report item prefixes
SCHEMA_PREFIX = "Schema"
PROFILE_PREFIX = "Profile"

# Severity value the backend uses for warnings; anything else is an error
WARNING_SEVERITY = "Warn"

NO_REPORT_AVAILABLE_MESSAGE = "Unable to validate archive's content"

# Multipart field names expected by the backend
BACKEND_PACKAGE_FIELD = "package"
BACKEND_DIGEST_FIELD = "digest"
ARCHIVE_SUFFIX = ".zip"

# HTTP defaults
DEFAULT_HTTP_TIMEOUT = 300.0
DEFAULT_KEEPALIVE_CONNECTIONS = 10
DEFAULT_MAX_CONNECTIONS = 20
