"""Application-wide constants.

Contains configuration constants used across the codebase to avoid magic numbers
and maintain consistency.
"""

# Slug Generation
SLUG_TYPE = "slug"  # _type of the structured slug value written to documents
SLUG_SEPARATOR = "-"
PREVIEW_LIMIT = 10  # Candidates shown in the "will generate" preview

# Field Defaults
DEFAULT_SOURCE_FIELD = "title"
DEFAULT_SLUG_FIELD = "slug"
FALLBACK_SOURCE_FIELDS = ("title", "name")  # Tried after the configured source field

# Batching
DEFAULT_BATCH_SIZE = 10  # Documents per progress notification
DEFAULT_MAX_DOCUMENTS = 1000  # Result cap for the scan query

# Store Client
DEFAULT_API_VERSION = "2024-01-01"
DEFAULT_DATASET = "production"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30
DEFAULT_RETRY_ATTEMPTS = 3  # Attempts for transient store failures
DEFAULT_RETRY_MIN_WAIT = 2  # Minimum wait time between retries (seconds)
DEFAULT_RETRY_MAX_WAIT = 10  # Maximum wait time between retries (seconds)
TOKEN_ENV_VAR = "SANITY_API_TOKEN"
PROJECT_ENV_VAR = "SANITY_PROJECT_ID"

# Reporting
MAX_ERROR_DISPLAY = 5  # Maximum number of errors to display in the summary
