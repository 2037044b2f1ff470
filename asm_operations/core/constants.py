"""Shared constants: header names, media types, defaults and error codes."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Service defaults
# ---------------------------------------------------------------------------

DEFAULT_API_BASE_URL: str = "https://management.core.windows.net"
"""Service Management endpoint for the public cloud."""

DEFAULT_API_VERSION: str = "2013-09-01"
"""Value sent in the ``x-ms-version`` header."""

DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 60.0

DEFAULT_POLL_INTERVAL_SECONDS: float = 2.0
DEFAULT_POLL_MAX_ATTEMPTS: int = 30

OPERATIONS_PATH: str = "/operations/{operation_id}"
"""Operation-status resource, relative to the subscription."""

# ---------------------------------------------------------------------------
# HTTP headers and media types
# ---------------------------------------------------------------------------

HEADER_API_VERSION: str = "x-ms-version"
HEADER_REQUEST_ID: str = "x-ms-request-id"
HEADER_ASYNC_OPERATION: str = "Azure-AsyncOperation"
HEADER_LOCATION: str = "Location"
HEADER_BLOB_TYPE: str = "x-ms-blob-type"

TRACKING_HEADERS: tuple[str, ...] = (HEADER_ASYNC_OPERATION, HEADER_LOCATION)
"""Headers carrying an absolute status URL, in order of preference."""

MEDIA_TYPE_JSON: str = "application/json"
MEDIA_TYPE_XML: str = "application/xml"

SERVICE_MANAGEMENT_NAMESPACE: str = "http://schemas.microsoft.com/windowsazure"

# ---------------------------------------------------------------------------
# Synthetic status error codes
# ---------------------------------------------------------------------------

ERROR_CODE_TIMED_OUT: str = "OperationTimedOut"
ERROR_CODE_CANCELED: str = "OperationCanceled"

# ---------------------------------------------------------------------------
# Upload defaults
# ---------------------------------------------------------------------------

DEFAULT_METADATA_PART: str = "metadata"
"""Multipart field name carrying the serialised metadata."""

UPLOAD_CHUNK_SIZE: int = 4 * 1024 * 1024
