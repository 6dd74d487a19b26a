"""HTTP constants for the transport layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Codes
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_CREATED = 201
HTTP_STATUS_MULTIPLE_CHOICES = 300
HTTP_STATUS_FOUND = 302
HTTP_STATUS_NOT_MODIFIED = 304
HTTP_STATUS_REDIRECT_MAX = 400
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_NOT_FOUND = 404

# Request headers
HEADER_ACCEPT = "Accept"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_IF_MODIFIED_SINCE = "If-Modified-Since"
HEADER_IF_NONE_MATCH = "If-None-Match"
HEADER_USER_AGENT = "User-Agent"

# Response headers (lookups are case-insensitive)
HEADER_DATE = "Date"
HEADER_ETAG = "ETag"
HEADER_LAST_MODIFIED = "Last-Modified"
HEADER_LINK = "Link"
HEADER_LOCATION = "Location"

# Content types
CONTENT_TYPE_JSON = "application/json; charset=utf-8"
CONTENT_TYPE_XML = "text/xml; charset=utf-8"

# Response Size Limits
DEFAULT_MAX_RESPONSE_SIZE_BYTES = 20 * 1024 * 1024  # 20 MB

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

DEFAULT_USER_AGENT = "feedsync/0.1"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_CONCURRENT_REQUESTS = 8
