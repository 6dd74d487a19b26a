"""HTTP transport layer shared by the API callers.

This package provides:
- A Transport protocol and its httpx-backed implementation
- Conditional GET validators (ETag/Last-Modified)
- Link/Date header parsing for pagination
- Token-bucket pacing, header redaction and metrics
"""

from feedsync.transport.client import HttpTransport, Transport
from feedsync.transport.codec import (
    decode_body,
    encode_payload,
    send_decoded,
)
from feedsync.transport.config import TransportConfig
from feedsync.transport.errors import (
    DecodeError,
    HttpStatusError,
    NoDataError,
    RequestCancelledError,
    ResponseSizeExceededError,
    SuspendedError,
    TransportError,
    TransportErrorClass,
    TransportFailureError,
)
from feedsync.transport.metrics import TransportMetrics
from feedsync.transport.models import (
    ConditionalGetInfo,
    Credentials,
    CredentialsKind,
    HttpMethod,
    HttpRequest,
    HttpResponse,
)
from feedsync.transport.paging import (
    HttpDateInfo,
    HttpLinkPagingInfo,
    extract_page_number,
)
from feedsync.transport.rate_limiter import (
    TokenBucketRateLimiter,
    get_service_rate_limiter,
)


__all__ = [
    # Transport
    "HttpTransport",
    "Transport",
    "TransportConfig",
    # Codec
    "decode_body",
    "encode_payload",
    "send_decoded",
    # Models
    "ConditionalGetInfo",
    "Credentials",
    "CredentialsKind",
    "HttpMethod",
    "HttpRequest",
    "HttpResponse",
    # Errors
    "DecodeError",
    "HttpStatusError",
    "NoDataError",
    "RequestCancelledError",
    "ResponseSizeExceededError",
    "SuspendedError",
    "TransportError",
    "TransportErrorClass",
    "TransportFailureError",
    # Paging
    "HttpDateInfo",
    "HttpLinkPagingInfo",
    "extract_page_number",
    # Pacing and metrics
    "TokenBucketRateLimiter",
    "TransportMetrics",
    "get_service_rate_limiter",
]
