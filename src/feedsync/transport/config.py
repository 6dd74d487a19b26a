"""Configuration models for the transport layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from feedsync.transport.constants import (
    DEFAULT_MAX_CONCURRENT_REQUESTS,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)


class TransportConfig(BaseModel):
    """Configuration for the HTTP transport.

    Redirects are not followed by default: the Feedbin subscription endpoint
    reports "already subscribed" with a 302 that callers must see.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    timeout_seconds: Annotated[float, Field(ge=1.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    max_response_size_bytes: Annotated[
        int, Field(ge=1024, le=200 * 1024 * 1024)
    ] = DEFAULT_MAX_RESPONSE_SIZE_BYTES
    follow_redirects: bool = False
    max_concurrent_requests: Annotated[int, Field(ge=1, le=64)] = (
        DEFAULT_MAX_CONCURRENT_REQUESTS
    )
