"""Data models for the transport layer."""

import base64
from collections.abc import Mapping
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from feedsync.transport.constants import (
    HEADER_CONTENT_TYPE,
    HEADER_ETAG,
    HEADER_IF_MODIFIED_SINCE,
    HEADER_IF_NONE_MATCH,
    HEADER_LAST_MODIFIED,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
)


def header_value(headers: Mapping[str, str], name: str) -> str | None:
    """Look up a header value ignoring case.

    Args:
        headers: Header mapping with arbitrary key casing.
        name: Header name to find.

    Returns:
        The header value, or None if not present.
    """
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


class HttpMethod(str, Enum):
    """HTTP methods used by the API callers."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class CredentialsKind(str, Enum):
    """Authentication scheme of a credential."""

    BASIC = "basic"
    OAUTH_ACCESS_TOKEN = "oauth_access_token"


class Credentials(BaseModel):
    """Authentication material attached to every outgoing request.

    Owned by the account; API callers only hold a reference.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: CredentialsKind
    username: str = ""
    secret: Annotated[str, Field(min_length=1, repr=False)]

    @classmethod
    def basic(cls, username: str, password: str) -> "Credentials":
        """Create username/password credentials."""
        return cls(kind=CredentialsKind.BASIC, username=username, secret=password)

    @classmethod
    def oauth_access_token(cls, username: str, token: str) -> "Credentials":
        """Create OAuth bearer credentials."""
        return cls(
            kind=CredentialsKind.OAUTH_ACCESS_TOKEN, username=username, secret=token
        )

    def authorization_header(self) -> str:
        """Build the Authorization header value for these credentials."""
        if self.kind == CredentialsKind.BASIC:
            raw = f"{self.username}:{self.secret}".encode()
            return f"Basic {base64.b64encode(raw).decode('ascii')}"
        return f"OAuth {self.secret}"


class ConditionalGetInfo(BaseModel):
    """Validator headers captured from a response for conditional GETs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    etag: str | None = None
    last_modified: str | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "ConditionalGetInfo | None":
        """Capture validators from response headers.

        Args:
            headers: Response headers.

        Returns:
            The validators, or None if the response carried neither.
        """
        etag = header_value(headers, HEADER_ETAG)
        last_modified = header_value(headers, HEADER_LAST_MODIFIED)
        if etag is None and last_modified is None:
            return None
        return cls(etag=etag, last_modified=last_modified)

    def to_request_headers(self) -> dict[str, str]:
        """Build If-None-Match / If-Modified-Since request headers."""
        headers: dict[str, str] = {}
        if self.etag:
            headers[HEADER_IF_NONE_MATCH] = self.etag
        if self.last_modified:
            headers[HEADER_IF_MODIFIED_SINCE] = self.last_modified
        return headers


class HttpRequest(BaseModel):
    """A request handed to a Transport."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: Annotated[str, Field(min_length=1)]
    method: HttpMethod = HttpMethod.GET
    headers: dict[str, str] = Field(default_factory=dict)
    credentials: Credentials | None = None
    conditional_get: ConditionalGetInfo | None = None
    body: bytes | None = None

    def with_body(self, body: bytes, content_type: str) -> "HttpRequest":
        """Return a copy of this request carrying a body."""
        headers = dict(self.headers)
        headers.setdefault(HEADER_CONTENT_TYPE, content_type)
        return self.model_copy(update={"body": body, "headers": headers})


class HttpResponse(BaseModel):
    """Status and headers of a response; the body travels separately."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: int = Field(ge=100, le=599, description="HTTP status code")
    url: Annotated[str, Field(min_length=1, description="Final URL")]
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        """Check if the status is 2xx."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return header_value(self.headers, name)
