"""JSON encoding and decoding for request payloads and response bodies."""

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from feedsync.transport.client import Transport
from feedsync.transport.errors import DecodeError
from feedsync.transport.models import HttpRequest, HttpResponse
from feedsync.transport.redact import redact_url_credentials


T = TypeVar("T")


@lru_cache(maxsize=64)
def _adapter(result_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(result_type)


def decode_body(
    body: bytes | None,
    result_type: type[T] | Any,
    url: str | None = None,
) -> Any:
    """Decode a JSON body into a pydantic-validated value.

    Args:
        body: Raw response body; None means "no body".
        result_type: Target type, e.g. ``list[FeedbinTag]``.
        url: Redacted request URL for errors.

    Returns:
        The decoded value, or None when there is no body.

    Raises:
        DecodeError: The body is not valid JSON of the expected shape.
    """
    if body is None:
        return None
    try:
        return _adapter(result_type).validate_json(body)
    except ValidationError as e:
        msg = f"Could not decode response: {e.error_count()} validation error(s)"
        raise DecodeError(msg, url=url) from e


def encode_payload(payload: BaseModel) -> bytes:
    """Encode a pydantic payload as JSON using its wire aliases."""
    return payload.model_dump_json(by_alias=True).encode("utf-8")


def send_decoded(
    transport: Transport,
    request: HttpRequest,
    result_type: type[T] | Any,
) -> tuple[HttpResponse, Any]:
    """Send a request and decode its JSON body.

    Args:
        transport: Transport to send with.
        request: The request.
        result_type: Type the body is decoded into.

    Returns:
        The response and the decoded body (None when not modified or empty).
    """
    response, body = transport.send(request)
    return response, decode_body(
        body, result_type, url=redact_url_credentials(request.url)
    )

