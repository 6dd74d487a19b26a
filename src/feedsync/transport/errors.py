"""Error types for the transport layer and the API callers built on it."""

from enum import Enum


class TransportErrorClass(str, Enum):
    """Classification of transport errors.

    - SUSPENDED: The API caller was suspended; no request was issued
    - HTTP_ERROR: The remote returned a non-2xx status
    - NO_DATA: A 2xx response carried no body where one was expected
    - DECODE: The response body could not be decoded
    - CANCELLED: The request was in flight when cancel_all() was called
    - NETWORK: Timeout, connection or protocol failure
    - RESPONSE_SIZE_EXCEEDED: Response exceeded the configured size limit
    """

    SUSPENDED = "SUSPENDED"
    HTTP_ERROR = "HTTP_ERROR"
    NO_DATA = "NO_DATA"
    DECODE = "DECODE"
    CANCELLED = "CANCELLED"
    NETWORK = "NETWORK"
    RESPONSE_SIZE_EXCEEDED = "RESPONSE_SIZE_EXCEEDED"


class TransportError(Exception):
    """Base exception for transport errors.

    Provides structured error information for logging.
    """

    error_class: TransportErrorClass = TransportErrorClass.NETWORK

    def __init__(self, message: str, url: str | None = None) -> None:
        """Initialize the transport error.

        Args:
            message: Human-readable error message.
            url: Redacted URL of the request, if any.
        """
        super().__init__(message)
        self.message = message
        self.url = url

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "url": self.url,
        }


class SuspendedError(TransportError):
    """Raised when a call is made while the API caller is suspended."""

    error_class = TransportErrorClass.SUSPENDED

    def __init__(self, url: str | None = None) -> None:
        super().__init__("API caller is suspended", url=url)


class HttpStatusError(TransportError):
    """Raised when the remote answers with a status that is not a success."""

    error_class = TransportErrorClass.HTTP_ERROR

    def __init__(self, status_code: int, url: str | None = None) -> None:
        """Initialize the HTTP status error.

        Args:
            status_code: HTTP status code returned by the remote.
            url: Redacted URL of the request.
        """
        super().__init__(f"HTTP error ({status_code})", url=url)
        self.status_code = status_code

    def to_dict(self) -> dict[str, str | int | None]:
        result = super().to_dict()
        result["status_code"] = self.status_code
        return result


class NoDataError(TransportError):
    """Raised when a response is missing the body or header a call needs."""

    error_class = TransportErrorClass.NO_DATA

    def __init__(self, url: str | None = None) -> None:
        super().__init__("Response contained no data", url=url)


class DecodeError(TransportError):
    """Raised when a response body is not the JSON shape that was expected."""

    error_class = TransportErrorClass.DECODE


class RequestCancelledError(TransportError):
    """Raised for a request that was in flight when cancel_all() ran."""

    error_class = TransportErrorClass.CANCELLED

    def __init__(self, url: str | None = None) -> None:
        super().__init__("Request was cancelled", url=url)


class TransportFailureError(TransportError):
    """Network-level failure (timeout, connection, protocol).

    The originating httpx exception is chained as ``__cause__``.
    """

    error_class = TransportErrorClass.NETWORK


class ResponseSizeExceededError(TransportError):
    """Raised when response size exceeds the configured limit."""

    error_class = TransportErrorClass.RESPONSE_SIZE_EXCEEDED
