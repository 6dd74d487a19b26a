"""HTTP transport with conditional GET support and cancel-all."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
import time
from io import BytesIO
from typing import Protocol

import httpx
import structlog

from feedsync.transport.config import TransportConfig
from feedsync.transport.constants import (
    DEFAULT_CHUNK_SIZE,
    HEADER_ACCEPT,
    HEADER_AUTHORIZATION,
    HEADER_USER_AGENT,
    HTTP_STATUS_NOT_MODIFIED,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_REDIRECT_MAX,
)
from feedsync.transport.errors import (
    HttpStatusError,
    RequestCancelledError,
    ResponseSizeExceededError,
    TransportError,
    TransportFailureError,
)
from feedsync.transport.metrics import TransportMetrics
from feedsync.transport.models import HttpRequest, HttpResponse
from feedsync.transport.redact import redact_headers, redact_url_credentials


logger = structlog.get_logger()


class Transport(Protocol):
    """Sends requests for the API callers.

    Implementations return ``(response, body)`` for success and "not
    modified" responses (body is None when empty or not modified) and raise
    TransportError subclasses otherwise.
    """

    def send(self, request: HttpRequest) -> tuple[HttpResponse, bytes | None]:
        """Send a request and return the response and its body."""
        ...

    def cancel_all(self) -> None:
        """Abort every request currently in flight."""
        ...


class _InFlightRequest:
    """Cancellation handle for one request in flight.

    The wait for response headers happens on the transport's sender pool,
    so cancel() can release the waiting caller before the server answers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._settled = threading.Event()
        self._cancelled = False
        self._response: httpx.Response | None = None

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def wait_for_response(
        self, future: Future[httpx.Response], url: str
    ) -> httpx.Response:
        """Block until the response headers arrive or the request is cancelled.

        Args:
            future: Pending result of ``httpx.Client.send``.
            url: Redacted URL for errors.

        Returns:
            The streaming response.

        Raises:
            RequestCancelledError: cancel() ran before the headers arrived.
        """
        future.add_done_callback(lambda _future: self._settled.set())
        self._settled.wait()
        if self.cancelled:
            future.cancel()
            future.add_done_callback(_close_abandoned_response)
            raise RequestCancelledError(url=url)
        response = future.result()
        self.attach(response)
        return response

    def attach(self, response: httpx.Response) -> None:
        with self._lock:
            self._response = response
            cancelled = self._cancelled
        if cancelled:
            response.close()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            response = self._response
        self._settled.set()
        if response is not None:
            response.close()


def _close_abandoned_response(future: Future[httpx.Response]) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class HttpTransport:
    """httpx-backed Transport.

    Provides:
    - Credentials and conditional-get validators on outgoing requests
    - 304 Not Modified surfaced as a successful response without a body
    - Maximum response size enforcement
    - cancel_all() that aborts requests in flight from any thread
    - Header redaction for logging and metrics collection
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Transport configuration.
            client: Optional preconfigured httpx client (owned by the caller).
        """
        self._config = config or TransportConfig()
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=self._config.timeout_seconds,
            follow_redirects=self._config.follow_redirects,
        )
        self._sender = ThreadPoolExecutor(
            max_workers=self._config.max_concurrent_requests,
            thread_name_prefix="transport-send",
        )
        self._in_flight: set[_InFlightRequest] = set()
        self._lock = threading.Lock()
        self._metrics = TransportMetrics.get_instance()
        self._log = logger.bind(component="transport")

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Stop the sender pool and close the client if this transport created it."""
        self._sender.shutdown(wait=False, cancel_futures=True)
        if self._owns_client:
            self._client.close()

    @property
    def in_flight_count(self) -> int:
        """Number of requests currently in flight."""
        with self._lock:
            return len(self._in_flight)

    def cancel_all(self) -> None:
        """Abort every request in flight.

        Each affected send() raises RequestCancelledError right away, whether
        it is still waiting for the server or already reading the body.
        """
        with self._lock:
            handles = list(self._in_flight)
        for handle in handles:
            handle.cancel()
        self._log.info("requests_cancelled", count=len(handles))

    def send(self, request: HttpRequest) -> tuple[HttpResponse, bytes | None]:
        """Send a request.

        Args:
            request: The request to send.

        Returns:
            Tuple of the response and its body (None when empty or 304).

        Raises:
            HttpStatusError: The status was neither 2xx, 3xx nor 304.
            RequestCancelledError: cancel_all() ran while the request was in flight.
            TransportFailureError: Timeout, connection or protocol failure.
            ResponseSizeExceededError: Body exceeded the configured limit.
        """
        url = redact_url_credentials(request.url)
        headers = self._build_headers(request)
        log = self._log.bind(method=request.method.value, url=url)
        log.debug("request_started", headers=redact_headers(headers))

        handle = _InFlightRequest()
        with self._lock:
            self._in_flight.add(handle)

        start_time_ns = time.perf_counter_ns()
        try:
            response, body = self._execute(request, headers, handle, url)
        except TransportError as e:
            if isinstance(e, RequestCancelledError):
                self._metrics.record_cancelled()
            else:
                self._metrics.record_failure(e.error_class)
            log.info("request_failed", **e.to_dict())
            raise
        finally:
            with self._lock:
                self._in_flight.discard(handle)

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_request(response.status_code, len(body), duration_ms)

        log.info(
            "request_complete",
            status_code=response.status_code,
            bytes=len(body),
            duration_ms=round(duration_ms, 2),
        )

        if response.status_code == HTTP_STATUS_NOT_MODIFIED:
            self._metrics.record_not_modified()
            return response, None

        if HTTP_STATUS_OK_MIN <= response.status_code < HTTP_STATUS_REDIRECT_MAX:
            return response, body or None

        self._metrics.record_failure(HttpStatusError.error_class)
        raise HttpStatusError(response.status_code, url=url)

    def _execute(
        self,
        request: HttpRequest,
        headers: dict[str, str],
        handle: _InFlightRequest,
        url: str,
    ) -> tuple[HttpResponse, bytes]:
        """Execute a single request, honoring cancellation.

        Args:
            request: Request to send.
            headers: Complete request headers.
            handle: Cancellation handle registered for this request.
            url: Redacted URL for errors.

        Returns:
            The response and the raw body bytes.
        """
        httpx_request = self._client.build_request(
            request.method.value,
            request.url,
            headers=headers,
            content=request.body,
        )

        future = self._sender.submit(self._client.send, httpx_request, stream=True)
        try:
            httpx_response = handle.wait_for_response(future, url)
        except httpx.TimeoutException as e:
            raise TransportFailureError(f"Request timed out: {e}", url=url) from e
        except httpx.HTTPError as e:
            raise TransportFailureError(f"Request failed: {e}", url=url) from e

        try:
            body = self._read_body_with_limit(httpx_response, url)
        except (httpx.HTTPError, httpx.StreamError, OSError) as e:
            if handle.cancelled:
                raise RequestCancelledError(url=url) from e
            raise TransportFailureError(f"Reading response failed: {e}", url=url) from e
        finally:
            httpx_response.close()

        if handle.cancelled:
            raise RequestCancelledError(url=url)

        response = HttpResponse(
            status_code=httpx_response.status_code,
            url=str(httpx_response.url),
            headers=dict(httpx_response.headers),
        )
        return response, body

    def _build_headers(self, request: HttpRequest) -> dict[str, str]:
        """Build request headers.

        Args:
            request: Request carrying caller headers, credentials and validators.

        Returns:
            Complete headers dictionary.
        """
        headers: dict[str, str] = {
            HEADER_USER_AGENT: self._config.user_agent,
            HEADER_ACCEPT: "application/json",
        }
        if request.credentials is not None:
            headers[HEADER_AUTHORIZATION] = request.credentials.authorization_header()
        if request.conditional_get is not None:
            headers.update(request.conditional_get.to_request_headers())
        headers.update(request.headers)
        return headers

    def _read_body_with_limit(self, response: httpx.Response, url: str) -> bytes:
        """Read response body with size limit.

        Args:
            response: Streaming HTTP response.
            url: Redacted URL for errors.

        Returns:
            Response body bytes.

        Raises:
            ResponseSizeExceededError: If the size limit is exceeded.
        """
        max_size = self._config.max_response_size_bytes

        content_length = response.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
        else:
            size = 0
        if size > max_size:
            msg = f"Response size {size} exceeds limit {max_size}"
            raise ResponseSizeExceededError(msg, url=url)

        buffer = BytesIO()
        total_read = 0
        for chunk in response.iter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
            total_read += len(chunk)
            if total_read > max_size:
                msg = (
                    f"Response size exceeded limit of {max_size} bytes "
                    f"(read {total_read} bytes)"
                )
                raise ResponseSizeExceededError(msg, url=url)
            buffer.write(chunk)

        return buffer.getvalue()
