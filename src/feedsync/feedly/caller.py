"""Feedly cloud API caller.

API documentation: https://developer.feedly.com/
"""

import threading
from collections.abc import Sequence
from datetime import datetime
from typing import Any
from urllib.parse import urlencode, urljoin

import structlog

from feedsync.feedly.models import (
    FeedlyCollection,
    FeedlyEntry,
    FeedlyEntryIdsPayload,
    FeedlyStreamIds,
)
from feedsync.transport.client import Transport
from feedsync.transport.codec import encode_payload, send_decoded
from feedsync.transport.constants import CONTENT_TYPE_JSON
from feedsync.transport.errors import NoDataError, SuspendedError, TransportError
from feedsync.transport.models import Credentials, HttpMethod, HttpRequest
from feedsync.transport.redact import redact_url_credentials


logger = structlog.get_logger()

FEEDLY_BASE_URL = "https://cloud.feedly.com/v3/"
STREAM_IDS_PAGE_SIZE = 1000


class FeedlyAPICaller:
    """Implements the Feedly service protocols over a Transport.

    Shares the Feedbin caller's suspend contract: suspend() aborts requests
    in flight, and until resume() every call raises SuspendedError without
    touching the network.
    """

    def __init__(
        self,
        transport: Transport,
        credentials: Credentials | None = None,
        base_url: str = FEEDLY_BASE_URL,
    ) -> None:
        """Initialize the API caller.

        Args:
            transport: Transport used for every request.
            credentials: OAuth access token credentials.
            base_url: API root, ending with a slash.
        """
        self._transport = transport
        self.credentials = credentials
        self._base_url = base_url
        self._suspended = threading.Event()
        self._log = logger.bind(component="feedly")

    @property
    def is_suspended(self) -> bool:
        """Whether new calls are currently rejected."""
        return self._suspended.is_set()

    def suspend(self) -> None:
        """Cancel all requests in flight and reject any that come in later."""
        self._transport.cancel_all()
        self._suspended.set()
        self._log.info("caller_suspended")

    def resume(self) -> None:
        """Accept calls again after suspend()."""
        self._suspended.clear()
        self._log.info("caller_resumed")

    def get_collections(self) -> list[FeedlyCollection]:
        """Fetch the user's collections with their feeds."""
        request = self._request(self._url("collections"))
        collections = self._send(request, list[FeedlyCollection])
        self._log.debug("collections_retrieved", count=len(collections))
        return collections

    def get_entries(self, ids: Sequence[str]) -> list[FeedlyEntry]:
        """Fetch full entries for entry ids.

        Args:
            ids: Entry ids; an empty sequence returns [] without a request.

        Returns:
            The entries Feedly still knows about, in no particular order.
        """
        url = self._url("entries/.mget")
        self._check_suspended(url)
        if not ids:
            return []

        payload = FeedlyEntryIdsPayload(ids=list(ids))
        request = self._request(url, method=HttpMethod.POST).with_body(
            encode_payload(payload), CONTENT_TYPE_JSON
        )
        entries = self._send(request, list[FeedlyEntry])
        self._log.debug("entries_retrieved", requested=len(ids), count=len(entries))
        return entries

    def get_stream_ids(
        self,
        resource: str,
        continuation: str | None = None,
        newer_than: datetime | None = None,
        unread_only: bool | None = None,
    ) -> FeedlyStreamIds:
        """Fetch one page of entry ids of a stream.

        Args:
            resource: Stream id, e.g. ``user/<id>/category/global.all``.
            continuation: Cursor from the previous page.
            newer_than: Only entries newer than this instant.
            unread_only: Only unread entries when True.

        Returns:
            The ids and the continuation for the next page, if any.
        """
        query: list[tuple[str, str]] = [
            ("streamId", resource),
            ("count", str(STREAM_IDS_PAGE_SIZE)),
        ]
        if continuation:
            query.append(("continuation", continuation))
        if newer_than is not None:
            query.append(("newerThan", str(int(newer_than.timestamp() * 1000))))
        if unread_only is not None:
            query.append(("unreadOnly", "true" if unread_only else "false"))

        request = self._request(self._url("streams/ids", query))
        return self._send(request, FeedlyStreamIds)

    # Private

    def _url(self, path: str, query: list[tuple[str, str]] | None = None) -> str:
        url = urljoin(self._base_url, path)
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    def _request(self, url: str, method: HttpMethod = HttpMethod.GET) -> HttpRequest:
        return HttpRequest(url=url, method=method, credentials=self.credentials)

    def _check_suspended(self, url: str | None = None) -> None:
        if self._suspended.is_set():
            raise SuspendedError(url=redact_url_credentials(url) if url else None)

    def _send(self, request: HttpRequest, result_type: Any) -> Any:
        """Send a request and decode its body, honoring suspension.

        Raises:
            NoDataError: The response had no body.
        """
        url = redact_url_credentials(request.url)
        self._check_suspended(url)
        try:
            _, result = send_decoded(self._transport, request, result_type)
        except TransportError as e:
            if self._suspended.is_set():
                raise SuspendedError(url=url) from e
            raise

        self._check_suspended(url)
        if result is None:
            raise NoDataError(url=url)
        return result
