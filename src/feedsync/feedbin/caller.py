"""Feedbin v2 API caller.

API documentation: https://github.com/feedbin/feedbin-api
"""

import threading
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import urlencode, urljoin, urlparse

import structlog
from pydantic import BaseModel

from feedsync.account.metadata import AccountMetadata
from feedsync.feedbin.constants import (
    BACKDATE_DAYS,
    ENTRIES_PER_PAGE,
    FEEDBIN_BASE_URL,
    FEEDBIN_MAX_QPS,
    INITIAL_FETCH_MONTHS,
    MODE_EXTENDED,
    SERVICE_FEEDBIN,
    TAGGING_LOCATION_PREFIX,
    TAGGING_LOCATION_SUFFIX,
    ConditionalGetKeys,
)
from feedsync.feedbin.dates import format_feedbin_date, subtract_months
from feedsync.feedbin.models import (
    CreateSubscriptionResult,
    EntriesPage,
    FeedbinCreateSubscription,
    FeedbinCreateTagging,
    FeedbinEntry,
    FeedbinImportResult,
    FeedbinRenameTag,
    FeedbinStarredEntries,
    FeedbinSubscription,
    FeedbinSubscriptionChoice,
    FeedbinTag,
    FeedbinTagging,
    FeedbinUnreadEntries,
    FeedbinUpdateSubscription,
)
from feedsync.transport.client import Transport
from feedsync.transport.codec import decode_body, encode_payload
from feedsync.transport.constants import (
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_XML,
    HEADER_CONTENT_TYPE,
    HEADER_LOCATION,
    HTTP_STATUS_CREATED,
    HTTP_STATUS_FOUND,
    HTTP_STATUS_MULTIPLE_CHOICES,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_UNAUTHORIZED,
)
from feedsync.transport.errors import (
    HttpStatusError,
    NoDataError,
    SuspendedError,
    TransportError,
)
from feedsync.transport.models import (
    ConditionalGetInfo,
    Credentials,
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
    RateLimiterProtocol,
    get_service_rate_limiter,
)
from feedsync.transport.redact import redact_url_credentials


logger = structlog.get_logger()

# Characters Feedbin query values keep unescaped (timestamps, id lists)
QUERY_SAFE_CHARACTERS = ":,"


class FeedbinAPICaller:
    """One method per Feedbin endpoint.

    Every method raises SuspendedError without touching the network while
    the caller is suspended, HttpStatusError for statuses the endpoint does
    not reinterpret, NoDataError for a missing body, DecodeError for
    malformed JSON, and passes other transport errors through unchanged.

    Conditionally fetched listings return None when the server reports the
    resource as not modified since the stored validators.
    """

    def __init__(  # noqa: PLR0913
        self,
        transport: Transport,
        credentials: Credentials | None = None,
        account_metadata: AccountMetadata | None = None,
        rate_limiter: RateLimiterProtocol | None = None,
        base_url: str = FEEDBIN_BASE_URL,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the API caller.

        Args:
            transport: Transport used for every request.
            credentials: Credentials attached to every request.
            account_metadata: Conditional-get store and fetch timestamps.
                Owned by the account; the caller only references it.
            rate_limiter: Limiter pacing requests (shared Feedbin limiter
                by default).
            base_url: API root, ending with a slash.
            clock: Source of the current time (for tests).
        """
        self._transport = transport
        self.credentials = credentials
        self.account_metadata = account_metadata
        self._rate_limiter = rate_limiter or get_service_rate_limiter(
            SERVICE_FEEDBIN, FEEDBIN_MAX_QPS
        )
        self._base_url = base_url
        self._clock = clock or (lambda: datetime.now(UTC))
        self._suspended = threading.Event()
        self._backdate_lock = threading.Lock()
        self._last_backdate_start_time: datetime | None = None
        self._log = logger.bind(component="feedbin")

    # Suspend / resume

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

    # Authentication and OPML import

    def validate_credentials(self) -> Credentials | None:
        """Check the credentials against the server.

        Returns:
            The credentials if accepted, None if the server answered 401.
        """
        request = self._request(self._url("authentication.json"))
        try:
            self._send(request)
        except HttpStatusError as e:
            if e.status_code == HTTP_STATUS_UNAUTHORIZED:
                self._log.info("credentials_rejected")
                return None
            raise
        return self.credentials

    def import_opml(self, opml_data: bytes) -> FeedbinImportResult:
        """Upload an OPML document for import.

        Args:
            opml_data: Raw OPML XML.

        Returns:
            The import status; poll with retrieve_opml_import_result().
        """
        url = self._url("imports.json")
        request = self._request(
            url,
            method=HttpMethod.POST,
            headers={HEADER_CONTENT_TYPE: CONTENT_TYPE_XML},
            body=opml_data,
        )
        _, body = self._send(request)
        if body is None:
            raise NoDataError(url=redact_url_credentials(url))
        result: FeedbinImportResult = decode_body(body, FeedbinImportResult, url)
        self._log.info("opml_import_started", import_id=result.import_id)
        return result

    def retrieve_opml_import_result(self, import_id: int) -> FeedbinImportResult | None:
        """Poll the status of an OPML import."""
        url = self._url(f"imports/{import_id}.json")
        _, body = self._send(self._request(url))
        result: FeedbinImportResult | None = decode_body(body, FeedbinImportResult, url)
        return result

    # Tags

    def retrieve_tags(self) -> list[FeedbinTag] | None:
        """Get all tags (conditional GET)."""
        return self._retrieve_conditional(
            ConditionalGetKeys.TAGS, self._url("tags.json"), list[FeedbinTag]
        )

    def rename_tag(self, old_name: str, new_name: str) -> None:
        """Rename a tag."""
        request = self._request(self._url("tags.json"), method=HttpMethod.POST)
        payload = FeedbinRenameTag(old_name=old_name, new_name=new_name)
        self._send(request, payload=payload)

    # Subscriptions

    def retrieve_subscriptions(self) -> list[FeedbinSubscription] | None:
        """Get all subscriptions in extended mode (conditional GET)."""
        url = self._url("subscriptions.json", [("mode", MODE_EXTENDED)])
        return self._retrieve_conditional(
            ConditionalGetKeys.SUBSCRIPTIONS, url, list[FeedbinSubscription]
        )

    def create_subscription(self, url: str) -> CreateSubscriptionResult:
        """Subscribe to a feed URL.

        Outcomes by status: 201 created, 300 multiple choice, 302 already
        subscribed. Feedbin also answers 401 when the feed is already
        subscribed, and 404 when no feed was found at the URL; both are
        reported as outcomes rather than errors.

        Args:
            url: Feed or site URL to subscribe to.

        Returns:
            The outcome of the request.
        """
        call_url = self._url("subscriptions.json", [("mode", MODE_EXTENDED)])
        redacted = redact_url_credentials(call_url)
        request = self._request(call_url, method=HttpMethod.POST)
        log = self._log.bind(feed_url=url)

        try:
            response, body = self._send(
                request, payload=FeedbinCreateSubscription(feed_url=url)
            )
        except HttpStatusError as e:
            if e.status_code == HTTP_STATUS_UNAUTHORIZED:
                log.info("subscription_exists", status_code=e.status_code)
                return CreateSubscriptionResult.already_subscribed()
            if e.status_code == HTTP_STATUS_NOT_FOUND:
                log.info("subscription_feed_not_found")
                return CreateSubscriptionResult.not_found()
            raise

        status = response.status_code
        if status == HTTP_STATUS_CREATED:
            if body is None:
                raise NoDataError(url=redacted)
            subscription: FeedbinSubscription = decode_body(
                body, FeedbinSubscription, redacted
            )
            log.info(
                "subscription_created",
                subscription_id=subscription.subscription_id,
            )
            return CreateSubscriptionResult.created(subscription)

        if status == HTTP_STATUS_MULTIPLE_CHOICES:
            if body is None:
                raise NoDataError(url=redacted)
            choices: list[FeedbinSubscriptionChoice] = decode_body(
                body, list[FeedbinSubscriptionChoice], redacted
            )
            log.info("subscription_multiple_choice", choice_count=len(choices))
            return CreateSubscriptionResult.multiple_choice(choices)

        if status == HTTP_STATUS_FOUND:
            log.info("subscription_exists", status_code=status)
            return CreateSubscriptionResult.already_subscribed()

        raise HttpStatusError(status, url=redacted)

    def rename_subscription(self, subscription_id: str, new_name: str) -> None:
        """Set the title of a subscription."""
        request = self._request(
            self._url(f"subscriptions/{subscription_id}/update.json"),
            method=HttpMethod.POST,
        )
        self._send(request, payload=FeedbinUpdateSubscription(title=new_name))

    def delete_subscription(self, subscription_id: str) -> None:
        """Unsubscribe."""
        request = self._request(
            self._url(f"subscriptions/{subscription_id}.json"),
            method=HttpMethod.DELETE,
        )
        self._send(request)

    # Taggings

    def retrieve_taggings(self) -> list[FeedbinTagging] | None:
        """Get all taggings (conditional GET)."""
        return self._retrieve_conditional(
            ConditionalGetKeys.TAGGINGS,
            self._url("taggings.json"),
            list[FeedbinTagging],
        )

    def create_tagging(self, feed_id: int, name: str) -> int:
        """Tag a feed.

        Returns:
            ID of the new tagging, taken from the Location header.

        Raises:
            NoDataError: The Location header is missing or unparsable.
        """
        url = self._url("taggings.json")
        request = self._request(url, method=HttpMethod.POST)
        response, _ = self._send(
            request, payload=FeedbinCreateTagging(feed_id=feed_id, name=name)
        )

        tagging_id = parse_tagging_location(response.header(HEADER_LOCATION))
        if tagging_id is None:
            raise NoDataError(url=redact_url_credentials(url))
        return tagging_id

    def delete_tagging(self, tagging_id: str) -> None:
        """Remove a tagging."""
        request = self._request(
            self._url(f"taggings/{tagging_id}.json"),
            method=HttpMethod.DELETE,
            headers={HEADER_CONTENT_TYPE: CONTENT_TYPE_JSON},
        )
        self._send(request)

    # Entries

    def retrieve_entries_by_ids(self, article_ids: Sequence[str]) -> list[FeedbinEntry]:
        """Get entries by ID.

        An empty ID list returns an empty list without a request.
        """
        self._check_suspended()
        if not article_ids:
            return []

        url = self._url(
            "entries.json",
            [("ids", ",".join(article_ids)), ("mode", MODE_EXTENDED)],
        )
        _, body = self._send(self._request(url))
        entries: list[FeedbinEntry] | None = decode_body(body, list[FeedbinEntry], url)
        return entries or []

    def retrieve_feed_entries(
        self, feed_id: str
    ) -> tuple[list[FeedbinEntry] | None, str | None]:
        """Get the last three months of entries for one feed.

        Returns:
            The first page of entries and the URL of the next page, if any.
        """
        since = subtract_months(self._clock(), INITIAL_FETCH_MONTHS)
        url = self._url(f"feeds/{feed_id}/entries.json", self._entries_query(since))
        response, body = self._send(self._request(url))
        entries: list[FeedbinEntry] | None = decode_body(body, list[FeedbinEntry], url)
        return entries, HttpLinkPagingInfo.from_headers(response.headers).next_page

    def retrieve_entries(self) -> EntriesPage:
        """Get the first page of entries published since the last sync.

        The window is chosen by entries_since().

        Returns:
            The page, the next page URL, the server Date (to record as the
            sync start time) and the last page number.
        """
        since = self.entries_since()
        url = self._url("entries.json", self._entries_query(since))
        self._log.info("retrieving_entries", since=format_feedbin_date(since))

        response, body = self._send(self._request(url))
        entries: list[FeedbinEntry] | None = decode_body(body, list[FeedbinEntry], url)

        date_info = HttpDateInfo.from_headers(response.headers)
        paging_info = HttpLinkPagingInfo.from_headers(response.headers)
        return EntriesPage(
            entries=entries,
            next_page=paging_info.next_page,
            date=date_info.date if date_info else None,
            last_page_number=extract_page_number(paging_info.last_page),
        )

    def retrieve_entries_page(
        self, page: str
    ) -> tuple[list[FeedbinEntry] | None, str | None]:
        """Get a page of entries by its paging URL.

        An unusable URL yields ``(None, None)`` without a request.
        """
        self._check_suspended()
        parsed = urlparse(page)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            self._log.warning("invalid_page_url", page=redact_url_credentials(page))
            return None, None

        response, body = self._send(self._request(page))
        entries: list[FeedbinEntry] | None = decode_body(body, list[FeedbinEntry], page)
        return entries, HttpLinkPagingInfo.from_headers(response.headers).next_page

    def entries_since(self, now: datetime | None = None) -> datetime:
        """Pick the start of the entries window.

        - No previous fetch: the last three months.
        - Otherwise the previous fetch start time T, except that at most
          once per 24 hours the window starts a day before T to pick up
          articles updated on the server after they were fetched. Each
          such backdate records T.

        Args:
            now: Current time (defaults to the caller's clock).

        Returns:
            The ``since`` timestamp for the request.
        """
        now = now or self._clock()
        last_fetch = (
            self.account_metadata.last_article_fetch_start_time
            if self.account_metadata
            else None
        )
        if last_fetch is None:
            return subtract_months(now, INITIAL_FETCH_MONTHS)

        backdate = timedelta(days=BACKDATE_DAYS)
        with self._backdate_lock:
            last_backdate = self._last_backdate_start_time
            if last_backdate is None or last_backdate + backdate < last_fetch:
                self._last_backdate_start_time = last_fetch
                self._log.debug("entries_backdated", last_fetch=last_fetch.isoformat())
                return last_fetch - backdate
        return last_fetch

    @property
    def last_backdate_start_time(self) -> datetime | None:
        """Fetch start time recorded by the most recent backdated window."""
        with self._backdate_lock:
            return self._last_backdate_start_time

    # Unread and starred state

    def retrieve_unread_entries(self) -> list[int] | None:
        """Get IDs of all unread entries (conditional GET)."""
        return self._retrieve_conditional(
            ConditionalGetKeys.UNREAD_ENTRIES,
            self._url("unread_entries.json"),
            list[int],
        )

    def create_unread_entries(self, entries: list[int]) -> None:
        """Mark entries unread."""
        request = self._request(
            self._url("unread_entries.json"), method=HttpMethod.POST
        )
        self._send(request, payload=FeedbinUnreadEntries(unread_entries=entries))

    def delete_unread_entries(self, entries: list[int]) -> None:
        """Mark entries read."""
        request = self._request(
            self._url("unread_entries.json"), method=HttpMethod.DELETE
        )
        self._send(request, payload=FeedbinUnreadEntries(unread_entries=entries))

    def retrieve_starred_entries(self) -> list[int] | None:
        """Get IDs of all starred entries (conditional GET)."""
        return self._retrieve_conditional(
            ConditionalGetKeys.STARRED_ENTRIES,
            self._url("starred_entries.json"),
            list[int],
        )

    def create_starred_entries(self, entries: list[int]) -> None:
        """Star entries."""
        request = self._request(
            self._url("starred_entries.json"), method=HttpMethod.POST
        )
        self._send(request, payload=FeedbinStarredEntries(starred_entries=entries))

    def delete_starred_entries(self, entries: list[int]) -> None:
        """Unstar entries."""
        request = self._request(
            self._url("starred_entries.json"), method=HttpMethod.DELETE
        )
        self._send(request, payload=FeedbinStarredEntries(starred_entries=entries))

    # Private

    def _url(self, path: str, query: list[tuple[str, str]] | None = None) -> str:
        url = urljoin(self._base_url, path)
        if query:
            url = f"{url}?{urlencode(query, safe=QUERY_SAFE_CHARACTERS)}"
        return url

    def _entries_query(self, since: datetime) -> list[tuple[str, str]]:
        return [
            ("since", format_feedbin_date(since)),
            ("per_page", str(ENTRIES_PER_PAGE)),
            ("mode", MODE_EXTENDED),
        ]

    def _request(
        self,
        url: str,
        method: HttpMethod = HttpMethod.GET,
        headers: dict[str, str] | None = None,
        conditional_get: ConditionalGetInfo | None = None,
        body: bytes | None = None,
    ) -> HttpRequest:
        return HttpRequest(
            url=url,
            method=method,
            headers=headers or {},
            credentials=self.credentials,
            conditional_get=conditional_get,
            body=body,
        )

    def _check_suspended(self, url: str | None = None) -> None:
        if self._suspended.is_set():
            raise SuspendedError(url=redact_url_credentials(url) if url else None)

    def _send(
        self,
        request: HttpRequest,
        payload: BaseModel | None = None,
    ) -> tuple[HttpResponse, bytes | None]:
        """Send a request, honoring suspension and pacing.

        Args:
            request: The request.
            payload: Optional JSON payload to encode as the body.

        Returns:
            The response and its body.
        """
        self._check_suspended(request.url)
        if payload is not None:
            request = request.with_body(encode_payload(payload), CONTENT_TYPE_JSON)

        self._rate_limiter.acquire()
        self._check_suspended(request.url)

        try:
            response, body = self._transport.send(request)
        except TransportError as e:
            if self._suspended.is_set():
                raise SuspendedError(url=redact_url_credentials(request.url)) from e
            raise

        self._check_suspended(request.url)
        return response, body

    def _retrieve_conditional(self, key: str, url: str, result_type: Any) -> Any:
        """GET a listing with stored validators and store the new ones.

        Args:
            key: Conditional-get key of the resource.
            url: Resource URL.
            result_type: Type the body is decoded into.

        Returns:
            The decoded listing, or None if not modified.
        """
        conditional_get = None
        if self.account_metadata is not None:
            conditional_get = self.account_metadata.conditional_get(key)
        response, body = self._send(self._request(url, conditional_get=conditional_get))
        result = decode_body(body, result_type, redact_url_credentials(url))
        self._store_conditional_get(key, response)

        self._log.debug(
            "listing_retrieved",
            key=key,
            not_modified=body is None,
            count=len(result) if result is not None else None,
        )
        return result

    def _store_conditional_get(self, key: str, response: HttpResponse) -> None:
        if self.account_metadata is None:
            return
        self.account_metadata.store_conditional_get(
            key, ConditionalGetInfo.from_headers(response.headers)
        )


def parse_tagging_location(location: str | None) -> int | None:
    """Parse the tagging ID out of a Location header.

    Args:
        location: e.g. ``https://api.feedbin.com/v2/taggings/42.json``.

    Returns:
        The tagging ID, or None if the header is absent or malformed.
    """
    if not location:
        return None
    start = location.find(TAGGING_LOCATION_PREFIX)
    if start == -1:
        return None
    remainder = location[start + len(TAGGING_LOCATION_PREFIX) :]
    end = remainder.find(TAGGING_LOCATION_SUFFIX)
    if end == -1:
        return None
    try:
        return int(remainder[:end])
    except ValueError:
        return None
