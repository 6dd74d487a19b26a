"""Pagination and date helpers for response headers.

Pure functions over response headers, used by the API callers to walk
paginated listings and to timestamp the start of an entry sync.
"""

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from pydantic import BaseModel, ConfigDict

from feedsync.transport.constants import HEADER_DATE, HEADER_LINK
from feedsync.transport.models import header_value


# One `<url>; rel="name"` entry of an RFC 5988 Link header
LINK_ENTRY_PATTERN = re.compile(r'<(?P<url>[^>]*)>\s*;\s*rel="?(?P<rel>[^",;]+)"?')

# `page=` as its own query parameter, not the tail of `per_page=`
PAGE_PARAMETER_PATTERN = re.compile(r"(?:^|[^A-Za-z0-9_])page=(?P<value>[^&>]*)")


class HttpLinkPagingInfo(BaseModel):
    """Paging cursors parsed from a Link header."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    first_page: str | None = None
    previous_page: str | None = None
    next_page: str | None = None
    last_page: str | None = None

    @classmethod
    def from_link_header(cls, link: str | None) -> "HttpLinkPagingInfo":
        """Parse a Link header value.

        Args:
            link: Raw header value, e.g.
                ``<https://x/entries.json?page=2>; rel="next", <...>; rel="last"``.

        Returns:
            Paging info; relations that are absent stay None.
        """
        if not link:
            return cls()

        pages: dict[str, str] = {}
        for match in LINK_ENTRY_PATTERN.finditer(link):
            rel = match.group("rel").strip().lower()
            pages.setdefault(rel, match.group("url").strip())

        return cls(
            first_page=pages.get("first"),
            previous_page=pages.get("prev") or pages.get("previous"),
            next_page=pages.get("next"),
            last_page=pages.get("last"),
        )

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "HttpLinkPagingInfo":
        """Parse the Link header out of a response's headers."""
        return cls.from_link_header(header_value(headers, HEADER_LINK))


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an HTTP date (RFC 7231) into an aware UTC datetime.

    Args:
        value: Header value such as ``Tue, 15 Nov 1994 08:12:31 GMT``.

    Returns:
        The timestamp, or None if absent or unparsable.
    """
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


class HttpDateInfo(BaseModel):
    """Server timestamp taken from a response's Date header."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    date: datetime

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "HttpDateInfo | None":
        """Build from response headers, or None without a usable Date header."""
        date = parse_http_date(header_value(headers, HEADER_DATE))
        if date is None:
            return None
        return cls(date=date)


def extract_page_number(link: str | None) -> int | None:
    """Extract the page index from a paging link.

    The number after ``page=`` ends at the next ``&`` or, for a link still
    wrapped in angle brackets, at ``>``. Unbracketed links as produced by
    HttpLinkPagingInfo may also end with the number itself.

    Args:
        link: A paging URL, possibly bracketed.

    Returns:
        The page number, or None if absent or not an integer.
    """
    if not link:
        return None

    match = PAGE_PARAMETER_PATTERN.search(link)
    if match is None:
        return None
    return _parse_int(match.group("value"))


def _parse_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None
