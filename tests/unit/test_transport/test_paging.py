"""Unit tests for Link and Date header parsing."""

from datetime import UTC, datetime

from feedsync.transport.paging import (
    HttpDateInfo,
    HttpLinkPagingInfo,
    extract_page_number,
    parse_http_date,
)


FEEDBIN_LINK_HEADER = (
    '<https://api.feedbin.com/v2/entries.json?page=2&per_page=100>; rel="next", '
    '<https://api.feedbin.com/v2/entries.json?page=1&per_page=100>; rel="prev", '
    '<https://api.feedbin.com/v2/entries.json?page=1&per_page=100>; rel="first", '
    '<https://api.feedbin.com/v2/entries.json?page=7>; rel="last"'
)


class TestHttpLinkPagingInfo:
    """Tests for Link header parsing."""

    def test_parses_all_relations(self) -> None:
        """Test that next, prev, first and last are extracted without brackets."""
        info = HttpLinkPagingInfo.from_link_header(FEEDBIN_LINK_HEADER)

        assert (
            info.next_page
            == "https://api.feedbin.com/v2/entries.json?page=2&per_page=100"
        )
        assert info.previous_page is not None
        assert info.first_page is not None
        assert info.last_page == "https://api.feedbin.com/v2/entries.json?page=7"

    def test_missing_header_yields_empty_info(self) -> None:
        """Test that no Link header means no paging cursors."""
        info = HttpLinkPagingInfo.from_link_header(None)

        assert info.next_page is None
        assert info.last_page is None

    def test_from_headers_is_case_insensitive(self) -> None:
        """Test that the Link header is found regardless of casing."""
        info = HttpLinkPagingInfo.from_headers(
            {"link": '<https://example.com/e?page=3>; rel="next"'}
        )

        assert info.next_page == "https://example.com/e?page=3"

    def test_unquoted_relation(self) -> None:
        """Test that rel values without quotes are accepted."""
        info = HttpLinkPagingInfo.from_link_header(
            "<https://example.com/e?page=4>; rel=next"
        )

        assert info.next_page == "https://example.com/e?page=4"


class TestExtractPageNumber:
    """Tests for page number extraction."""

    def test_ampersand_terminated(self) -> None:
        """Test a page parameter followed by more query parameters."""
        assert extract_page_number("<https://x.com/entries.json?page=3&foo=1>") == 3

    def test_bracket_terminated(self) -> None:
        """Test a page parameter closed by the link bracket."""
        assert extract_page_number("<https://x.com/entries.json?page=7>") == 7

    def test_unbracketed_link(self) -> None:
        """Test a link as stored by HttpLinkPagingInfo."""
        assert extract_page_number("https://x.com/entries.json?page=12") == 12

    def test_no_page_parameter(self) -> None:
        """Test that a link without page= yields None."""
        assert extract_page_number("<https://x.com/entries.json?since=1>") is None

    def test_per_page_is_not_a_page(self) -> None:
        """Test that per_page= alone is not mistaken for the page index."""
        assert extract_page_number("https://x.com/entries.json?per_page=100") is None

    def test_page_after_per_page(self) -> None:
        """Test that page= is found after per_page=."""
        assert extract_page_number("https://x.com/e.json?per_page=100&page=5") == 5

    def test_unparsable_value(self) -> None:
        """Test that a non-integer page yields None."""
        assert extract_page_number("<https://x.com/entries.json?page=abc>") is None

    def test_absent_link(self) -> None:
        """Test that a missing link yields None."""
        assert extract_page_number(None) is None
        assert extract_page_number("") is None


class TestHttpDate:
    """Tests for Date header parsing."""

    def test_parses_rfc_7231_date(self) -> None:
        """Test that an IMF-fixdate is parsed into aware UTC."""
        parsed = parse_http_date("Wed, 15 May 2024 12:00:00 GMT")

        assert parsed == datetime(2024, 5, 15, 12, 0, 0, tzinfo=UTC)

    def test_unparsable_date(self) -> None:
        """Test that garbage yields None."""
        assert parse_http_date("not a date") is None
        assert parse_http_date(None) is None

    def test_date_info_from_headers(self) -> None:
        """Test that HttpDateInfo reads the Date header."""
        info = HttpDateInfo.from_headers({"Date": "Wed, 15 May 2024 12:00:00 GMT"})

        assert info is not None
        assert info.date == datetime(2024, 5, 15, 12, 0, 0, tzinfo=UTC)

    def test_date_info_missing_header(self) -> None:
        """Test that a missing Date header yields None."""
        assert HttpDateInfo.from_headers({}) is None
