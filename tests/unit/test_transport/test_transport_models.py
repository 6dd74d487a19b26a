"""Unit tests for transport data models."""

import base64

import pytest
from pydantic import ValidationError

from feedsync.transport.constants import HEADER_CONTENT_TYPE
from feedsync.transport.models import (
    ConditionalGetInfo,
    Credentials,
    CredentialsKind,
    HttpMethod,
    HttpRequest,
    HttpResponse,
    header_value,
)


class TestCredentials:
    """Tests for Credentials."""

    def test_basic_authorization_header(self) -> None:
        """Test that basic credentials encode user:password."""
        credentials = Credentials.basic("reader@example.com", "hunter2")

        header = credentials.authorization_header()

        assert credentials.kind == CredentialsKind.BASIC
        assert header.startswith("Basic ")
        decoded = base64.b64decode(header.removeprefix("Basic ")).decode()
        assert decoded == "reader@example.com:hunter2"

    def test_oauth_authorization_header(self) -> None:
        """Test that access tokens use the OAuth scheme."""
        credentials = Credentials.oauth_access_token("user-1", "token-abc")

        assert credentials.authorization_header() == "OAuth token-abc"

    def test_secret_not_in_repr(self) -> None:
        """Test that the secret never shows up in repr()."""
        credentials = Credentials.basic("reader", "hunter2")

        assert "hunter2" not in repr(credentials)

    def test_empty_secret_rejected(self) -> None:
        """Test that an empty secret fails validation."""
        with pytest.raises(ValidationError):
            Credentials.basic("reader", "")


class TestConditionalGetInfo:
    """Tests for ConditionalGetInfo."""

    def test_from_headers_captures_both_validators(self) -> None:
        """Test that ETag and Last-Modified are captured ignoring case."""
        info = ConditionalGetInfo.from_headers(
            {"etag": '"v1"', "LAST-MODIFIED": "Wed, 15 May 2024 12:00:00 GMT"}
        )

        assert info == ConditionalGetInfo(
            etag='"v1"', last_modified="Wed, 15 May 2024 12:00:00 GMT"
        )

    def test_from_headers_without_validators(self) -> None:
        """Test that a response without validators yields None."""
        assert ConditionalGetInfo.from_headers({"Content-Type": "x"}) is None

    def test_to_request_headers(self) -> None:
        """Test that validators become conditional request headers."""
        info = ConditionalGetInfo(etag='"v1"', last_modified="yesterday")

        assert info.to_request_headers() == {
            "If-None-Match": '"v1"',
            "If-Modified-Since": "yesterday",
        }

    def test_to_request_headers_etag_only(self) -> None:
        """Test that absent validators are not sent."""
        assert ConditionalGetInfo(etag='"v1"').to_request_headers() == {
            "If-None-Match": '"v1"'
        }


class TestHttpRequest:
    """Tests for HttpRequest."""

    def test_defaults(self) -> None:
        """Test that a bare request is a GET without body."""
        request = HttpRequest(url="https://example.com")

        assert request.method == HttpMethod.GET
        assert request.body is None
        assert request.headers == {}

    def test_with_body_sets_content_type(self) -> None:
        """Test that with_body adds the content type and keeps the original."""
        request = HttpRequest(url="https://example.com", method=HttpMethod.POST)

        with_body = request.with_body(b"{}", "application/json")

        assert with_body.body == b"{}"
        assert with_body.headers[HEADER_CONTENT_TYPE] == "application/json"
        assert request.body is None

    def test_with_body_keeps_explicit_content_type(self) -> None:
        """Test that an explicit Content-Type wins."""
        request = HttpRequest(
            url="https://example.com", headers={HEADER_CONTENT_TYPE: "text/xml"}
        )

        assert request.with_body(b"<x/>", "application/json").headers == {
            HEADER_CONTENT_TYPE: "text/xml"
        }


class TestHttpResponse:
    """Tests for HttpResponse."""

    def test_header_lookup_is_case_insensitive(self) -> None:
        """Test that header() ignores case."""
        response = HttpResponse(
            status_code=201,
            url="https://example.com",
            headers={"location": "https://example.com/1"},
        )

        assert response.header("Location") == "https://example.com/1"
        assert response.is_success is True

    def test_header_value_missing(self) -> None:
        """Test that a missing header yields None."""
        assert header_value({}, "ETag") is None
