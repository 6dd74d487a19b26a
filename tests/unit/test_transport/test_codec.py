"""Unit tests for JSON encoding and decoding."""

import json

import pytest

from feedsync.feedbin.models import FeedbinRenameTag, FeedbinTag
from feedsync.transport.codec import decode_body, encode_payload, send_decoded
from feedsync.transport.errors import DecodeError
from feedsync.transport.models import HttpRequest
from tests.helpers.fake_transport import FakeReply, FakeTransport, json_reply


class TestDecodeBody:
    """Tests for decode_body."""

    def test_decodes_list_of_models(self) -> None:
        """Test decoding a JSON array into pydantic models."""
        body = json.dumps([{"id": 1, "name": "Tech"}]).encode()

        tags = decode_body(body, list[FeedbinTag])

        assert tags == [FeedbinTag(tag_id=1, name="Tech")]

    def test_none_body_decodes_to_none(self) -> None:
        """Test that a missing body is passed through as None."""
        assert decode_body(None, list[FeedbinTag]) is None

    def test_malformed_json_raises_decode_error(self) -> None:
        """Test that invalid JSON raises DecodeError with the URL."""
        with pytest.raises(DecodeError) as exc_info:
            decode_body(b"{not json", list[FeedbinTag], url="https://x/tags.json")

        assert exc_info.value.url == "https://x/tags.json"
        assert exc_info.value.to_dict()["error_class"] == "DECODE"

    def test_wrong_shape_raises_decode_error(self) -> None:
        """Test that valid JSON of the wrong shape raises DecodeError."""
        with pytest.raises(DecodeError):
            decode_body(b'{"id": 1}', list[FeedbinTag])


class TestEncodePayload:
    """Tests for encode_payload."""

    def test_uses_wire_names(self) -> None:
        """Test that payloads are encoded with their JSON field names."""
        body = encode_payload(FeedbinRenameTag(old_name="A", new_name="B"))

        assert json.loads(body) == {"old_name": "A", "new_name": "B"}


class TestSendDecoded:
    """Tests for send_decoded."""

    def test_returns_response_and_value(self) -> None:
        """Test that the body is decoded after sending."""
        transport = FakeTransport(json_reply([{"id": 2, "name": "News"}]))

        response, tags = send_decoded(
            transport, HttpRequest(url="https://x/tags.json"), list[FeedbinTag]
        )

        assert response.status_code == 200
        assert tags == [FeedbinTag(tag_id=2, name="News")]

    def test_not_modified_decodes_to_none(self) -> None:
        """Test that a 304 yields None."""
        transport = FakeTransport(FakeReply(status_code=304))

        _, tags = send_decoded(
            transport, HttpRequest(url="https://x/tags.json"), list[FeedbinTag]
        )

        assert tags is None
