"""Unit tests for Feedbin date helpers."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from feedsync.feedbin.dates import format_feedbin_date, subtract_months


class TestFormatFeedbinDate:
    """Tests for format_feedbin_date()."""

    def test_formats_utc_with_microseconds(self) -> None:
        """Test the since= format."""
        value = datetime(2024, 1, 15, 10, 0, 0, 123000, tzinfo=UTC)

        assert format_feedbin_date(value) == "2024-01-15T10:00:00.123000Z"

    def test_converts_to_utc(self) -> None:
        """Test that offsets are normalized to UTC."""
        value = datetime(2024, 1, 15, 12, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_feedbin_date(value) == "2024-01-15T10:00:00.000000Z"

    def test_naive_is_utc(self) -> None:
        """Test that naive timestamps are taken as UTC."""
        assert format_feedbin_date(datetime(2024, 1, 15)) == (
            "2024-01-15T00:00:00.000000Z"
        )


class TestSubtractMonths:
    """Tests for subtract_months()."""

    @pytest.mark.parametrize(
        ("value", "months", "expected"),
        [
            (datetime(2024, 5, 15), 3, datetime(2024, 2, 15)),
            (datetime(2024, 2, 10), 3, datetime(2023, 11, 10)),
            (datetime(2024, 5, 31), 3, datetime(2024, 2, 29)),
            (datetime(2023, 5, 31), 3, datetime(2023, 2, 28)),
            (datetime(2024, 1, 1), 12, datetime(2023, 1, 1)),
        ],
    )
    def test_subtracts_calendar_months(
        self, value: datetime, months: int, expected: datetime
    ) -> None:
        """Test month arithmetic including year wrap and day clamping."""
        assert subtract_months(value, months) == expected
