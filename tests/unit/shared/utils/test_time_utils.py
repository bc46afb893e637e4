from datetime import datetime, timezone

import pytest

from src.shared.utils.time_utils import format_timestamp, next_timestamp, parse_timestamp, utc_now_iso


class TestTimeUtils:
    def test_format_timestamp_uses_milliseconds_and_z(self):
        value = datetime(2025, 3, 4, 5, 6, 7, 891234, tzinfo=timezone.utc)

        assert format_timestamp(value) == "2025-03-04T05:06:07.891Z"

    def test_format_timestamp_treats_naive_as_utc(self):
        assert format_timestamp(datetime(2025, 1, 1)) == "2025-01-01T00:00:00.000Z"

    def test_utc_now_iso_round_trips(self):
        stamp = utc_now_iso()

        assert stamp.endswith("Z")
        assert parse_timestamp(stamp).tzinfo is not None

    def test_parse_timestamp_accepts_any_fraction_length(self):
        assert parse_timestamp("2025-01-01T00:00:00Z").microsecond == 0
        assert parse_timestamp("2025-01-01T00:00:00.1Z").microsecond == 100000
        assert parse_timestamp("2025-01-01T00:00:00.12345Z").microsecond == 123450
        assert parse_timestamp("2025-01-01T00:00:00.123456789Z").microsecond == 123456

    def test_parse_timestamp_requires_utc_suffix(self):
        for value in ("2025-01-01T00:00:00", "2025-01-01T08:00:00+08:00", "2025-01-01T00:00:00.000z"):
            with pytest.raises(ValueError):
                parse_timestamp(value)

    def test_parse_timestamp_rejects_dates_without_time(self):
        with pytest.raises(ValueError):
            parse_timestamp("2025-01-01")
        with pytest.raises(ValueError):
            parse_timestamp("not a date")

    def test_next_timestamp_uses_clock_when_it_moved(self):
        assert next_timestamp("2025-01-01T00:00:00.000Z", "2025-01-01T00:00:01.000Z") == "2025-01-01T00:00:01.000Z"

    def test_next_timestamp_bumps_when_clock_did_not_move(self):
        assert next_timestamp("2025-01-01T00:00:00.000Z", "2025-01-01T00:00:00.000Z") == "2025-01-01T00:00:00.001Z"

    def test_next_timestamp_bumps_when_clock_went_backwards(self):
        assert next_timestamp("2025-06-01T00:00:00.500Z", "2025-01-01T00:00:00.000Z") == "2025-06-01T00:00:00.501Z"

    def test_next_timestamp_without_previous(self):
        assert next_timestamp(None, "2025-01-01T00:00:00.000Z") == "2025-01-01T00:00:00.000Z"
