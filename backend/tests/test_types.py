"""
MoodTrack Backend — Identifier & Timestamp Primitive Tests
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from moodtrack.exceptions import InvalidIdentifierError
from moodtrack.models.types import (
    UTCDateTime,
    identifier_to_hex,
    parse_identifier,
    to_rfc3339,
    utc_now,
)


class TestIdentifiers:
    def test_hex_form(self):
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert identifier_to_hex(value) == "12345678123456781234567812345678"

    def test_parse_hex(self):
        value = uuid.uuid4()
        assert parse_identifier(value.hex) == value

    @pytest.mark.parametrize(
        "raw",
        ["", "xyz", "12345678-1234-5678-1234-567812345678", "g" * 32, "1234567812345678123456781234567"],
    )
    def test_parse_rejects_non_hex(self, raw):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            parse_identifier(raw)
        assert exc_info.value.error_code == 40001
        assert exc_info.value.status_code == 400


class TestTimestamps:
    def test_utc_now_is_aware_and_millisecond_precision(self):
        now = utc_now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)
        assert now.microsecond % 1000 == 0

    def test_rfc3339_converts_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2026, 3, 1, 10, 30, tzinfo=plus_two)
        assert to_rfc3339(value) == "2026-03-01T08:30:00+00:00"

    def test_rfc3339_treats_naive_as_utc(self):
        assert to_rfc3339(datetime(2026, 3, 1, 8, 30, 0, 125000)) == "2026-03-01T08:30:00.125000+00:00"


class TestUTCDateTime:
    def test_result_is_always_aware(self):
        column_type = UTCDateTime()
        loaded = column_type.process_result_value(datetime(2026, 1, 1, 12, 0), dialect=None)
        assert loaded == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_bind_normalizes_to_utc(self):
        column_type = UTCDateTime()
        bound = column_type.process_bind_param(
            datetime(2026, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2))), dialect=None
        )
        assert bound == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert bound.utcoffset() == timedelta(0)

    def test_none_passes_through(self):
        assert UTCDateTime().process_result_value(None, dialect=None) is None
