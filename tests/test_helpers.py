# tests/test_helpers.py - Tests for helper functions
"""
Unit tests for formatting and parsing helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest
from load_diagnostics.utils.helpers import (
    format_bytes,
    format_duration,
    format_percent,
    parse_bytes,
    parse_int,
    parse_timestamp,
)


class TestFormatBytes:
    """Test cases for format_bytes"""

    @pytest.mark.parametrize('value, expected', [
        (0, '0 B'),
        (1023, '1023 B'),
        (1024, '1 KB'),
        (1536, '1.5 KB'),
        (1073741824, '1 GB'),
        (1048575, '1 MB'),
        (1073741823, '1 GB'),
    ])
    def test_exact_strings(self, value, expected):
        """Test the documented byte strings"""
        assert format_bytes(value) == expected

    def test_none_and_negative(self):
        """Test missing and negative sizes"""
        assert format_bytes(None) == '0 B'
        assert format_bytes(-5) == '0 B'

    def test_two_decimals(self):
        """Test rounding to two decimals"""
        assert format_bytes(1024 * 1024 * 1.234) == '1.23 MB'

    def test_parse_bytes_inverse(self):
        """Test parsing formatted sizes back"""
        assert parse_bytes('1.5 KB') == 1536
        assert parse_bytes('1 GB') == 1073741824
        assert parse_bytes('1023 B') == 1023

    def test_parse_bytes_invalid(self):
        """Test parsing garbage raises"""
        with pytest.raises(ValueError):
            parse_bytes('lots')


class TestParseTimestamp:
    """Test cases for parse_timestamp"""

    def test_string_formats(self):
        """Test the supported string layouts"""
        expected = datetime(2024, 1, 1, 12, 30, 45)
        assert parse_timestamp('2024-01-01 12:30:45') == expected
        assert parse_timestamp('2024-01-01T12:30:45') == expected
        assert parse_timestamp('2024/01/01 12:30:45') == expected
        assert parse_timestamp('2024-01-01 12:30:45.500000') == expected.replace(microsecond=500000)

    def test_missing_values(self):
        """Test empty and null-like values"""
        assert parse_timestamp(None) is None
        assert parse_timestamp('') is None
        assert parse_timestamp('NULL') is None
        assert parse_timestamp('not a time') is None
        assert parse_timestamp(True) is None

    def test_datetime_passthrough(self):
        """Test naive datetimes are returned unchanged"""
        value = datetime(2024, 1, 1)
        assert parse_timestamp(value) == value

    def test_aware_values_become_naive(self):
        """Test timezone-aware values are converted to naive local time"""
        aware = datetime(2024, 1, 1, 12, tzinfo=timezone(timedelta(hours=8)))
        parsed = parse_timestamp(aware)
        assert parsed.tzinfo is None
        assert parsed == aware.astimezone().replace(tzinfo=None)

    def test_epoch_seconds(self):
        """Test numeric epoch values"""
        assert parse_timestamp(0) == datetime.fromtimestamp(0)

    def test_epoch_seconds_as_text(self):
        """Test epoch values read from CSV cells"""
        assert parse_timestamp('1704110400') == datetime.fromtimestamp(1704110400)
        assert parse_timestamp(' 1704110400.5 ') == datetime.fromtimestamp(1704110400.5)

    def test_epoch_out_of_range(self):
        """Test epoch values no datetime can hold"""
        assert parse_timestamp('inf') is None
        assert parse_timestamp('nan') is None
        assert parse_timestamp(1e20) is None


class TestSmallHelpers:
    """Test cases for the remaining helpers"""

    def test_parse_int(self):
        """Test optional integer parsing"""
        assert parse_int('42') == 42
        assert parse_int(42.9) == 42
        assert parse_int('') is None
        assert parse_int(None) is None
        assert parse_int('abc') is None
        assert parse_int('inf') is None
        assert parse_int(float('-inf')) is None
        assert parse_int('nan') is None

    def test_format_duration(self):
        """Test duration formatting"""
        assert format_duration(None) == 'N/A'
        assert format_duration(1.5) == '1.50s'
        assert format_duration(90) == '1.5m'
        assert format_duration(5400) == '1.5h'
        assert format_duration(172800) == '2.0d'

    def test_format_percent(self):
        """Test percentage formatting"""
        assert format_percent(95) == '95.0%'
        assert format_percent(None) == '0.0%'
