"""
Tests for interval parsing and datetime helpers.
"""

from datetime import datetime

import pytest

from kiwisdb.interval import (
    DataInterval,
    IntervalBase,
    format_datetime,
    parse_interval,
    parse_timestamp,
    spacing_to_interval,
    truncate_datetime,
)


class TestParseInterval:
    """Test interval string parsing."""

    @pytest.mark.parametrize(
        "text,base,multiplier",
        [
            ("1Day", IntervalBase.DAY, 1),
            ("Day", IntervalBase.DAY, 1),
            ("3day", IntervalBase.DAY, 3),
            ("24Hour", IntervalBase.HOUR, 24),
            ("15Minute", IntervalBase.MINUTE, 15),
            ("1Month", IntervalBase.MONTH, 1),
            ("1Year", IntervalBase.YEAR, 1),
        ],
    )
    def test_regular(self, text, base, multiplier):
        """Test regular intervals."""
        interval = parse_interval(text)
        assert interval.base is base
        assert interval.multiplier == multiplier
        assert interval.is_regular

    def test_irregular(self):
        """Test irregular intervals and their precision."""
        interval = parse_interval("IrregDay")
        assert interval.is_irregular
        assert interval.precision is IntervalBase.DAY
        assert str(interval) == "IrregDay"
        assert parse_interval("Irregular").precision is IntervalBase.SECOND
        assert str(parse_interval("irregminute")) == "IrregMinute"

    @pytest.mark.parametrize("text", ["", "  ", "Fortnight", "0Day", "Irreg3Day", "1.5Hour"])
    def test_invalid(self, text):
        """Test invalid intervals raise ValueError."""
        with pytest.raises(ValueError):
            parse_interval(text)

    def test_canonical_name(self):
        """Test canonical names always include the multiplier."""
        assert str(parse_interval("Day")) == "1Day"
        assert str(DataInterval(IntervalBase.HOUR, 24)) == "24Hour"

    def test_month_offset(self):
        """Test calendar offsets clip to the end of month."""
        offset = parse_interval("1Month").offset()
        assert datetime(2023, 1, 31) + offset == datetime(2023, 2, 28)

    def test_irregular_has_no_offset(self):
        """Test irregular intervals cannot be stepped."""
        with pytest.raises(ValueError):
            parse_interval("IrregSecond").offset()


class TestSpacingToInterval:
    """Test conversion of KiWIS ts_spacing values."""

    @pytest.mark.parametrize(
        "spacing,expected",
        [
            ("PT15M", "15Minute"),
            ("PT1H", "1Hour"),
            ("PT24H", "24Hour"),
            ("P1D", "1Day"),
            ("P1M", "1Month"),
            ("P1Y", "1Year"),
            ("PT1H30M", "90Minute"),
            ("P1DT12H", "36Hour"),
            ("1Day", "1Day"),
            ("", "IrregSecond"),
            (None, "IrregSecond"),
            ("PT0S", "IrregSecond"),
        ],
    )
    def test_conversion(self, spacing, expected):
        """Test ISO-8601 durations and interval strings."""
        assert spacing_to_interval(spacing) == expected

    def test_unrecognized(self):
        """Test unrecognized spacing returns None."""
        assert spacing_to_interval("every tuesday") is None
        assert spacing_to_interval("P1MT1H") is None


class TestDatetimeHelpers:
    """Test precision helpers."""

    def test_truncate(self):
        """Test truncation to each precision."""
        dt = datetime(2023, 6, 10, 13, 45, 30, 500)
        assert truncate_datetime(dt, IntervalBase.DAY) == datetime(2023, 6, 10)
        assert truncate_datetime(dt, IntervalBase.HOUR) == datetime(2023, 6, 10, 13)
        assert truncate_datetime(dt, IntervalBase.MONTH) == datetime(2023, 6, 1)

    def test_format(self):
        """Test formatting at each precision."""
        dt = datetime(2023, 1, 2, 0, 0)
        assert format_datetime(dt, IntervalBase.DAY) == "2023-01-02"
        assert format_datetime(dt, IntervalBase.HOUR) == "2023-01-02T00"
        assert format_datetime(dt, IntervalBase.MINUTE) == "2023-01-02T00:00"
        assert format_datetime(None, IntervalBase.DAY) == ""

    def test_parse_timestamp(self):
        """Test KiWIS timestamp formats."""
        dt = parse_timestamp("2023-01-02T00:00:00.000-07:00")
        assert (dt.year, dt.month, dt.day, dt.hour) == (2023, 1, 2, 0)
        assert dt.utcoffset() is not None
        assert parse_timestamp("2023-01-02") == datetime(2023, 1, 2)
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")
