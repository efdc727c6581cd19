import pytest

from certsync.lib.errors import FormatError, RangeError
from certsync.lib.time import (
    SECONDS_PER_HOUR,
    SECONDS_PER_WEEK,
    SECONDS_PER_YEAR,
    filetime_to_span,
    filetime_to_str,
    format_duration,
    parse_duration,
    span_to_filetime,
)


def test_parse_duration_units():
    assert parse_duration("2 weeks") == 1209600
    assert parse_duration("1 years") == 8760 * 3600
    assert parse_duration("1 months") == 720 * 3600
    assert parse_duration("3 days") == 3 * 24 * 3600
    assert parse_duration("5 hours") == 5 * 3600


def test_parse_duration_case_and_singular():
    assert parse_duration("2 Weeks") == parse_duration("2 weeks")
    assert parse_duration("1 YEAR") == SECONDS_PER_YEAR
    assert parse_duration("  6 weeks ") == 6 * SECONDS_PER_WEEK


@pytest.mark.parametrize(
    "text", ["bogus", "weeks", "2", "2 fortnights", "-1 days", "1.5 days", ""]
)
def test_parse_duration_rejects_malformed(text):
    with pytest.raises(FormatError):
        parse_duration(text)


def test_parse_duration_rejects_non_string():
    with pytest.raises(FormatError):
        parse_duration(42)


def test_parse_duration_overflow():
    assert parse_duration("2147483647 hours") == 2147483647 * SECONDS_PER_HOUR
    with pytest.raises(RangeError):
        parse_duration("2147483648 hours")


def test_format_duration_picks_largest_unit():
    assert format_duration(SECONDS_PER_YEAR) == "1 years"
    assert format_duration(6 * SECONDS_PER_WEEK) == "6 weeks"
    assert format_duration(30 * 24 * SECONDS_PER_HOUR) == "1 months"
    assert format_duration(7 * 24 * SECONDS_PER_HOUR) == "1 weeks"
    assert format_duration(25 * SECONDS_PER_HOUR) == "25 hours"
    assert format_duration(0) == "0 hours"


def test_format_duration_round_trips():
    for text in ["1 years", "6 weeks", "2 days", "5 hours", "3 months"]:
        assert format_duration(parse_duration(text)) == text


def test_format_duration_rejects_partial_hours():
    with pytest.raises(FormatError):
        format_duration(90)
    with pytest.raises(FormatError):
        format_duration(-SECONDS_PER_HOUR)


def test_filetime_encoding():
    one_year = b"\x00\x40\x39\x87\x2e\xe1\xfe\xff"
    assert span_to_filetime(SECONDS_PER_YEAR) == one_year
    assert filetime_to_span(one_year) == SECONDS_PER_YEAR
    assert filetime_to_str(one_year) == "1 years"
    assert filetime_to_str(span_to_filetime(6 * SECONDS_PER_WEEK)) == "6 weeks"


def test_span_to_filetime_rejects_negative():
    with pytest.raises(ValueError):
        span_to_filetime(-1)


def test_span_to_filetime_overflow():
    with pytest.raises(RangeError):
        span_to_filetime(2**63 // 10_000_000 + 1)
    assert span_to_filetime(2**63 // 10_000_000) == (
        (-(2**63 // 10_000_000) * 10_000_000).to_bytes(8, "little", signed=True)
    )
