import pytest

from ollama_api_proxy.durations import (
    MAX_DURATION,
    MINUTE,
    SECOND,
    format_duration,
    parse_duration,
)


def test_parse_thirty_seconds():
    assert parse_duration("30s") // SECOND == 30


def test_parse_equivalent_spellings():
    assert parse_duration("5m") == parse_duration("300s")
    assert parse_duration("1h30m") == parse_duration("90m")
    assert parse_duration("1.5s") == parse_duration("1500ms")
    assert parse_duration("1us") == parse_duration("1\u00b5s") == parse_duration("1000ns")


def test_parse_sign_and_zero():
    assert parse_duration("0") == 0
    assert parse_duration("-0") == 0
    assert parse_duration("-2m") == -parse_duration("2m")
    assert parse_duration("+2m") == parse_duration("2m")


def test_parse_five_minutes_matches_unit():
    assert parse_duration("5m") == 5 * MINUTE


@pytest.mark.parametrize("text", ["", "1", "1x", "abc", ".s", "-", "1h1", "s"])
def test_parse_rejects_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_parse_rejects_overflow():
    with pytest.raises(ValueError):
        parse_duration("9999999999h")


def test_format_zero():
    assert format_duration(0) == "0s"


def test_format_minutes():
    assert format_duration(5 * MINUTE) == "5m0s"


def test_format_microseconds():
    assert format_duration(1500) == "1.5\u00b5s"


@pytest.mark.parametrize(
    "value",
    [1, 999, 1500, 2_000_000, 123_456_789, SECOND, 90 * SECOND, 3_723_500_000_000,
     -SECOND, -1500, MAX_DURATION],
)
def test_round_trip(value):
    assert parse_duration(format_duration(value)) == value


def test_format_negative_is_prefixed():
    assert format_duration(-3 * SECOND) == "-" + format_duration(3 * SECOND)