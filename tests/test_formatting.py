from datetime import datetime, timedelta, timezone

from mtracker.coerce import parse_timestamp, record_timestamp
from mtracker.formatting import format_amount, format_money, format_number, format_time


def test_format_number_groups_thousands():
    assert format_number(1234567) == "1,234,567"
    assert format_number(999) == "999"
    assert format_number(0) == "0"


def test_format_number_absolute_and_rounded():
    assert format_number(-1500.4) == "1,500"
    assert format_number(999.5) == "1,000"
    assert format_number(-2.5) == "2"


def test_format_number_never_raises():
    assert format_number(None) == "0"
    assert format_number("abc") == "0"
    assert format_number(float("nan")) == "0"
    assert format_number(float("inf")) == "0"
    assert format_number("2500") == "2,500"
    assert format_number(10 ** 400) == "0"
    assert format_number(-10 ** 400) == "0"
    assert format_number("1e400") == "0"


def test_format_amount_sign_and_symbol():
    assert format_amount(50000, "₦") == "+₦50,000"
    assert format_amount(-20000, "$") == "-$20,000"


def test_format_money():
    assert format_money(-500, "₦") == "-₦500"
    assert format_money(1200, "€") == "€1,200"


def test_format_time():
    assert format_time("2025-01-10T09:05:00") == "09:05"
    assert format_time("bad") == ""
    assert format_time(None) == ""


def test_parse_timestamp_normalizes_timezones():
    parsed = parse_timestamp("2025-01-10T09:00:00Z")
    expected = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert parsed == expected
    assert parsed.tzinfo is None


def test_parse_timestamp_rejects_garbage():
    assert parse_timestamp("") is None
    assert parse_timestamp("2025-13-40") is None
    assert parse_timestamp(12345) is None


def test_record_timestamp_prefers_created_at():
    record = {"createdAt": "2025-01-02T00:00:00", "date": "2020-01-01"}
    assert record_timestamp(record) == datetime(2025, 1, 2)
    aware = datetime(2025, 1, 2, tzinfo=timezone(timedelta(hours=1)))
    assert parse_timestamp(aware).tzinfo is None
