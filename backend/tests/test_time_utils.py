from datetime import datetime

import pytest

from stockbill.time_utils import end_of_day, is_date_only, parse_iso_datetime, start_of_day, to_utc_z


def test_day_bounds():
    dt = datetime(2025, 3, 15, 13, 45, 10)
    assert start_of_day(dt) == datetime(2025, 3, 15)
    assert end_of_day(dt) == datetime(2025, 3, 15, 23, 59, 59, 999999)


def test_is_date_only():
    assert is_date_only("2025-03-15")
    assert not is_date_only("2025-03-15T10:00:00")
    assert not is_date_only("yesterday")


@pytest.mark.parametrize("value,expected", [
    ("2025-03-15", datetime(2025, 3, 15)),
    ("2025-03-15T10:30:00", datetime(2025, 3, 15, 10, 30)),
    ("2025-03-15T10:30:00Z", datetime(2025, 3, 15, 10, 30)),
    ("2025-03-15T16:00:00+05:30", datetime(2025, 3, 15, 10, 30)),
    ("  ", None),
    (None, None),
])
def test_parse_iso_datetime(value, expected):
    assert parse_iso_datetime(value) == expected


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        parse_iso_datetime("last tuesday")


def test_to_utc_z():
    assert to_utc_z(datetime(2025, 3, 15, 10, 30, 0, 500)) == "2025-03-15T10:30:00Z"
    assert to_utc_z(None) is None
