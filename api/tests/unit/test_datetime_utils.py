"""
Tests de DateTimeUtils: formato ISO-8601 con 'Z' y límites de mes.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from app.shared.utils.datetime_utils import DateTimeUtils


def test_to_iso_string_normalizes_to_utc_with_z_suffix() -> None:
    bogota = timezone(timedelta(hours=-5))
    value = datetime(2025, 1, 15, 1, 30, tzinfo=bogota)

    assert DateTimeUtils.to_iso_string(value) == "2025-01-15T06:30:00.000000Z"


def test_to_iso_string_naive_and_date_are_utc() -> None:
    assert DateTimeUtils.to_iso_string(datetime(2025, 1, 15, 6, 30)) == "2025-01-15T06:30:00.000000Z"
    assert DateTimeUtils.to_iso_string(date(2025, 1, 15)) == "2025-01-15T00:00:00.000000Z"


@pytest.mark.parametrize(
    "text",
    ["2025-01-15T06:30:00.000000Z", "2025-01-15T06:30:00Z", "2025-01-15T01:30:00-05:00"],
)
def test_from_iso_string_accepts_common_forms(text: str) -> None:
    assert DateTimeUtils.from_iso_string(text) == datetime(2025, 1, 15, 6, 30, tzinfo=timezone.utc)


def test_from_iso_string_invalid_returns_none() -> None:
    assert DateTimeUtils.from_iso_string("no es fecha") is None
    assert DateTimeUtils.from_iso_string(None) is None


def test_iso_strings_sort_chronologically() -> None:
    earlier = DateTimeUtils.to_iso_string(datetime(2025, 1, 9, 23, tzinfo=timezone.utc))
    later = DateTimeUtils.to_iso_string(datetime(2025, 1, 10, 1, tzinfo=timezone.utc))
    assert earlier < later


@pytest.mark.parametrize("year,month,last_day", [(2025, 2, 28), (2024, 2, 29), (2025, 12, 31)])
def test_month_bounds(year: int, month: int, last_day: int) -> None:
    start, end = DateTimeUtils.month_bounds(year, month)

    assert start == datetime(year, month, 1, tzinfo=timezone.utc)
    assert end.day == last_day
    assert end.month == month
    assert end + timedelta(microseconds=1) == (
        datetime(year + 1, 1, 1, tzinfo=timezone.utc) if month == 12
        else datetime(year, month + 1, 1, tzinfo=timezone.utc)
    )
