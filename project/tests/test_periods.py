# tests/test_periods.py

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from posapp.utils.periods import (
    Granularity,
    Period,
    parse_date_bound,
    parse_period,
    resolve_period,
    shift_months,
)

NOW = datetime(2025, 6, 15, 12, 30, tzinfo=timezone.utc)


def test_day_starts_at_midnight_and_ends_now():
    resolved = resolve_period(Period.DAY, NOW)
    assert resolved.start == datetime(2025, 6, 15, tzinfo=timezone.utc)
    assert resolved.end == NOW
    assert resolved.granularity is Granularity.DAY


def test_week_month_year_ranges():
    week = resolve_period(Period.WEEK, NOW)
    month = resolve_period(Period.MONTH, NOW)
    year = resolve_period(Period.YEAR, NOW)

    assert week.start == datetime(2025, 6, 8, tzinfo=timezone.utc)
    assert month.start == datetime(2025, 5, 15, tzinfo=timezone.utc)
    assert year.start == datetime(2024, 6, 15, tzinfo=timezone.utc)
    assert week.granularity is Granularity.DAY
    assert month.granularity is Granularity.DAY
    assert year.granularity is Granularity.MONTH


def test_month_subtraction_clamps_day():
    assert shift_months(datetime(2025, 3, 31), -1) == datetime(2025, 2, 28)
    assert shift_months(datetime(2024, 3, 31), -1) == datetime(2024, 2, 29)
    assert shift_months(datetime(2025, 1, 15), -1) == datetime(2024, 12, 15)
    assert shift_months(datetime(2024, 2, 29), -12) == datetime(2023, 2, 28)


def test_custom_range_covers_whole_end_day():
    resolved = resolve_period(Period.CUSTOM, NOW, "2025-01-01", "2025-01-10")
    assert resolved.start == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert resolved.end == datetime(2025, 1, 10, 23, 59, 59, 999999, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "start, end, expected",
    [
        ("2025-01-01", "2025-01-10", Granularity.DAY),
        ("2025-01-01", "2025-03-01", Granularity.DAY),     # 60 дней
        ("2025-01-01", "2025-03-02", Granularity.MONTH),   # 61 день
        ("2025-01-01", "2025-03-31", Granularity.MONTH),   # 90 дней
    ],
)
def test_custom_granularity_switches_after_threshold(start, end, expected):
    assert resolve_period(Period.CUSTOM, NOW, start, end).granularity is expected


def test_custom_threshold_is_configurable():
    resolved = resolve_period(Period.CUSTOM, NOW, "2025-01-01", "2025-01-10", monthly_threshold_days=5)
    assert resolved.granularity is Granularity.MONTH


@pytest.mark.parametrize(
    "start, end",
    [
        (None, "2025-01-10"),
        ("2025-01-01", None),
        ("yesterday", "2025-01-10"),
        ("2025-01-01", "2025-13-40"),
        ("2025-02-01", "2025-01-01"),
    ],
)
def test_custom_range_errors(start, end):
    with pytest.raises(ValueError):
        resolve_period(Period.CUSTOM, NOW, start, end)


def test_parse_period():
    assert parse_period(None) is Period.DAY
    assert parse_period("") is Period.DAY
    assert parse_period("Week") is Period.WEEK
    with pytest.raises(ValueError):
        parse_period("quarter")


def test_parse_date_bound_uses_given_timezone():
    tz = ZoneInfo("Asia/Karachi")
    start = parse_date_bound("2025-06-10", tz)
    end = parse_date_bound("2025-06-10", tz, end_of_day=True)

    assert start == datetime(2025, 6, 10, tzinfo=tz)
    assert start.astimezone(timezone.utc) == datetime(2025, 6, 9, 19, 0, tzinfo=timezone.utc)
    assert end == datetime(2025, 6, 10, 23, 59, 59, 999999, tzinfo=tz)


def test_parse_date_bound_accepts_iso_datetime():
    value = parse_date_bound("2025-06-10T08:15:00Z", timezone.utc)
    assert value == datetime(2025, 6, 10, 8, 15, tzinfo=timezone.utc)


def test_bucket_label_in_local_timezone():
    tz = ZoneInfo("Asia/Karachi")
    late_utc = datetime(2025, 6, 30, 21, 0, tzinfo=timezone.utc)  # 1 июля 02:00 в Карачи

    assert Granularity.DAY.label(late_utc, tz) == "2025-07-01"
    assert Granularity.MONTH.label(late_utc, tz) == "2025-07"
    assert Granularity.DAY.label(late_utc, timezone.utc) == "2025-06-30"


def test_period_uses_timezone_of_now():
    tz = ZoneInfo("Asia/Karachi")
    now = datetime(2025, 6, 15, 1, 0, tzinfo=tz)
    resolved = resolve_period(Period.DAY, now)
    assert resolved.start == datetime(2025, 6, 15, tzinfo=tz)


def test_day_buckets_cover_span_in_local_timezone():
    tz = ZoneInfo("Asia/Karachi")  # UTC+5
    buckets = Granularity.DAY.buckets(
        datetime(2025, 6, 30, 21, 0, tzinfo=timezone.utc),   # 01.07 02:00 в Карачи
        datetime(2025, 7, 2, 10, 0, tzinfo=timezone.utc),
        tz,
    )

    assert [b.label for b in buckets] == ["2025-07-01", "2025-07-02"]
    assert buckets[0].start == datetime(2025, 7, 1, tzinfo=tz)
    assert buckets[0].end == buckets[1].start == datetime(2025, 7, 2, tzinfo=tz)


def test_month_buckets_cross_year():
    buckets = Granularity.MONTH.buckets(
        datetime(2024, 11, 20, tzinfo=timezone.utc),
        datetime(2025, 2, 1, tzinfo=timezone.utc),
        timezone.utc,
    )

    assert [b.label for b in buckets] == ["2024-11", "2024-12", "2025-01", "2025-02"]
    assert buckets[1].end == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert buckets[-1].end == datetime(2025, 3, 1, tzinfo=timezone.utc)
