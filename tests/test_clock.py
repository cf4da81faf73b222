"""
Tests for calendar-day windows
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from togo.utils.clock import day_window, next_reset, to_utc


def test_utc_day():
    start, end = day_window(datetime(2026, 3, 10, 12, 30, tzinfo=timezone.utc), timezone.utc)

    assert start == datetime(2026, 3, 10, tzinfo=timezone.utc)
    assert end == datetime(2026, 3, 11, tzinfo=timezone.utc)


def test_midnight_belongs_to_new_day():
    start, _ = day_window(datetime(2026, 3, 10, tzinfo=timezone.utc), timezone.utc)

    assert start == datetime(2026, 3, 10, tzinfo=timezone.utc)


def test_window_in_local_timezone():
    tz = ZoneInfo("Asia/Ho_Chi_Minh")
    # 20:00 UTC on the 9th is 03:00 on the 10th in UTC+7
    start, end = day_window(datetime(2026, 3, 9, 20, 0, tzinfo=timezone.utc), tz)

    assert start == datetime(2026, 3, 9, 17, 0, tzinfo=timezone.utc)
    assert end == datetime(2026, 3, 10, 17, 0, tzinfo=timezone.utc)


def test_dst_day_is_23_hours():
    tz = ZoneInfo("Europe/Berlin")
    start, end = day_window(datetime(2026, 3, 29, 12, 0, tzinfo=timezone.utc), tz)

    assert end - start == timedelta(hours=23)


def test_naive_now_taken_as_utc():
    assert day_window(datetime(2026, 3, 10, 5), timezone.utc) == day_window(
        datetime(2026, 3, 10, 5, tzinfo=timezone.utc), timezone.utc
    )


def test_next_reset_is_window_end():
    now = datetime(2026, 3, 10, 5, tzinfo=timezone.utc)

    assert next_reset(now, timezone.utc) == datetime(2026, 3, 11, tzinfo=timezone.utc)


def test_to_utc():
    local = datetime(2026, 3, 10, 9, 0, tzinfo=ZoneInfo("Asia/Ho_Chi_Minh"))

    assert to_utc(local) == datetime(2026, 3, 10, 2, 0, tzinfo=timezone.utc)
    assert to_utc(local).tzinfo == timezone.utc
    assert to_utc(datetime(2026, 3, 10, 2, 0)).tzinfo == timezone.utc
