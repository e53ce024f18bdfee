from datetime import datetime, timedelta, timezone

from task_tracker.backend.utils import classify_hours, format_hours, iso_timestamp


def test_classify_hours_full_day():
    assert classify_hours(8.0, full_day=8.0) is None


def test_classify_hours_partial_and_overtime():
    assert classify_hours(6.5, full_day=8.0) == "Partial day — 1.5h short of 8h"
    assert classify_hours(8.25, full_day=8.0) == "Overtime — +0.25h over 8h"


def test_format_hours_trims_zeros():
    assert format_hours(8.0) == "8"
    assert format_hours(7.5) == "7.5"
    assert format_hours(0.25) == "0.25"


def test_iso_timestamp_is_utc_with_milliseconds():
    moment = datetime(2024, 5, 1, 11, 30, 15, 123456, tzinfo=timezone(timedelta(hours=2)))
    assert iso_timestamp(moment) == "2024-05-01T09:30:15.123Z"
