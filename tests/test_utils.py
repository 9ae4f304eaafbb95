"""
Tests for duration and day-bucket helpers.
"""

import datetime
import pytest

from mari.utils import (
    add_months, format_duration, format_duration_for_edit, month_start, parse_duration, week_start
)


@pytest.mark.parametrize("text, seconds", [
    ("1:30", 5400),
    ("0:05", 300),
    ("1h 30m", 5400),
    ("1h30m", 5400),
    ("2h", 7200),
    ("45m", 2700),
    ("1.5h", 5400),
    ("90", 5400),
    ("  20 M ", 1200),
    ("0", 0),
])
def test_parse_duration(text, seconds):
    assert parse_duration(text) == seconds


@pytest.mark.parametrize("text", ["", "   ", "abc", "1:75", "-5", "nan", "inf"])
def test_parse_duration_rejects(text):
    assert parse_duration(text) is None


def test_format_duration():
    assert format_duration(0) == "0h 0m"
    assert format_duration(3600) == "1h 0m"
    assert format_duration(3 * 1200) == "1h 0m"
    assert format_duration(5400 + 59) == "1h 30m"


def test_format_duration_for_edit():
    assert format_duration_for_edit(2700) == "45m"
    assert format_duration_for_edit(7200) == "2h"
    assert format_duration_for_edit(5400) == "1h 30m"
    assert parse_duration(format_duration_for_edit(5400)) == 5400


def test_week_and_month_start():
    wednesday = datetime.date(2026, 3, 4)
    assert week_start(wednesday) == datetime.date(2026, 3, 2)
    assert week_start(datetime.date(2026, 3, 2)) == datetime.date(2026, 3, 2)
    assert month_start(wednesday) == datetime.date(2026, 3, 1)


def test_add_months():
    assert add_months(datetime.date(2026, 1, 31), 1) == datetime.date(2026, 2, 28)
    assert add_months(datetime.date(2028, 1, 31), 1) == datetime.date(2028, 2, 29)
    assert add_months(datetime.date(2026, 12, 15), 1) == datetime.date(2027, 1, 15)
    assert add_months(datetime.date(2026, 3, 1), -3) == datetime.date(2025, 12, 1)
