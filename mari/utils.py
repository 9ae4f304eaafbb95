import calendar
import datetime
import re
import sys
from pathlib import Path
from typing import Optional


def get_resource_path(relative_path: str) -> Path:
    """
    Get absolute path to resource, works for dev and for PyInstaller.

    Args:
        relative_path: Relative path from project root (e.g., "mari/assets")

    Returns:
        Absolute Path object
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller creates a temp folder and stores path in _MEIPASS
        base_path = Path(sys._MEIPASS)
    else:
        # This file is in mari/utils.py, so project root is up two levels
        base_path = Path(__file__).parent.parent.absolute()

    return base_path / relative_path


# Day buckets

def today() -> datetime.date:
    """The local calendar day right now"""
    return datetime.date.today()


def week_start(day: datetime.date) -> datetime.date:
    """Monday of the week containing `day`"""
    return day - datetime.timedelta(days=day.weekday())


def month_start(day: datetime.date) -> datetime.date:
    return day.replace(day=1)


def add_months(day: datetime.date, months: int) -> datetime.date:
    """
    Advance by calendar months, clamping to the last day of shorter months
    (Jan 31 + 1 month = Feb 28/29).
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, min(day.day, last_day))


# Durations

_COLON_RE = re.compile(r"^(\d+):(\d{1,2})$")
_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*h")
_MINUTES_RE = re.compile(r"(\d+(?:\.\d+)?)\s*m")
_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")


def format_duration(seconds: int) -> str:
    """Format seconds as '1h 5m'"""
    hours, remainder = divmod(int(seconds), 3600)
    return f"{hours}h {remainder // 60}m"


def format_duration_for_edit(seconds: int) -> str:
    """Compact form used to pre-fill an edit field: '45m', '2h', '1h 30m'"""
    hours, remainder = divmod(int(seconds), 3600)
    minutes = remainder // 60
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def parse_duration(text: str) -> Optional[int]:
    """
    Parse user input into seconds.

    Accepts "1:30", "1h 30m", "1h30m", "2h", "45m", "1.5h" and a plain
    number, which is read as minutes.

    Returns:
        Seconds, or None if the input cannot be parsed
    """
    trimmed = text.strip().lower()
    if not trimmed:
        return None

    colon = _COLON_RE.match(trimmed)
    if colon:
        hours, minutes = int(colon.group(1)), int(colon.group(2))
        if minutes < 60:
            return hours * 3600 + minutes * 60

    total = 0.0
    matched = False

    hours = _HOURS_RE.search(trimmed)
    if hours:
        total += float(hours.group(1)) * 3600
        matched = True

    minutes = _MINUTES_RE.search(trimmed)
    if minutes:
        total += float(minutes.group(1)) * 60
        matched = True

    if not matched:
        if _NUMBER_RE.match(trimmed):
            return round(float(trimmed) * 60)
        return None

    return round(total)
