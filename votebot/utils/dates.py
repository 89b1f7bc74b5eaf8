# votebot/utils/dates.py
from __future__ import annotations

import calendar
import re
from datetime import timedelta

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def period_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def parse_period(raw: str) -> tuple[int, int]:
    """
    "2025-03" -> (2025, 3). Raises ValueError on anything else.
    """
    m = _PERIOD_RE.match((raw or "").strip())
    if not m:
        raise ValueError(f"Invalid period {raw!r}, expected YYYY-MM.")
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in period {raw!r}.")
    return year, month


def period_label(period: str) -> str:
    year, month = parse_period(period)
    return f"{calendar.month_name[month]} {year}"


def format_time_remaining(remaining: timedelta) -> str:
    secs = int(remaining.total_seconds())
    if secs <= 0:
        return "Ended"
    days, rest = divmod(secs, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def previous_period(period: str) -> str:
    year, month = parse_period(period)
    if month == 1:
        return period_key(year - 1, 12)
    return period_key(year, month - 1)
