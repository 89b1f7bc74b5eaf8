from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from votebot.database.models import Phase
from votebot.utils.dates import days_in_month, format_time_remaining, previous_period
from votebot.utils.phase_window import natural_phase_end, resolve_phase_window

UTC = timezone.utc


def at(y, m, d, hh=12, mm=0):
    return datetime(y, m, d, hh, mm, tzinfo=UTC)


@pytest.mark.parametrize("year,month", [(2025, 2), (2024, 2), (2025, 4), (2025, 3)])
def test_middle_of_submission_window_targets_next_month(year, month):
    dim = days_in_month(year, month)
    w = resolve_phase_window(at(year, month, dim - 6))
    assert w.phase == Phase.SUBMISSION
    ny, nm = (year + 1, 1) if month == 12 else (year, month + 1)
    assert w.period == f"{ny:04d}-{nm:02d}"


@pytest.mark.parametrize(
    "day,phase,period",
    [
        (1, Phase.DISPLAY, "2025-03"),
        (23, Phase.DISPLAY, "2025-03"),
        (24, Phase.SUBMISSION, "2025-04"),
        (26, Phase.SUBMISSION, "2025-04"),
        (27, Phase.VOTING, "2025-04"),
        (30, Phase.VOTING, "2025-04"),
        (31, Phase.DISPLAY, "2025-04"),
    ],
)
def test_march_schedule(day, phase, period):
    w = resolve_phase_window(at(2025, 3, day))
    assert (w.phase, w.period) == (phase, period)


def test_february_leap_and_common_years_differ():
    # 2024-02 has 29 days: submission 22..24; 2025-02 has 28: submission 21..23
    assert resolve_phase_window(at(2024, 2, 21)).phase == Phase.DISPLAY
    assert resolve_phase_window(at(2025, 2, 21)).phase == Phase.SUBMISSION
    assert resolve_phase_window(at(2024, 2, 29)).phase == Phase.DISPLAY
    assert resolve_phase_window(at(2025, 2, 28)).period == "2025-03"


def test_december_rolls_into_next_year():
    w = resolve_phase_window(at(2025, 12, 28))
    assert w.phase == Phase.VOTING
    assert w.period == "2026-01"


def test_window_bounds_and_remaining_time():
    now = at(2025, 3, 25, 6, 0)
    w = resolve_phase_window(now)
    assert w.start == datetime(2025, 3, 24, tzinfo=UTC)
    assert w.end == datetime(2025, 3, 26, 23, 59, 59, tzinfo=UTC)
    assert w.time_remaining == w.end - now


def test_last_day_display_runs_until_next_submission_start():
    w = resolve_phase_window(at(2025, 3, 31))
    # April has 30 days, its submission window starts on the 23rd
    assert w.end == datetime(2025, 4, 22, 23, 59, 59, tzinfo=UTC)


def test_early_display_ends_day_before_submission():
    w = resolve_phase_window(at(2025, 4, 2))
    assert w.phase == Phase.DISPLAY
    assert w.start == datetime(2025, 4, 1, tzinfo=UTC)
    assert w.end == datetime(2025, 4, 22, 23, 59, 59, tzinfo=UTC)


def test_boundaries_follow_local_timezone():
    tz = ZoneInfo("Asia/Tokyo")
    # 2025-03-23 20:00 UTC is already the 24th in Tokyo
    now = datetime(2025, 3, 23, 20, 0, tzinfo=UTC).astimezone(tz)
    w = resolve_phase_window(now)
    assert w.phase == Phase.SUBMISSION
    assert w.start.tzinfo == tz


def test_resolver_is_pure():
    now = at(2025, 3, 28)
    assert resolve_phase_window(now) == resolve_phase_window(now)


def test_natural_phase_end():
    now = at(2025, 3, 5)
    assert natural_phase_end(Phase.SUBMISSION, now) == datetime(2025, 3, 26, 23, 59, 59, tzinfo=UTC)
    assert natural_phase_end(Phase.VOTING, now) == datetime(2025, 3, 30, 23, 59, 59, tzinfo=UTC)
    assert natural_phase_end(Phase.DISPLAY, now) == datetime(2025, 3, 31, 23, 59, 59, tzinfo=UTC)


def test_natural_phase_end_rolls_over_once_passed():
    now = at(2025, 3, 31)
    # April has 30 days: submission ends on the 25th, voting on the 29th
    assert natural_phase_end(Phase.SUBMISSION, now) == datetime(2025, 4, 25, 23, 59, 59, tzinfo=UTC)
    assert natural_phase_end(Phase.VOTING, now) == datetime(2025, 4, 29, 23, 59, 59, tzinfo=UTC)
    assert natural_phase_end(Phase.DISPLAY, now) == datetime(2025, 3, 31, 23, 59, 59, tzinfo=UTC)

    dec = at(2025, 12, 30)
    assert natural_phase_end(Phase.SUBMISSION, dec) == datetime(2026, 1, 26, 23, 59, 59, tzinfo=UTC)


@pytest.mark.parametrize(
    "delta,expected",
    [
        (timedelta(0), "Ended"),
        (timedelta(seconds=-5), "Ended"),
        (timedelta(minutes=7, seconds=30), "7m"),
        (timedelta(hours=3, minutes=4), "3h 4m"),
        (timedelta(days=2, hours=1, minutes=0), "2d 1h 0m"),
    ],
)
def test_format_time_remaining(delta, expected):
    assert format_time_remaining(delta) == expected


def test_previous_period():
    assert previous_period("2025-03") == "2025-02"
    assert previous_period("2025-01") == "2024-12"
