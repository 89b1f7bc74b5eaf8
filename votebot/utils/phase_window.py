from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from votebot.database.models.phase_override import Phase
from votebot.utils.dates import days_in_month, next_month, period_key


@dataclass(frozen=True, slots=True)
class PhaseWindow:
    phase: Phase
    period: str  # YYYY-MM the window's data belongs to
    start: datetime
    end: datetime
    time_remaining: timedelta


# Monthly schedule, counted back from the last day of the month (dim):
#   submission  dim-7 .. dim-5   nominations for next month
#   voting      dim-4 .. dim-1   votes for next month
#   display     dim .. (next month's submission start - 1)
SUBMISSION_START_OFFSET = 7
SUBMISSION_END_OFFSET = 5
VOTING_START_OFFSET = 4
VOTING_END_OFFSET = 1


def _day_start(now: datetime, year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=now.tzinfo)


def _day_end(now: datetime, year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, 23, 59, 59, tzinfo=now.tzinfo)


def _window(phase: Phase, period: str, start: datetime, end: datetime, now: datetime) -> PhaseWindow:
    return PhaseWindow(
        phase=phase,
        period=period,
        start=start,
        end=end,
        time_remaining=max(timedelta(0), end - now),
    )


def resolve_phase_window(now: datetime) -> PhaseWindow:
    """
    Pure calendar resolution, evaluated in now's timezone.

    Day-of-month decides the phase:
    1. submission window -> next month's period
    2. voting window     -> next month's period
    3. last day          -> display of next month's (just decided) winners
    4. early month       -> display of this month's winners
    """
    year, month, day = now.year, now.month, now.day
    dim = days_in_month(year, month)

    submission_start = dim - SUBMISSION_START_OFFSET
    submission_end = dim - SUBMISSION_END_OFFSET
    voting_start = dim - VOTING_START_OFFSET
    voting_end = dim - VOTING_END_OFFSET

    ny, nm = next_month(year, month)
    this_period = period_key(year, month)
    next_period = period_key(ny, nm)

    if submission_start <= day <= submission_end:
        return _window(
            Phase.SUBMISSION,
            next_period,
            _day_start(now, year, month, submission_start),
            _day_end(now, year, month, submission_end),
            now,
        )

    if voting_start <= day <= voting_end:
        return _window(
            Phase.VOTING,
            next_period,
            _day_start(now, year, month, voting_start),
            _day_end(now, year, month, voting_end),
            now,
        )

    if day >= dim:
        next_submission_start = days_in_month(ny, nm) - SUBMISSION_START_OFFSET
        return _window(
            Phase.DISPLAY,
            next_period,
            _day_start(now, year, month, dim),
            _day_end(now, ny, nm, next_submission_start - 1),
            now,
        )

    return _window(
        Phase.DISPLAY,
        this_period,
        _day_start(now, year, month, 1),
        _day_end(now, year, month, submission_start - 1),
        now,
    )


def _phase_end_in(phase: Phase, now: datetime, year: int, month: int) -> datetime:
    dim = days_in_month(year, month)
    if phase == Phase.SUBMISSION:
        return _day_end(now, year, month, dim - SUBMISSION_END_OFFSET)
    if phase == Phase.VOTING:
        return _day_end(now, year, month, dim - VOTING_END_OFFSET)
    return _day_end(now, year, month, dim)


def natural_phase_end(phase: Phase, now: datetime) -> datetime:
    """
    Next natural end of `phase`: this month's if still ahead, otherwise next month's.
    Used as the end time of overrides without an expiry.
    """
    end = _phase_end_in(phase, now, now.year, now.month)
    if end < now:
        end = _phase_end_in(phase, now, *next_month(now.year, now.month))
    return end
