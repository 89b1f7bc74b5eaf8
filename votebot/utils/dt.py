from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


@dataclass(frozen=True, slots=True)
class TimeProvider:
    timezone: str = "UTC"

    def now(self) -> datetime:
        return datetime.now(tz=ZoneInfo(self.timezone))

    def today(self) -> date:
        return self.now().date()


def to_utc_naive(dt: datetime) -> datetime:
    """
    DB columns are DateTime(timezone=False) holding UTC.
    Naive input is assumed to be UTC already.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def from_utc_naive(dt: datetime, tz) -> datetime:
    return dt.replace(tzinfo=timezone.utc).astimezone(tz)
