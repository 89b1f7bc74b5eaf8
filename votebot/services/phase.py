# votebot/services/phase.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Phase
from votebot.database.repo.phase_override_repo import (
    delete_if_expired,
    delete_override,
    get_override,
    upsert_override,
)
from votebot.database.tx import transactional
from votebot.services.errors import PhaseMismatch
from votebot.utils.dates import parse_period, period_label
from votebot.utils.dt import TimeProvider, from_utc_naive, to_utc_naive
from votebot.utils.phase_window import natural_phase_end, resolve_phase_window

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PhaseInfo:
    phase: Phase
    phase_label: str
    period: str
    period_label: str
    start_time: datetime
    end_time: datetime
    time_remaining: timedelta
    is_overridden: bool


def parse_phase(raw: str) -> Phase:
    try:
        return Phase((raw or "").strip().lower())
    except ValueError:
        raise ValueError(f"Invalid phase {raw!r}, expected one of: submission, voting, display.") from None


class PhaseService:
    """
    Single source of truth for what may happen right now.
    Calendar schedule, unless a live override exists for the natural target period.
    """

    def __init__(self, clock: TimeProvider) -> None:
        self.clock = clock

    async def get_current_phase(self, session: AsyncSession) -> PhaseInfo:
        now = self.clock.now()
        natural = resolve_phase_window(now)
        period = natural.period
        now_utc = to_utc_naive(now)

        override = await get_override(session, period)
        if override is not None:
            if override.expires_at is not None and override.expires_at <= now_utc:
                # expired: evict before falling back; a concurrent eviction makes this a no-op
                removed = await delete_if_expired(session, period, now_utc)
                if removed:
                    log.info("Phase override for %s expired at %s, removed", period, override.expires_at)
            else:
                phase = Phase(override.phase)
                if override.expires_at is not None:
                    end = from_utc_naive(override.expires_at, now.tzinfo)
                else:
                    end = natural_phase_end(phase, now)
                return PhaseInfo(
                    phase=phase,
                    phase_label=phase.label,
                    period=period,
                    period_label=period_label(period),
                    start_time=now,
                    end_time=end,
                    time_remaining=max(timedelta(0), end - now),
                    is_overridden=True,
                )

        return PhaseInfo(
            phase=natural.phase,
            phase_label=natural.phase.label,
            period=period,
            period_label=period_label(period),
            start_time=natural.start,
            end_time=natural.end,
            time_remaining=natural.time_remaining,
            is_overridden=False,
        )

    async def require_phase(self, session: AsyncSession, expected: Phase, period: str | None) -> PhaseInfo:
        """
        Raises PhaseMismatch unless `expected` is open for `period` (None = the current period).
        """
        info = await self.get_current_phase(session)
        if info.phase != expected:
            raise PhaseMismatch(
                f"{expected.label} is not open. Current phase: {info.phase_label} ({info.period})."
            )
        if period is not None and period != info.period:
            raise PhaseMismatch(
                f"{expected.label} is open for {info.period}, not {period}."
            )
        return info

    async def set_override(
        self,
        session: AsyncSession,
        period: str,
        phase: Phase,
        duration_hours: float | None = None,
        *,
        set_by: int | None = None,
    ) -> datetime | None:
        """
        Upserts the override; returns expires_at (naive UTC) or None for indefinite.
        """
        parse_period(period)
        if duration_hours is not None and duration_hours <= 0:
            raise ValueError("Duration must be a positive number of hours.")

        expires_at = None
        if duration_hours:
            expires_at = to_utc_naive(self.clock.now() + timedelta(hours=duration_hours))

        async with transactional(session):
            await upsert_override(
                session,
                month_year=period,
                phase=phase,
                expires_at=expires_at,
                set_by=set_by,
            )

        log.info("Phase override set: period=%s phase=%s expires_at=%s by=%s", period, phase.value, expires_at, set_by)
        return expires_at

    async def clear_override(self, session: AsyncSession, period: str) -> bool:
        parse_period(period)
        async with transactional(session):
            removed = await delete_override(session, period)
        log.info("Phase override cleared: period=%s removed=%s", period, removed)
        return bool(removed)
