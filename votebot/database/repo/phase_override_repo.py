from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Phase, PhaseOverride
from votebot.database.tx import dialect_insert


async def get_override(session: AsyncSession, month_year: str) -> PhaseOverride | None:
    # core upserts bypass the identity map, so always refresh from the row
    res = await session.execute(
        select(PhaseOverride)
        .where(PhaseOverride.month_year == month_year)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


async def delete_if_expired(session: AsyncSession, month_year: str, now_utc: datetime) -> int:
    """
    Conditional delete: a row that is already gone (or was refreshed meanwhile) is left alone.
    Returns number of rows removed.
    """
    res = await session.execute(
        delete(PhaseOverride).where(
            PhaseOverride.month_year == month_year,
            PhaseOverride.expires_at.is_not(None),
            PhaseOverride.expires_at <= now_utc,
        )
    )
    return int(res.rowcount or 0)


async def upsert_override(
    session: AsyncSession,
    *,
    month_year: str,
    phase: Phase,
    expires_at: datetime | None,
    set_by: int | None,
) -> None:
    ins = dialect_insert(session, PhaseOverride).values(
        month_year=month_year,
        phase=phase,
        expires_at=expires_at,
        set_by=set_by,
    )
    stmt = ins.on_conflict_do_update(
        index_elements=["month_year"],
        set_={
            "phase": ins.excluded.phase,
            "expires_at": ins.excluded.expires_at,
            "set_by": ins.excluded.set_by,
            "updated_at": func.now(),
        },
    )
    await session.execute(stmt)


async def delete_override(session: AsyncSession, month_year: str) -> int:
    res = await session.execute(delete(PhaseOverride).where(PhaseOverride.month_year == month_year))
    return int(res.rowcount or 0)
