from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import BlockedUser


async def get_blocked(session: AsyncSession, telegram_id: int) -> BlockedUser | None:
    res = await session.execute(select(BlockedUser).where(BlockedUser.telegram_id == telegram_id))
    return res.scalar_one_or_none()


async def add_blocked(
    session: AsyncSession, *, telegram_id: int, reason: str | None, blocked_by: int | None
) -> BlockedUser:
    row = BlockedUser(telegram_id=telegram_id, reason=reason, blocked_by=blocked_by)
    session.add(row)
    await session.flush()  # may raise IntegrityError if blocked concurrently
    return row


async def remove_blocked(session: AsyncSession, telegram_id: int) -> int:
    res = await session.execute(delete(BlockedUser).where(BlockedUser.telegram_id == telegram_id))
    return int(res.rowcount or 0)


async def list_blocked(session: AsyncSession) -> list[BlockedUser]:
    res = await session.execute(select(BlockedUser).order_by(BlockedUser.created_at.desc(), BlockedUser.id.desc()))
    return list(res.scalars().all())
