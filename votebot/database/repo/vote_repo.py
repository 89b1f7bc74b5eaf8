from __future__ import annotations

from sqlalchemy import delete, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import User, Vote


async def lock_voter(session: AsyncSession, user_id: int) -> None:
    """
    SELECT ... FOR UPDATE on the voter's row so toggles by the same user serialize.
    SQLite ignores FOR UPDATE; its single writer lock gives the same guarantee.
    """
    await session.execute(select(User.id).where(User.id == user_id).with_for_update())


async def find_vote_id(session: AsyncSession, *, user_id: int, collection_id: int, month_year: str) -> int | None:
    res = await session.execute(
        select(Vote.id).where(
            Vote.user_id == user_id,
            Vote.collection_id == collection_id,
            Vote.month_year == month_year,
        )
    )
    return res.scalar_one_or_none()


async def delete_vote(session: AsyncSession, vote_id: int) -> int:
    res = await session.execute(delete(Vote).where(Vote.id == vote_id))
    return int(res.rowcount or 0)


async def count_user_votes(session: AsyncSession, user_id: int, month_year: str) -> int:
    res = await session.execute(
        select(func.count(Vote.id)).where(Vote.user_id == user_id, Vote.month_year == month_year)
    )
    return int(res.scalar() or 0)


async def count_collection_votes(session: AsyncSession, collection_id: int, month_year: str) -> int:
    res = await session.execute(
        select(func.count(Vote.id)).where(Vote.collection_id == collection_id, Vote.month_year == month_year)
    )
    return int(res.scalar() or 0)


async def user_voted_collection_ids(session: AsyncSession, user_id: int, month_year: str) -> set[int]:
    res = await session.execute(
        select(Vote.collection_id).where(Vote.user_id == user_id, Vote.month_year == month_year)
    )
    return {int(x) for x in res.scalars().all()}


async def count_votes(session: AsyncSession, month_year: str) -> int:
    res = await session.execute(select(func.count(Vote.id)).where(Vote.month_year == month_year))
    return int(res.scalar() or 0)


async def count_unique_voters(session: AsyncSession, month_year: str) -> int:
    res = await session.execute(
        select(func.count(distinct(Vote.user_id))).where(Vote.month_year == month_year)
    )
    return int(res.scalar() or 0)
