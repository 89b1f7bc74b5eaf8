from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Collection, Submission, Vote, Winner


@dataclass(frozen=True, slots=True)
class TallyRow:
    collection_id: int
    vote_count: int


@dataclass(frozen=True, slots=True)
class WinnerRow:
    rank: int
    collection_id: int
    vote_count: int
    name: str
    contract_address: str
    image_url: str | None = None
    tradeport_url: str | None = None


async def get_tallies(session: AsyncSession, month_year: str) -> list[TallyRow]:
    """
    Every submission of the period with its live vote count.
    Ordered by votes desc, then submission order, then collection id.
    """
    vote_counts = (
        select(Vote.collection_id, func.count(Vote.id).label("n"))
        .where(Vote.month_year == month_year)
        .group_by(Vote.collection_id)
        .subquery()
    )
    n = func.coalesce(vote_counts.c.n, 0)
    q = (
        select(Submission.collection_id, n)
        .outerjoin(vote_counts, vote_counts.c.collection_id == Submission.collection_id)
        .where(Submission.month_year == month_year)
        .order_by(n.desc(), Submission.id.asc(), Submission.collection_id.asc())
    )
    res = await session.execute(q)
    return [TallyRow(collection_id=int(cid), vote_count=int(cnt or 0)) for cid, cnt in res.all()]


async def snapshot_exists(session: AsyncSession, month_year: str) -> bool:
    res = await session.execute(
        select(Winner.id).where(Winner.month_year == month_year).limit(1)
    )
    return res.scalar_one_or_none() is not None


async def replace_snapshot(
    session: AsyncSession,
    *,
    month_year: str,
    winners: list[tuple[int, int]],  # [(collection_id, vote_count), ...] rank implied 1..n
) -> None:
    """
    Deletes the period's rows, then inserts the new ranking.
    Caller owns the transaction so both steps commit together.
    """
    await session.execute(delete(Winner).where(Winner.month_year == month_year))

    rows = []
    for i, (collection_id, vote_count) in enumerate(winners, start=1):
        rows.append(
            Winner(
                month_year=month_year,
                rank=i,
                collection_id=collection_id,
                vote_count=int(vote_count or 0),
            )
        )

    session.add_all(rows)
    await session.flush()


async def get_snapshot(session: AsyncSession, month_year: str) -> list[WinnerRow]:
    q = (
        select(
            Winner.rank,
            Winner.collection_id,
            Winner.vote_count,
            Collection.name,
            Collection.contract_address,
            Collection.image_url,
            Collection.tradeport_url,
        )
        .join(Collection, Collection.id == Winner.collection_id)
        .where(Winner.month_year == month_year)
        .order_by(Winner.rank.asc())
    )
    res = await session.execute(q)

    out: list[WinnerRow] = []
    for rank, collection_id, vote_count, name, address, image_url, tradeport_url in res.all():
        out.append(
            WinnerRow(
                rank=int(rank),
                collection_id=int(collection_id),
                vote_count=int(vote_count or 0),
                name=name,
                contract_address=address,
                image_url=image_url,
                tradeport_url=tradeport_url,
            )
        )
    return out


async def get_all_winners(session: AsyncSession) -> list[tuple[str, WinnerRow]]:
    q = (
        select(
            Winner.month_year,
            Winner.rank,
            Winner.collection_id,
            Winner.vote_count,
            Collection.name,
            Collection.contract_address,
        )
        .join(Collection, Collection.id == Winner.collection_id)
        .order_by(Winner.month_year.asc(), Winner.rank.asc())
    )
    res = await session.execute(q)
    return [
        (
            month_year,
            WinnerRow(
                rank=int(rank),
                collection_id=int(cid),
                vote_count=int(cnt or 0),
                name=name,
                contract_address=address,
            ),
        )
        for month_year, rank, cid, cnt, name, address in res.all()
    ]

