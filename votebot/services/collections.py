from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Collection, Submission, Vote
from votebot.database.repo.submission_repo import get_user_submission
from votebot.database.repo.vote_repo import user_voted_collection_ids


@dataclass(frozen=True, slots=True)
class CollectionEntry:
    id: int
    contract_address: str
    name: str
    image_url: str | None
    description: str | None
    twitter_url: str | None
    tradeport_url: str | None
    vote_count: int
    has_voted: bool


@dataclass(frozen=True, slots=True)
class CollectionBoard:
    period: str
    collections: list[CollectionEntry] = field(default_factory=list)
    user_vote_count: int = 0
    user_submission: str | None = None  # name of the caller's nominee


async def list_collections(session: AsyncSession, period: str, user_id: int | None = None) -> CollectionBoard:
    """
    Nominated collections for a period, in submission order, with live vote counts.
    """
    vote_counts = (
        select(Vote.collection_id, func.count(Vote.id).label("n"))
        .where(Vote.month_year == period)
        .group_by(Vote.collection_id)
        .subquery()
    )
    q = (
        select(Collection, func.coalesce(vote_counts.c.n, 0))
        .join(Submission, Submission.collection_id == Collection.id)
        .outerjoin(vote_counts, vote_counts.c.collection_id == Collection.id)
        .where(Submission.month_year == period)
        .order_by(Submission.id.asc())
    )
    res = await session.execute(q)
    rows = res.all()

    voted: set[int] = set()
    mine: str | None = None
    if user_id is not None:
        voted = await user_voted_collection_ids(session, user_id, period)
        own = await get_user_submission(session, user_id, period)
        if own is not None:
            mine = own[1].name

    entries = [
        CollectionEntry(
            id=int(c.id),
            contract_address=c.contract_address,
            name=c.name,
            image_url=c.image_url,
            description=c.description,
            twitter_url=c.twitter_url,
            tradeport_url=c.tradeport_url,
            vote_count=int(n or 0),
            has_voted=int(c.id) in voted,
        )
        for c, n in rows
    ]
    return CollectionBoard(
        period=period,
        collections=entries,
        user_vote_count=len(voted),
        user_submission=mine,
    )
