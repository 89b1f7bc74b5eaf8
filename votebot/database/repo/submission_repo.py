from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Collection, Submission, User, Vote


@dataclass(frozen=True, slots=True)
class SubmissionRow:
    submission_id: int
    collection_id: int
    collection_name: str
    contract_address: str
    user_id: int
    telegram_id: int
    username: str | None
    created_at: datetime


async def get_user_submission(session: AsyncSession, user_id: int, month_year: str) -> tuple[Submission, Collection] | None:
    res = await session.execute(
        select(Submission, Collection)
        .join(Collection, Collection.id == Submission.collection_id)
        .where(Submission.user_id == user_id, Submission.month_year == month_year)
        .limit(1)
    )
    row = res.first()
    return (row[0], row[1]) if row else None


async def get_submission_for_address(
    session: AsyncSession, contract_address: str, month_year: str
) -> tuple[Submission, Collection] | None:
    res = await session.execute(
        select(Submission, Collection)
        .join(Collection, Collection.id == Submission.collection_id)
        .where(Collection.contract_address == contract_address, Submission.month_year == month_year)
        .limit(1)
    )
    row = res.first()
    return (row[0], row[1]) if row else None


async def is_collection_submitted(session: AsyncSession, collection_id: int, month_year: str) -> bool:
    res = await session.execute(
        select(Submission.id)
        .where(Submission.collection_id == collection_id, Submission.month_year == month_year)
        .limit(1)
    )
    return res.scalar_one_or_none() is not None


async def list_submissions(session: AsyncSession, month_year: str) -> list[SubmissionRow]:
    q = (
        select(
            Submission.id,
            Submission.collection_id,
            Collection.name,
            Collection.contract_address,
            Submission.user_id,
            User.telegram_id,
            User.username,
            Submission.created_at,
        )
        .join(Collection, Collection.id == Submission.collection_id)
        .join(User, User.id == Submission.user_id)
        .where(Submission.month_year == month_year)
        .order_by(Submission.created_at.desc(), Submission.id.desc())
    )
    res = await session.execute(q)

    out: list[SubmissionRow] = []
    for sid, cid, name, address, uid, tg_id, username, created_at in res.all():
        out.append(
            SubmissionRow(
                submission_id=int(sid),
                collection_id=int(cid),
                collection_name=name,
                contract_address=address,
                user_id=int(uid),
                telegram_id=int(tg_id),
                username=username,
                created_at=created_at,
            )
        )
    return out


async def count_submissions(session: AsyncSession, month_year: str) -> int:
    res = await session.execute(select(func.count(Submission.id)).where(Submission.month_year == month_year))
    return int(res.scalar() or 0)


async def delete_submission_cascade(session: AsyncSession, submission: Submission) -> int:
    """
    Removes the collection's votes for that period, then the submission.
    Returns number of votes removed.
    """
    res = await session.execute(
        delete(Vote).where(
            Vote.collection_id == submission.collection_id,
            Vote.month_year == submission.month_year,
        )
    )
    await session.execute(delete(Submission).where(Submission.id == submission.id))
    return int(res.rowcount or 0)
