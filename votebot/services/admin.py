# votebot/services/admin.py
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import AdminActionLog, BlockedUser, Phase, Submission, Vote, Winner
from votebot.database.repo.admin_log_repo import log_admin_action, recent_actions
from votebot.database.repo.blocked_repo import add_blocked, get_blocked, list_blocked, remove_blocked
from votebot.database.repo.submission_repo import (
    SubmissionRow,
    count_submissions,
    delete_submission_cascade,
    list_submissions,
)
from votebot.database.repo.vote_repo import count_unique_voters, count_votes
from votebot.database.repo.winners_repo import WinnerRow
from votebot.database.tx import transactional
from votebot.services.auth import AuthService, Identity
from votebot.services.errors import DuplicateConflict, NotFound
from votebot.services.phase import PhaseService
from votebot.services.winners import WinnerService
from votebot.utils.dates import parse_period

log = logging.getLogger(__name__)


class ClearTarget(str, enum.Enum):
    ALL = "all"
    SUBMISSIONS = "submissions"
    VOTES = "votes"
    WINNERS = "winners"


def parse_clear_target(raw: str) -> ClearTarget:
    try:
        return ClearTarget((raw or "").strip().lower())
    except ValueError:
        raise ValueError("Target must be one of: all, submissions, votes, winners.") from None


@dataclass(frozen=True, slots=True)
class ClearResult:
    submissions: int | None = None
    votes: int | None = None
    winners: int | None = None


@dataclass(frozen=True, slots=True)
class PeriodStats:
    period: str
    submissions: int
    votes: int
    unique_voters: int


class AdminService:
    """
    Admin-only operations. Every call checks the allow-list first and leaves an audit row.
    """

    def __init__(self, auth: AuthService, phases: PhaseService, winners: WinnerService) -> None:
        self.auth = auth
        self.phases = phases
        self.winners = winners

    # ---------- phase ----------
    async def set_override(
        self,
        session: AsyncSession,
        admin: Identity,
        period: str,
        phase: Phase,
        duration_hours: float | None = None,
    ) -> datetime | None:
        self.auth.ensure_admin(admin)
        expires_at = await self.phases.set_override(
            session, period, phase, duration_hours, set_by=admin.external_id
        )
        await log_admin_action(
            session,
            actor_telegram_id=admin.external_id,
            action="phase_override",
            target_type="period",
            target_id=period,
            payload={"phase": phase.value, "duration_hours": duration_hours, "expires_at": expires_at},
        )
        return expires_at

    async def clear_override(self, session: AsyncSession, admin: Identity, period: str) -> bool:
        self.auth.ensure_admin(admin)
        removed = await self.phases.clear_override(session, period)
        await log_admin_action(
            session,
            actor_telegram_id=admin.external_id,
            action="phase_clear",
            target_type="period",
            target_id=period,
            payload={"removed": removed},
        )
        return removed

    # ---------- winners ----------
    async def calculate_winners(
        self, session: AsyncSession, admin: Identity, period: str, top_n: int | None = None
    ) -> list[WinnerRow]:
        self.auth.ensure_admin(admin)
        await log_admin_action(
            session,
            actor_telegram_id=admin.external_id,
            action="calculate_winners",
            target_type="period",
            target_id=period,
            payload={"top_n": top_n},
        )
        # commits the audit row together with the new snapshot
        return await self.winners.calculate_winners(session, period, top_n)

    async def import_winners(
        self, session: AsyncSession, admin: Identity, period: str, rows: list[dict[str, Any]]
    ) -> list[WinnerRow]:
        self.auth.ensure_admin(admin)
        imported = await self.winners.import_snapshot(session, period, rows)
        await log_admin_action(
            session,
            actor_telegram_id=admin.external_id,
            action="import_winners",
            target_type="period",
            target_id=period,
            payload={"rows": len(rows)},
        )
        return imported

    # ---------- data ----------
    async def clear_data(self, session: AsyncSession, admin: Identity, period: str, target: ClearTarget) -> ClearResult:
        """
        Deletes a period's rows in dependency order.
        Clearing only submissions first removes the votes cast on those collections.
        """
        self.auth.ensure_admin(admin)
        parse_period(period)

        deleted: dict[str, int] = {}
        async with transactional(session):
            if target in (ClearTarget.ALL, ClearTarget.WINNERS):
                res = await session.execute(delete(Winner).where(Winner.month_year == period))
                deleted["winners"] = int(res.rowcount or 0)

            if target in (ClearTarget.ALL, ClearTarget.VOTES):
                res = await session.execute(delete(Vote).where(Vote.month_year == period))
                deleted["votes"] = int(res.rowcount or 0)

            if target in (ClearTarget.ALL, ClearTarget.SUBMISSIONS):
                if target == ClearTarget.SUBMISSIONS:
                    orphaned = select(Submission.collection_id).where(Submission.month_year == period)
                    res = await session.execute(
                        delete(Vote).where(Vote.month_year == period, Vote.collection_id.in_(orphaned)),
                        execution_options={"synchronize_session": False},
                    )
                    deleted["votes"] = int(res.rowcount or 0)
                res = await session.execute(delete(Submission).where(Submission.month_year == period))
                deleted["submissions"] = int(res.rowcount or 0)

            await log_admin_action(
                session,
                actor_telegram_id=admin.external_id,
                action="clear_data",
                target_type="period",
                target_id=period,
                payload={"target": target.value, **deleted},
            )

        log.info("Data cleared: period=%s target=%s deleted=%s by=%s", period, target.value, deleted, admin.external_id)
        return ClearResult(**deleted)

    async def delete_submission(self, session: AsyncSession, admin: Identity, submission_id: int) -> int:
        """
        Removes one submission and the votes its collection got that period.
        Returns number of votes removed.
        """
        self.auth.ensure_admin(admin)
        submission = await session.get(Submission, submission_id)
        if submission is None:
            raise NotFound(f"Submission #{submission_id} not found.")

        async with transactional(session):
            removed_votes = await delete_submission_cascade(session, submission)
            await log_admin_action(
                session,
                actor_telegram_id=admin.external_id,
                action="delete_submission",
                target_type="submission",
                target_id=str(submission_id),
                payload={"month_year": submission.month_year, "votes_removed": removed_votes},
            )
        return removed_votes

    async def list_submissions(self, session: AsyncSession, admin: Identity, period: str) -> list[SubmissionRow]:
        self.auth.ensure_admin(admin)
        parse_period(period)
        return await list_submissions(session, period)

    async def stats(self, session: AsyncSession, admin: Identity, period: str) -> PeriodStats:
        self.auth.ensure_admin(admin)
        parse_period(period)
        return PeriodStats(
            period=period,
            submissions=await count_submissions(session, period),
            votes=await count_votes(session, period),
            unique_voters=await count_unique_voters(session, period),
        )

    # ---------- blocking ----------
    async def block_user(
        self, session: AsyncSession, admin: Identity, telegram_id: int, reason: str | None = None
    ) -> BlockedUser:
        self.auth.ensure_admin(admin)
        if await get_blocked(session, telegram_id) is not None:
            raise DuplicateConflict("User is already blocked.")

        try:
            async with transactional(session):
                row = await add_blocked(
                    session, telegram_id=telegram_id, reason=reason, blocked_by=admin.external_id
                )
                await log_admin_action(
                    session,
                    actor_telegram_id=admin.external_id,
                    action="block_user",
                    target_type="user",
                    target_id=str(telegram_id),
                    payload={"reason": reason},
                )
        except IntegrityError as e:
            raise DuplicateConflict("User is already blocked.") from e

        log.info("User %s blocked by %s", telegram_id, admin.external_id)
        return row

    async def unblock_user(self, session: AsyncSession, admin: Identity, telegram_id: int) -> bool:
        self.auth.ensure_admin(admin)
        async with transactional(session):
            removed = await remove_blocked(session, telegram_id)
            await log_admin_action(
                session,
                actor_telegram_id=admin.external_id,
                action="unblock_user",
                target_type="user",
                target_id=str(telegram_id),
                payload={"removed": removed},
            )
        log.info("User %s unblocked by %s (removed=%s)", telegram_id, admin.external_id, removed)
        return bool(removed)

    async def list_blocked(self, session: AsyncSession, admin: Identity) -> list[BlockedUser]:
        self.auth.ensure_admin(admin)
        return await list_blocked(session)

    async def recent_actions(self, session: AsyncSession, admin: Identity, limit: int = 20) -> list[AdminActionLog]:
        self.auth.ensure_admin(admin)
        return await recent_actions(session, limit=limit)
