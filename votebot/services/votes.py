# votebot/services/votes.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Phase, Vote
from votebot.database.repo.submission_repo import is_collection_submitted
from votebot.database.repo.vote_repo import (
    count_collection_votes,
    count_user_votes,
    delete_vote,
    find_vote_id,
    lock_voter,
)
from votebot.database.tx import transactional
from votebot.services.auth import AuthService, Identity
from votebot.services.errors import (
    BudgetExceeded,
    DuplicateConflict,
    NotFound,
    TransientStoreError,
    Unauthenticated,
)
from votebot.services.phase import PhaseService

log = logging.getLogger(__name__)

MAX_VOTES = 5


@dataclass(frozen=True, slots=True)
class VoteResult:
    action: str  # "added" | "removed"
    votes_remaining: int
    collection_id: int
    vote_count: int  # live total for the collection after the toggle
    period: str


class VoteService:
    def __init__(self, auth: AuthService, phases: PhaseService, max_votes: int = MAX_VOTES) -> None:
        self.auth = auth
        self.phases = phases
        self.max_votes = max_votes

    async def toggle(
        self,
        session: AsyncSession,
        identity: Identity,
        collection_id: int,
        period: str | None = None,
    ) -> VoteResult:
        """
        Vote for a collection, or take the vote back if it already exists.

        Existence check, budget check and insert/delete run as one unit under a
        lock on the voter's row, so a double click cannot create two votes or
        push the user past the budget.
        """
        if identity.user_id is None:
            raise Unauthenticated()

        await self.auth.ensure_can_act(session, identity, action="voting")
        info = await self.phases.require_phase(session, Phase.VOTING, period)
        target = info.period

        if not await is_collection_submitted(session, collection_id, target):
            raise NotFound(f"Collection #{collection_id} is not nominated for {target}.")

        user_id = identity.user_id
        try:
            async with transactional(session):
                await lock_voter(session, user_id)

                vote_id = await find_vote_id(
                    session, user_id=user_id, collection_id=collection_id, month_year=target
                )
                if vote_id is not None:
                    await delete_vote(session, vote_id)
                    action = "removed"
                else:
                    used = await count_user_votes(session, user_id, target)
                    if used >= self.max_votes:
                        raise BudgetExceeded(f"You have already used all {self.max_votes} votes.")
                    session.add(Vote(user_id=user_id, collection_id=collection_id, month_year=target))
                    await session.flush()
                    action = "added"

                used = await count_user_votes(session, user_id, target)
                total = await count_collection_votes(session, collection_id, target)
        except IntegrityError as e:
            raise DuplicateConflict("You have already voted for this collection.") from e
        except OperationalError as e:
            raise TransientStoreError() from e

        log.info(
            "Vote %s: user=%s collection=%s period=%s used=%s/%s",
            action,
            identity.external_id,
            collection_id,
            target,
            used,
            self.max_votes,
        )
        return VoteResult(
            action=action,
            votes_remaining=self.max_votes - used,
            collection_id=collection_id,
            vote_count=total,
            period=target,
        )
