# votebot/services/submissions.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Phase, Submission
from votebot.database.repo.collection_repo import get_or_create_collection
from votebot.database.repo.submission_repo import get_submission_for_address, get_user_submission
from votebot.database.tx import transactional
from votebot.services.auth import AuthService, Identity
from votebot.services.errors import (
    DuplicateConflict,
    ExternalValidationFailed,
    TransientStoreError,
    Unauthenticated,
)
from votebot.services.phase import PhaseService
from votebot.services.tradeport import CollectionMetadataSource, is_valid_address, normalize_address

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubmitResult:
    submission_id: int
    collection_id: int
    collection_name: str
    contract_address: str
    period: str


class SubmissionService:
    def __init__(self, auth: AuthService, phases: PhaseService, metadata: CollectionMetadataSource) -> None:
        self.auth = auth
        self.phases = phases
        self.metadata = metadata

    async def submit(
        self,
        session: AsyncSession,
        identity: Identity,
        contract_address: str,
        period: str | None = None,
    ) -> SubmitResult:
        """
        Nominates a collection for the period open for submission.

        Checks run in a fixed order and the first failure wins:
        blocked, role, phase, address format, user already submitted,
        address already submitted, external lookup (exists + verified).
        Nothing is written until all of them pass.
        """
        if identity.user_id is None:
            raise Unauthenticated()

        await self.auth.ensure_can_act(session, identity, action="submitting")
        info = await self.phases.require_phase(session, Phase.SUBMISSION, period)
        target = info.period

        address = normalize_address(contract_address)
        if not address:
            raise ExternalValidationFailed("Contract address is required.")
        if not is_valid_address(address):
            raise ExternalValidationFailed("Invalid contract address format.")

        mine = await get_user_submission(session, identity.user_id, target)
        if mine is not None:
            raise DuplicateConflict(f'You already submitted "{mine[1].name}" for {target}.')

        taken = await get_submission_for_address(session, address, target)
        if taken is not None:
            raise DuplicateConflict(f'"{taken[1].name}" was already submitted for {target}.')

        # network call stays outside the write transaction
        lookup = await self.metadata.lookup(address)
        if not lookup.exists or lookup.metadata is None:
            raise ExternalValidationFailed("Collection not found on Tradeport.")
        if not lookup.verified:
            raise ExternalValidationFailed("Only verified collections can be submitted.")

        try:
            async with transactional(session):
                collection = await get_or_create_collection(session, lookup.metadata)
                submission = Submission(
                    user_id=identity.user_id,
                    collection_id=collection.id,
                    month_year=target,
                )
                session.add(submission)
                await session.flush()
        except IntegrityError as e:
            raise DuplicateConflict(
                "That nomination clashes with one made a moment ago. Check /collections."
            ) from e
        except OperationalError as e:
            raise TransientStoreError() from e

        log.info(
            "Submission accepted: user=%s collection=%s (%s) period=%s",
            identity.external_id,
            collection.id,
            address,
            target,
        )
        return SubmitResult(
            submission_id=int(submission.id),
            collection_id=int(collection.id),
            collection_name=collection.name,
            contract_address=address,
            period=target,
        )
