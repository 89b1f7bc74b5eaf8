# votebot/services/container.py
from __future__ import annotations

from dataclasses import dataclass

from votebot.config import Settings
from votebot.services.admin import AdminService
from votebot.services.auth import AuthService
from votebot.services.identity import TelegramIdentityProvider
from votebot.services.phase import PhaseService
from votebot.services.submissions import SubmissionService
from votebot.services.tradeport import CollectionMetadataSource
from votebot.services.votes import VoteService
from votebot.services.winners import WinnerService
from votebot.utils.dt import TimeProvider


@dataclass(frozen=True, slots=True)
class Services:
    auth: AuthService
    identity: TelegramIdentityProvider
    phases: PhaseService
    submissions: SubmissionService
    votes: VoteService
    winners: WinnerService
    admin: AdminService


def build_services(
    settings: Settings,
    metadata: CollectionMetadataSource,
    clock: TimeProvider | None = None,
) -> Services:
    clock = clock or TimeProvider(settings.timezone)

    auth = AuthService.from_settings(settings)
    phases = PhaseService(clock)
    winners = WinnerService(default_top_n=settings.winners_top_n)

    return Services(
        auth=auth,
        identity=TelegramIdentityProvider(settings.group_id),
        phases=phases,
        submissions=SubmissionService(auth, phases, metadata),
        votes=VoteService(auth, phases, max_votes=settings.max_votes),
        winners=winners,
        admin=AdminService(auth, phases, winners),
    )
