# votebot/handlers/admin/helpers.py
from __future__ import annotations

from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.services.auth import Identity
from votebot.services.container import Services
from votebot.services.errors import Forbidden
from votebot.utils.dates import parse_period


def require_identity(message: Message, identity: Identity | None) -> Identity:
    if identity is not None:
        return identity
    if message.from_user is None:
        raise Forbidden("You are not allowed to use admin commands.")
    return Identity(external_id=message.from_user.id)


async def period_or_current(session: AsyncSession, services: Services, raw: str | None) -> str:
    """
    Explicit YYYY-MM if given, otherwise the period the calendar currently targets.
    """
    if raw:
        parse_period(raw)
        return raw
    info = await services.phases.get_current_phase(session)
    return info.period
