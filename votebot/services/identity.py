# votebot/services/identity.py
from __future__ import annotations

import logging

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import User as TgUser

from votebot.services.auth import Identity

log = logging.getLogger(__name__)


def _display_name(tg: TgUser) -> str:
    if tg.username:
        return f"@{tg.username}"
    name = " ".join([p for p in [tg.first_name, tg.last_name] if p])
    return name.strip() or "User"


class TelegramIdentityProvider:
    """
    Telegram as the identity provider: external id is the Telegram user id,
    roles come from the user's membership in the community group.
    """

    def __init__(self, group_id: int | None) -> None:
        self.group_id = group_id

    async def get_roles(self, bot: Bot, telegram_id: int) -> tuple[str, ...]:
        if not self.group_id:
            return ()

        try:
            member = await bot.get_chat_member(chat_id=self.group_id, user_id=telegram_id)
        except TelegramAPIError as e:
            log.warning("Role lookup failed for %s in %s: %s", telegram_id, self.group_id, e)
            return ()

        status = getattr(member.status, "value", member.status)
        roles = [str(status).lower()]
        title = getattr(member, "custom_title", None)
        if title:
            roles.append(title.strip().lower())
        return tuple(roles)

    async def resolve(self, bot: Bot, tg: TgUser, *, user_id: int | None = None) -> Identity:
        roles = await self.get_roles(bot, tg.id)
        return Identity(
            external_id=tg.id,
            roles=roles,
            user_id=user_id,
            display_name=_display_name(tg),
        )
