# votebot/handlers/user/submit.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.services.auth import Identity
from votebot.services.container import Services
from votebot.services.errors import Unauthenticated, VoteAppError
from votebot.utils.args import command_args
from votebot.utils.reply import reply_safe

router = Router()


@router.message(Command("submit"))
async def submit_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    args = command_args(message.text)
    if not args:
        await reply_safe(message, "Usage: /submit &lt;contract address&gt;")
        return

    try:
        if identity is None:
            raise Unauthenticated()
        result = await services.submissions.submit(session, identity, args[0])
    except VoteAppError as e:
        await reply_safe(message, f"⛔ {hd.quote(str(e))}")
        return

    await reply_safe(
        message,
        f"✅ <b>{hd.quote(result.collection_name)}</b> nominated for {result.period}.\n"
        f"Voting opens at the end of the submission window. Check /collections.",
    )
