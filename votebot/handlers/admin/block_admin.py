# votebot/handlers/admin/block_admin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.handlers.admin.helpers import require_identity
from votebot.services.auth import Identity
from votebot.services.container import Services
from votebot.utils.args import command_args, parse_int_arg

router = Router()


@router.message(Command("block"))
async def block_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    args = command_args(message.text)
    if not args:
        await message.answer("Usage: /block &lt;telegram id&gt; [reason]")
        return

    try:
        admin = require_identity(message, identity)
        telegram_id = parse_int_arg(args[0], "Telegram id")
        reason = " ".join(args[1:]) or None
        await services.admin.block_user(session, admin, telegram_id, reason)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    await message.answer(f"🚫 <code>{telegram_id}</code> blocked from submitting and voting.")


@router.message(Command("unblock"))
async def unblock_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    args = command_args(message.text)
    if not args:
        await message.answer("Usage: /unblock &lt;telegram id&gt;")
        return

    try:
        admin = require_identity(message, identity)
        telegram_id = parse_int_arg(args[0], "Telegram id")
        removed = await services.admin.unblock_user(session, admin, telegram_id)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    if removed:
        await message.answer(f"✅ <code>{telegram_id}</code> unblocked.")
    else:
        await message.answer(f"ℹ️ <code>{telegram_id}</code> was not blocked.")


@router.message(Command("blocked"))
async def blocked_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    try:
        admin = require_identity(message, identity)
        rows = await services.admin.list_blocked(session, admin)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    if not rows:
        await message.answer("ℹ️ Nobody is blocked.")
        return

    lines = ["🚫 <b>Blocked users</b>", ""]
    for b in rows:
        reason = f" — {hd.quote(b.reason)}" if b.reason else ""
        lines.append(f"<code>{b.telegram_id}</code> since {b.created_at:%Y-%m-%d}{reason}")
    await message.answer("\n".join(lines))
