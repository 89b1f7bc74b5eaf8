# votebot/handlers/admin/audit.py
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


@router.message(Command("audit"))
async def audit_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    args = command_args(message.text)
    try:
        admin = require_identity(message, identity)
        limit = parse_int_arg(args[0], "Limit") if args else 20
        rows = await services.admin.recent_actions(session, admin, limit=max(1, min(limit, 100)))
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    if not rows:
        await message.answer("ℹ️ No admin actions recorded.")
        return

    lines = ["🧾 <b>Recent admin actions</b>", ""]
    for r in rows:
        target = f" {r.target_type}:{r.target_id}" if r.target_type else ""
        lines.append(
            f"{r.created_at:%Y-%m-%d %H:%M} <code>{r.actor_telegram_id}</code> "
            f"<b>{hd.quote(r.action)}</b>{hd.quote(target)}"
        )
    await message.answer("\n".join(lines))
