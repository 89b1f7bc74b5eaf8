# votebot/handlers/admin/winners_admin.py
from __future__ import annotations

import json
import logging

from aiogram import Bot, Router
from aiogram.filters import Command
from aiogram.types import BufferedInputFile, Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.handlers.admin.helpers import period_or_current, require_identity
from votebot.handlers.user.winners import render_winners
from votebot.services.auth import Identity
from votebot.services.container import Services
from votebot.utils.args import command_args, looks_like_period, parse_int_arg

log = logging.getLogger(__name__)
router = Router()


@router.message(Command("calc_winners"))
async def calc_winners_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    args = command_args(message.text)
    try:
        admin = require_identity(message, identity)
        services.auth.ensure_admin(admin)

        period_raw: str | None = None
        top_n: int | None = None
        for a in args:
            if looks_like_period(a):
                period_raw = a
            else:
                top_n = parse_int_arg(a, "N")

        period = await period_or_current(session, services, period_raw)
        rows = await services.admin.calculate_winners(session, admin, period, top_n)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    await message.answer(f"✅ Winners recalculated ({len(rows)} stored).\n\n" + render_winners(period, rows, limit=10))


@router.message(Command("export_winners"))
async def export_winners_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    args = command_args(message.text)
    try:
        admin = require_identity(message, identity)
        services.auth.ensure_admin(admin)
        period = await period_or_current(session, services, args[0] if args else None)
        snapshot = await services.winners.export_snapshot(session, period)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    if not snapshot["winners"]:
        await message.answer(f"ℹ️ No winners stored for {period}.")
        return

    doc = BufferedInputFile(
        services.winners.dumps(snapshot).encode("utf-8"),
        filename=f"winners_{period}.json",
    )
    await message.answer_document(doc, caption=f"🏆 Winners snapshot for {period}")


@router.message(Command("import_winners"))
async def import_winners_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    bot: Bot,
    identity: Identity | None = None,
) -> None:
    """
    Reply to an exported JSON document with /import_winners.
    """
    source = message.reply_to_message
    if source is None or source.document is None:
        await message.answer("Usage: reply to a winners_YYYY-MM.json file with /import_winners")
        return

    try:
        admin = require_identity(message, identity)
        services.auth.ensure_admin(admin)

        buf = await bot.download(source.document)
        try:
            snapshot = json.loads(buf.read().decode("utf-8"))
            period = str(snapshot["month_year"])
            rows = list(snapshot["winners"])
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
            raise ValueError("That file is not a winners snapshot.") from e

        imported = await services.admin.import_winners(session, admin, period, rows)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    log.info("Winners snapshot imported by %s: period=%s rows=%s", admin.external_id, period, len(imported))
    await message.answer(f"✅ Imported {len(imported)} winners for {period}.")
