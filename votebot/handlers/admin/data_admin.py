# votebot/handlers/admin/data_admin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.repo.submission_repo import SubmissionRow
from votebot.handlers.admin.helpers import period_or_current, require_identity
from votebot.services.admin import ClearResult, parse_clear_target
from votebot.services.auth import Identity
from votebot.services.container import Services
from votebot.utils.args import command_args, parse_int_arg
from votebot.utils.dates import period_label

router = Router()


def _submitter(r: SubmissionRow) -> str:
    if r.username:
        return f"@{hd.quote(r.username)}"
    return f"<code>{r.telegram_id}</code>"


def _render_cleared(period: str, result: ClearResult) -> str:
    parts = []
    for name in ("winners", "votes", "submissions"):
        n = getattr(result, name)
        if n is not None:
            parts.append(f"{name}: <b>{n}</b>")
    return f"🧹 Cleared {period} — " + ", ".join(parts)


@router.message(Command("clear_data"))
async def clear_data_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    args = command_args(message.text)
    if not args:
        await message.answer("Usage: /clear_data &lt;all|submissions|votes|winners&gt; [YYYY-MM]")
        return

    try:
        admin = require_identity(message, identity)
        services.auth.ensure_admin(admin)
        target = parse_clear_target(args[0])
        period = await period_or_current(session, services, args[1] if len(args) > 1 else None)
        result = await services.admin.clear_data(session, admin, period, target)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    await message.answer(_render_cleared(period, result))


@router.message(Command("delete_submission"))
async def delete_submission_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    args = command_args(message.text)
    if not args:
        await message.answer("Usage: /delete_submission &lt;submission id&gt; (see /submissions)")
        return

    try:
        admin = require_identity(message, identity)
        submission_id = parse_int_arg(args[0].lstrip("#"), "Submission id")
        removed_votes = await services.admin.delete_submission(session, admin, submission_id)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    await message.answer(f"🗑 Submission #{submission_id} deleted ({removed_votes} votes removed).")


@router.message(Command("submissions"))
async def submissions_cmd(
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
        rows = await services.admin.list_submissions(session, admin, period)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    lines = [f"📋 <b>Submissions — {period_label(period)}</b>", ""]
    if not rows:
        lines.append("ℹ️ None yet.")
    for r in rows:
        lines.append(
            f"<b>#{r.submission_id}</b> {hd.quote(r.collection_name)} "
            f"<code>{r.contract_address}</code> by {_submitter(r)}"
        )
    await message.answer("\n".join(lines))


@router.message(Command("stats"))
async def stats_cmd(
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
        stats = await services.admin.stats(session, admin, period)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    await message.answer(
        f"📊 <b>Stats — {period_label(stats.period)}</b>\n\n"
        f"Submissions: <b>{stats.submissions}</b>\n"
        f"Votes: <b>{stats.votes}</b>\n"
        f"Unique voters: <b>{stats.unique_voters}</b>"
    )
