# votebot/handlers/user/collections.py
from __future__ import annotations

import contextlib
import logging

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Phase
from votebot.keyboards.main import BTN_COLLECTIONS
from votebot.keyboards.vote import VOTE_PREFIX, parse_vote_callback, vote_kb
from votebot.services.auth import Identity
from votebot.services.collections import CollectionBoard, list_collections
from votebot.services.container import Services
from votebot.services.errors import Unauthenticated, VoteAppError
from votebot.services.votes import VoteResult
from votebot.utils.args import command_args, parse_int_arg
from votebot.utils.dates import period_label
from votebot.utils.reply import reply_safe

log = logging.getLogger(__name__)
router = Router()


def render_board(board: CollectionBoard, *, max_votes: int, voting_open: bool) -> str:
    lines = [f"🗳 <b>Nominated collections — {period_label(board.period)}</b>", ""]

    if not board.collections:
        lines.append("ℹ️ Nothing nominated yet. Use /submit during the submission phase.")
        return "\n".join(lines)

    for c in board.collections:
        mark = "✅ " if c.has_voted else ""
        lines.append(f"{mark}<b>#{c.id}</b> {hd.quote(c.name)} — <b>{c.vote_count}</b> votes")

    lines.append("")
    if board.user_submission:
        lines.append(f"📌 Your nomination: {hd.quote(board.user_submission)}")
    if voting_open:
        lines.append(f"🎟 Votes used: <b>{board.user_vote_count}</b> / {max_votes}")
        lines.append("Tap a collection to vote, tap again to take the vote back.")
    return "\n".join(lines)


def render_vote_result(result: VoteResult) -> str:
    verb = "Vote added" if result.action == "added" else "Vote removed"
    return f"{verb}. {result.votes_remaining} left."


@router.message(F.text == BTN_COLLECTIONS)
@router.message(Command("collections"))
async def collections_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    info = await services.phases.get_current_phase(session)
    user_id = identity.user_id if identity else None
    board = await list_collections(session, info.period, user_id)

    voting_open = info.phase == Phase.VOTING
    kb = vote_kb(period=board.period, collections=board.collections) if voting_open and board.collections else None
    text = render_board(board, max_votes=services.votes.max_votes, voting_open=voting_open)

    if kb is not None:
        await message.answer(text, reply_markup=kb)
    else:
        await reply_safe(message, text)


@router.message(Command("vote"))
async def vote_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    args = command_args(message.text)
    if not args:
        await reply_safe(message, "Usage: /vote &lt;collection id&gt; (see /collections)")
        return

    try:
        collection_id = parse_int_arg(args[0].lstrip("#"), "Collection id")
        if identity is None:
            raise Unauthenticated()
        result = await services.votes.toggle(session, identity, collection_id)
    except ValueError as e:
        await reply_safe(message, f"⛔ {hd.quote(str(e))}")
        return

    await reply_safe(
        message,
        f"🗳 {render_vote_result(result)}\n"
        f"Collection #{result.collection_id} now has <b>{result.vote_count}</b> votes.",
    )


@router.callback_query(F.data.startswith(f"{VOTE_PREFIX}:"))
async def vote_callback(
    cb: CallbackQuery,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    try:
        period, collection_id = parse_vote_callback(cb.data or "")
    except ValueError:
        log.warning("Ignoring malformed vote callback: %r", cb.data)
        await cb.answer()
        return

    try:
        if identity is None:
            raise Unauthenticated()
        # period comes from the button, so a keyboard left over from last month is rejected
        result = await services.votes.toggle(session, identity, collection_id, period)
    except VoteAppError as e:
        await cb.answer(f"⛔ {e}", show_alert=True)
        return

    await cb.answer(render_vote_result(result))

    if not isinstance(cb.message, Message):
        return
    board = await list_collections(session, period, identity.user_id)
    with contextlib.suppress(TelegramBadRequest):
        await cb.message.edit_text(
            render_board(board, max_votes=services.votes.max_votes, voting_open=True),
            reply_markup=vote_kb(period=period, collections=board.collections),
        )
