# votebot/handlers/common.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from votebot.utils.reply import reply_safe

router = Router(name="common")


@router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    await reply_safe(
        message,
        "👋 Welcome to the monthly collection vote!\n\n"
        "Each month runs in three phases: submissions, voting, winners.\n"
        "Use /phase to see what is open right now and /help for all commands.",
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await reply_safe(
        message,
        "📌 Available commands:\n"
        "/phase — current phase and time left\n"
        "/submit &lt;address&gt; — nominate a collection (submission phase)\n"
        "/collections — nominated collections, tap to vote\n"
        "/vote &lt;id&gt; — vote for a collection, again to take it back\n"
        "/winners [YYYY-MM] — winners of a month\n"
        "/history — winners across all months",
    )
