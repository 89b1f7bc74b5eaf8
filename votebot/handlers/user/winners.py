# votebot/handlers/user/winners.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Phase
from votebot.database.repo.winners_repo import WinnerRow
from votebot.keyboards.main import BTN_HISTORY, BTN_WINNERS
from votebot.services.container import Services
from votebot.services.winners import WinnerHistory
from votebot.utils.args import command_args
from votebot.utils.dates import parse_period, period_label, previous_period
from votebot.utils.reply import reply_safe

router = Router()

MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


def render_winners(period: str, rows: list[WinnerRow], *, limit: int | None = None) -> str:
    lines = [f"🏆 <b>Winners — {period_label(period)}</b>", ""]
    if not rows:
        lines.append("ℹ️ No winners calculated for this month yet.")
        return "\n".join(lines)

    shown = rows if limit is None else rows[:limit]
    for r in shown:
        medal = MEDALS.get(r.rank, f"{r.rank}.")
        lines.append(f"{medal} {hd.quote(r.name)} — <b>{r.vote_count}</b> votes")
    if len(shown) < len(rows):
        lines.append(f"… and {len(rows) - len(shown)} more")
    return "\n".join(lines)


def render_history(history: WinnerHistory, *, limit: int = 10) -> str:
    if not history.months:
        return "📈 No winners recorded yet."

    lines = [
        "📈 <b>Winners history</b>",
        f"📅 {history.month_labels[0]} → {history.month_labels[-1]}",
        "",
    ]
    for s in history.collections[:limit]:
        series = " · ".join("–" if v is None else str(v) for v in s.votes)
        lines.append(f"<b>{hd.quote(s.name)}</b>: {series}")
    return "\n".join(lines)


@router.message(F.text == BTN_WINNERS)
@router.message(Command("winners"))
async def winners_cmd(message: Message, session: AsyncSession, services: Services) -> None:
    args = command_args(message.text)
    if args:
        try:
            parse_period(args[0])
        except ValueError as e:
            await reply_safe(message, f"⛔ {hd.quote(str(e))}")
            return
        period = args[0]
    else:
        info = await services.phases.get_current_phase(session)
        # before display opens, the latest finished month is the one before the target
        period = info.period if info.phase == Phase.DISPLAY else previous_period(info.period)

    rows = await services.winners.get_winners(session, period)
    await reply_safe(message, render_winners(period, rows, limit=20))


@router.message(F.text == BTN_HISTORY)
@router.message(Command("history"))
async def history_cmd(message: Message, session: AsyncSession, services: Services) -> None:
    history = await services.winners.get_history(session)
    await reply_safe(message, render_history(history))
