# votebot/handlers/user/phase.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.keyboards.main import BTN_PHASE
from votebot.services.container import Services
from votebot.services.phase import PhaseInfo
from votebot.utils.dates import format_time_remaining
from votebot.utils.reply import reply_safe

router = Router()


def render_phase(info: PhaseInfo) -> str:
    lines = [
        f"🗓 <b>{info.phase_label}</b> for <b>{info.period_label}</b>",
        f"⏳ <b>Time left:</b> {format_time_remaining(info.time_remaining)}",
        f"🔚 <b>Ends:</b> {info.end_time:%Y-%m-%d %H:%M} ({info.end_time.tzname()})",
    ]
    if info.is_overridden:
        lines.append("⚙️ Set manually by an admin.")
    return "\n".join(lines)


@router.message(F.text == BTN_PHASE)
@router.message(Command("phase"))
async def phase_cmd(message: Message, session: AsyncSession, services: Services) -> None:
    info = await services.phases.get_current_phase(session)
    await reply_safe(message, render_phase(info))
