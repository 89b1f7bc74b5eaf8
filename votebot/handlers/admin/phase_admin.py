# votebot/handlers/admin/phase_admin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.handlers.admin.helpers import period_or_current, require_identity
from votebot.services.auth import Identity
from votebot.services.container import Services
from votebot.services.phase import parse_phase
from votebot.utils.args import command_args, looks_like_period

router = Router()

USAGE = "Usage: /phase_override &lt;submission|voting|display&gt; [hours] [YYYY-MM]"


def _parse_override_args(args: list[str]) -> tuple[str, float | None, str | None]:
    if not args:
        raise ValueError(USAGE)

    phase_raw = args[0]
    hours: float | None = None
    period: str | None = None
    for a in args[1:]:
        if looks_like_period(a):
            period = a
            continue
        try:
            hours = float(a)
        except ValueError:
            raise ValueError(USAGE) from None
    return phase_raw, hours, period


@router.message(Command("phase_override"))
async def phase_override_cmd(
    message: Message,
    session: AsyncSession,
    services: Services,
    identity: Identity | None = None,
) -> None:
    try:
        admin = require_identity(message, identity)
        services.auth.ensure_admin(admin)
        phase_raw, hours, period_raw = _parse_override_args(command_args(message.text))
        phase = parse_phase(phase_raw)
        period = await period_or_current(session, services, period_raw)
        expires_at = await services.admin.set_override(session, admin, period, phase, hours)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    until = f"until {expires_at:%Y-%m-%d %H:%M} UTC" if expires_at else "until the phase would naturally end"
    await message.answer(f"✅ <b>{phase.label}</b> forced for {period}, {until}.")


@router.message(Command("phase_clear"))
async def phase_clear_cmd(
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
        removed = await services.admin.clear_override(session, admin, period)
    except ValueError as e:
        await message.answer(f"⛔ {hd.quote(str(e))}")
        return

    if removed:
        await message.answer(f"✅ Override for {period} cleared. Back to the calendar schedule.")
    else:
        await message.answer(f"ℹ️ No override was set for {period}.")
