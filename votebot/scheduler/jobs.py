# votebot/scheduler/jobs.py
from __future__ import annotations

import logging

from aiogram import Bot
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from votebot.config.settings import Settings
from votebot.database.repo.winners_repo import snapshot_exists
from votebot.database.session import Database
from votebot.handlers.user.winners import render_winners
from votebot.services.container import Services
from votebot.utils.phase_window import resolve_phase_window

log = logging.getLogger(__name__)


async def post_monthly_winners(bot: Bot, db: Database, settings: Settings, services: Services) -> None:
    """
    Runs on the last day of the month, right after voting closed.
    Snapshots the winners once (an admin recalculation is kept) and posts them to the group.
    """
    now = services.phases.clock.now()
    period = resolve_phase_window(now).period

    async with db.session() as session:
        if not await snapshot_exists(session, period):
            await services.winners.calculate_winners(session, period)
        rows = await services.winners.get_winners(session, period)

    if not settings.group_id:
        log.warning("Skipping winners post: GROUP_ID is not set")
        return

    text = render_winners(period, rows, limit=10)
    if not rows:
        text += "\nNo collections were nominated this month."
    else:
        text += "\n\n🔥 Congrats to the winners! Submissions for next month open in a week."

    await bot.send_message(chat_id=settings.group_id, text=text)
    log.info("Monthly winners posted: period=%s rows=%s", period, len(rows))


def build_scheduler(bot: Bot, db: Database, settings: Settings, services: Services) -> AsyncIOScheduler:
    """
    Creates and returns an AsyncIOScheduler with our jobs registered.
    """
    scheduler = AsyncIOScheduler(timezone=settings.timezone)

    # last day of every month, 00:05 local
    scheduler.add_job(
        post_monthly_winners,
        trigger=CronTrigger(day="last", hour=0, minute=5, timezone=settings.timezone),
        kwargs={"bot": bot, "db": db, "settings": settings, "services": services},
        id="post_monthly_winners",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=300,
    )

    return scheduler
