# votebot/scheduler/__init__.py
from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from aiogram import Bot

from votebot.config.settings import Settings
from votebot.database.session import Database
from votebot.scheduler.jobs import build_scheduler
from votebot.services.container import Services


def setup_scheduler(bot: Bot, db: Database, settings: Settings, services: Services) -> AsyncIOScheduler:
    scheduler = build_scheduler(bot=bot, db=db, settings=settings, services=services)
    scheduler.start()
    return scheduler
