# votebot/main.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from votebot.config import Settings
from votebot.database import Database
from votebot.handlers.router import router as handlers_router
from votebot.scheduler import setup_scheduler
from votebot.services.container import build_services
from votebot.services.tradeport import TradeportClient
from votebot.utils.middleware import DbSessionMiddleware, IdentityMiddleware


def setup_logging(is_dev: bool) -> None:
    """
    Clean production logging:
    - app logs: INFO (or DEBUG in dev)
    - SQLAlchemy / driver / HTTP client logs: WARNING+
    """
    app_level = logging.DEBUG if is_dev else logging.INFO

    logging.basicConfig(
        level=app_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    for name in (
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "sqlalchemy.orm",
        "aiosqlite",
        "asyncpg",
        "aiohttp",
        "apscheduler",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)
    log = logging.getLogger("votebot")

    db = Database(settings.database_url)
    await db.init_models()
    log.info("DB initialized")

    tradeport = TradeportClient.from_settings(settings)
    if not tradeport.configured:
        log.warning("Tradeport credentials missing: every submission will be rejected as not found")

    services = build_services(settings, tradeport)

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    dp = Dispatcher()

    # Inject workflow data
    dp.workflow_data["settings"] = settings
    dp.workflow_data["db"] = db
    dp.workflow_data["services"] = services

    # DB session per update, then identity (needs the session's db_user)
    dp.update.middleware(DbSessionMiddleware(db))
    dp.update.middleware(IdentityMiddleware(services))

    # Include routers (admin/user/common)
    dp.include_router(handlers_router)

    scheduler = setup_scheduler(bot=bot, db=db, settings=settings, services=services)
    log.info("Scheduler started (tz=%s)", settings.timezone)

    try:
        await dp.start_polling(bot)
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    except Exception:
        log.exception("Bot crashed")
        raise
    finally:
        try:
            scheduler.shutdown(wait=False)
        except Exception:
            log.exception("Failed to shutdown scheduler")

        try:
            await tradeport.close()
        except Exception:
            log.exception("Failed to close Tradeport client")

        try:
            await db.close()
        except Exception:
            log.exception("Failed to close DB")

        try:
            await bot.session.close()
        except Exception:
            log.exception("Failed to close bot session")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
