# votebot/utils/middleware.py
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from votebot.database.session import Database
from votebot.database.repo.users import extract_from_user, upsert_user_from_event
from votebot.services.container import Services


class DbSessionMiddleware(BaseMiddleware):
    """
    Creates a DB session per update and injects it into handler data as `session`.

    Also upserts the current Telegram user (if present) and injects it as `db_user`.
    Auto-commits on success and rolls back on error.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with self.db.SessionLocal() as session:
            data["session"] = session

            db_user = await upsert_user_from_event(session, event)
            if db_user is not None:
                data["db_user"] = db_user

            try:
                result = await handler(event, data)
                # a started commit is not abandoned on cancellation
                await asyncio.shield(session.commit())
                return result
            except Exception:
                await session.rollback()
                raise


class IdentityMiddleware(BaseMiddleware):
    """
    Resolves the caller into an `Identity` (telegram id, group roles, users.id)
    and injects it as `identity`. Must run after DbSessionMiddleware.
    """

    def __init__(self, services: Services) -> None:
        self.services = services

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        tg = extract_from_user(event)
        bot = data.get("bot")
        if tg is not None and not getattr(tg, "is_bot", False) and bot is not None:
            db_user = data.get("db_user")
            data["identity"] = await self.services.identity.resolve(
                bot, tg, user_id=db_user.id if db_user is not None else None
            )
        return await handler(event, data)
