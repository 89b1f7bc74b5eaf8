# votebot/utils/reply.py
from __future__ import annotations

from aiogram.types import Message

from votebot.keyboards.main import main_menu_kb


async def reply_safe(message: Message, text: str, **kwargs) -> None:
    """
    Menu keyboard in private chats only; groups get plain replies.
    """
    if message.chat.type == "private":
        kwargs.setdefault("reply_markup", main_menu_kb())
    else:
        kwargs.setdefault("reply_markup", None)

    await message.answer(text, **kwargs)
