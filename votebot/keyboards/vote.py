# votebot/keyboards/vote.py
from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton
from aiogram.utils.keyboard import InlineKeyboardBuilder

from votebot.services.collections import CollectionEntry

VOTE_PREFIX = "vote"


def vote_callback_data(period: str, collection_id: int) -> str:
    return f"{VOTE_PREFIX}:{period}:{collection_id}"


def parse_vote_callback(data: str) -> tuple[str, int]:
    """
    "vote:2025-03:12" -> ("2025-03", 12). Raises ValueError on anything else.
    """
    parts = (data or "").split(":")
    if len(parts) != 3 or parts[0] != VOTE_PREFIX:
        raise ValueError(f"Bad vote callback: {data!r}")
    return parts[1], int(parts[2])


def vote_kb(*, period: str, collections: list[CollectionEntry]) -> InlineKeyboardMarkup:
    """
    One toggle button per nominated collection; ✅ marks the caller's votes.
    """
    kb = InlineKeyboardBuilder()
    for c in collections:
        mark = "✅" if c.has_voted else "▫️"
        kb.add(
            InlineKeyboardButton(
                text=f"{mark} {c.name} ({c.vote_count})",
                callback_data=vote_callback_data(period, c.id),
            )
        )
    kb.adjust(1)
    return kb.as_markup()
