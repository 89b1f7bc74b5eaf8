from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from votebot.database.base import Base


class BlockedUser(Base):
    """
    Keyed by external (telegram) id, so a user can be blocked before ever talking to the bot.
    """
    __tablename__ = "blocked_users"

    id: Mapped[int] = mapped_column(primary_key=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True)

    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    blocked_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
