# votebot/database/models/vote.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from votebot.database.base import Base


class Vote(Base):
    """
    One vote per (user, collection, period).
    Toggling deletes the row; the per-user budget is checked under a row lock on the voter.
    """
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("user_id", "collection_id", "month_year", name="uq_votes_user_collection_period"),
        Index("ix_votes_period_collection", "month_year", "collection_id"),
        Index("ix_votes_period_user", "month_year", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    collection_id: Mapped[int] = mapped_column(ForeignKey("collections.id", ondelete="CASCADE"), index=True)
    month_year: Mapped[str] = mapped_column(String(7), index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
