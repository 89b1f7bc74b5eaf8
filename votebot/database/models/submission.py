# votebot/database/models/submission.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from votebot.database.base import Base
from votebot.database.models.collection import Collection
from votebot.database.models.user import User


class Submission(Base):
    """
    One nomination per user per period, and one nomination per collection per period.
    Both rules are enforced by unique constraints.
    """
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("user_id", "month_year", name="uq_submissions_user_period"),
        UniqueConstraint("collection_id", "month_year", name="uq_submissions_collection_period"),
        Index("ix_submissions_period_created", "month_year", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    collection_id: Mapped[int] = mapped_column(ForeignKey("collections.id", ondelete="CASCADE"), index=True)
    month_year: Mapped[str] = mapped_column(String(7), index=True)  # YYYY-MM

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())

    collection: Mapped["Collection"] = relationship(lazy="raise")
    user: Mapped["User"] = relationship(lazy="raise")
