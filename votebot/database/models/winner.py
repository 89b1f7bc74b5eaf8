from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from votebot.database.base import Base


class Winner(Base):
    """
    Snapshot of a period's ranking.
    One row per (month_year, rank); the whole set is replaced on recomputation.
    """
    __tablename__ = "winners"
    __table_args__ = (
        UniqueConstraint("month_year", "rank", name="uq_winners_period_rank"),
        Index("ix_winners_period", "month_year"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    month_year: Mapped[str] = mapped_column(String(7))
    rank: Mapped[int] = mapped_column(Integer)  # 1..top_n

    collection_id: Mapped[int] = mapped_column(ForeignKey("collections.id", ondelete="CASCADE"), index=True)
    vote_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
