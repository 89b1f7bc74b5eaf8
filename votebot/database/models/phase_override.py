# votebot/database/models/phase_override.py
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Enum, String, func
from sqlalchemy.orm import Mapped, mapped_column

from votebot.database.base import Base


class Phase(str, enum.Enum):
    SUBMISSION = "submission"
    VOTING = "voting"
    DISPLAY = "display"

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]


_PHASE_LABELS = {
    Phase.SUBMISSION: "Submission Phase",
    Phase.VOTING: "Voting Phase",
    Phase.DISPLAY: "Winners Display",
}


class PhaseOverride(Base):
    """
    Admin-forced phase for one period.
    expires_at is naive UTC; NULL means the override holds until cleared.
    """
    __tablename__ = "phase_overrides"

    id: Mapped[int] = mapped_column(primary_key=True)
    month_year: Mapped[str] = mapped_column(String(7), unique=True, index=True)

    phase: Mapped[Phase] = mapped_column(Enum(Phase, native_enum=False))
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)

    set_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)  # admin telegram id

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )
