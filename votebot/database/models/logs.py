# votebot/database/models/logs.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from votebot.database.base import Base


class AdminActionLog(Base):
    """
    Audit trail of admin actions.
    Payload is a JSON string (serialized in services).
    """
    __tablename__ = "admin_action_logs"
    __table_args__ = (
        Index("ix_admin_action_logs_actor_time", "actor_telegram_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    actor_telegram_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True, index=True)

    action: Mapped[str] = mapped_column(String(64), index=True)  # e.g. "phase_override", "clear_data", "block_user"
    target_type: Mapped[str | None] = mapped_column(String(32), nullable=True)  # "period", "submission", "user"
    target_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    payload_json: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
