# votebot/database/models/collection.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, String, func
from sqlalchemy.orm import Mapped, mapped_column

from votebot.database.base import Base


class Collection(Base):
    """
    NFT collection, shared across periods.
    contract_address is stored normalized (trimmed, lowercase).
    """
    __tablename__ = "collections"

    id: Mapped[int] = mapped_column(primary_key=True)
    contract_address: Mapped[str] = mapped_column(String(80), unique=True, index=True)

    name: Mapped[str] = mapped_column(String(200))
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    twitter_url: Mapped[str | None] = mapped_column(String(300), nullable=True)
    tradeport_url: Mapped[str | None] = mapped_column(String(300), nullable=True)

    # cached market data, refreshed on each sighting
    floor_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    volume: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
