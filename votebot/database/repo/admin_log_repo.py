from __future__ import annotations

import json
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import AdminActionLog


async def log_admin_action(
    session: AsyncSession,
    *,
    actor_telegram_id: int | None,
    action: str,
    target_type: str | None = None,
    target_id: str | None = None,
    payload: dict[str, Any] | None = None,
) -> None:
    session.add(
        AdminActionLog(
            actor_telegram_id=actor_telegram_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            payload_json=json.dumps(payload, ensure_ascii=False, default=str) if payload else None,
        )
    )
    await session.flush()


async def recent_actions(session: AsyncSession, limit: int = 20) -> list[AdminActionLog]:
    res = await session.execute(
        select(AdminActionLog).order_by(AdminActionLog.created_at.desc(), AdminActionLog.id.desc()).limit(limit)
    )
    return list(res.scalars().all())
