# votebot/config/settings.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


def _require(env: dict[str, str], key: str) -> str:
    v = env.get(key)
    if v is None or not v.strip():
        raise RuntimeError(f"Missing required environment variable: {key}")
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _split_list(raw: str | None) -> list[str]:
    """
    Splits comma/space/newline separated values.
    Accepts:
      "951258732"
      "951258732,123"
      "951258732 123"
      "[951258732, 123]"  (brackets ignored)
    """
    if not raw:
        return []

    cleaned = raw.strip().strip("[](){}").strip()
    if not cleaned:
        return []

    out: list[str] = []
    for p in re.split(r"[,\s]+", cleaned):
        p2 = p.strip().strip("'\"")
        if p2:
            out.append(p2)
    return out


def _parse_int_list(raw: str | None, key_name: str) -> list[int]:
    return [_to_int(p, key_name) for p in _split_list(raw)]


@dataclass(frozen=True, slots=True)
class Settings:
    # --- required ---
    bot_token: str

    # --- optional ---
    database_url: str = "sqlite+aiosqlite:///./votebot.db"

    # --- access control ---
    admin_ids: tuple[int, ...] = ()
    # chat member statuses (or custom titles) allowed to submit/vote; empty = everyone
    allowed_roles: tuple[str, ...] = ()

    # --- telegram targets ---
    group_id: Optional[int] = None

    # --- voting rules ---
    max_votes: int = 5
    winners_top_n: int = 50

    # --- collection metadata (Tradeport) ---
    tradeport_api_url: str = "https://api.indexer.xyz/graphql"
    tradeport_api_key: Optional[str] = field(default=None, repr=False)
    tradeport_api_user: Optional[str] = None

    # --- scheduler / time ---
    timezone: str = "UTC"

    # --- environment ---
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    @classmethod
    def load(cls) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast for required fields.
        """
        load_dotenv()
        env = os.environ

        bot_token = _require(env, "BOT_TOKEN")

        database_url = (env.get("DATABASE_URL") or "sqlite+aiosqlite:///./votebot.db").strip()

        admin_ids = tuple(_parse_int_list(env.get("ADMIN_IDS"), "ADMIN_IDS"))
        allowed_roles = tuple(r.lower() for r in _split_list(env.get("ALLOWED_ROLES")))

        group_id_raw = (env.get("GROUP_ID") or "").strip()
        group_id = _to_int(group_id_raw, "GROUP_ID") if group_id_raw else None

        max_votes = _to_int((env.get("MAX_VOTES") or "5").strip(), "MAX_VOTES")
        if max_votes < 1:
            raise RuntimeError(f"MAX_VOTES must be positive, got {max_votes}")
        winners_top_n = _to_int((env.get("WINNERS_TOP_N") or "50").strip(), "WINNERS_TOP_N")

        tradeport_api_url = (
            env.get("TRADEPORT_API_URL") or "https://api.indexer.xyz/graphql"
        ).strip()
        tradeport_api_key = (env.get("TRADEPORT_API_KEY") or "").strip() or None
        tradeport_api_user = (env.get("TRADEPORT_API_USER") or "").strip() or None

        timezone = (env.get("TIMEZONE") or "UTC").strip() or "UTC"
        environment = (env.get("ENVIRONMENT") or "production").strip() or "production"

        return cls(
            bot_token=bot_token,
            database_url=database_url,
            admin_ids=admin_ids,
            allowed_roles=allowed_roles,
            group_id=group_id,
            max_votes=max_votes,
            winners_top_n=winners_top_n,
            tradeport_api_url=tradeport_api_url,
            tradeport_api_key=tradeport_api_key,
            tradeport_api_user=tradeport_api_user,
            timezone=timezone,
            environment=environment,
        )
