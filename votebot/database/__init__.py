from __future__ import annotations

from votebot.database.session import Database

__all__ = ["Database"]
