# votebot/utils/args.py
from __future__ import annotations

from votebot.utils.dates import parse_period


def command_args(text: str | None) -> list[str]:
    """
    "/calc_winners 2025-03 10" -> ["2025-03", "10"]
    """
    parts = (text or "").split()
    return parts[1:]


def looks_like_period(raw: str) -> bool:
    try:
        parse_period(raw)
    except ValueError:
        return False
    return True


def parse_int_arg(raw: str, name: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}.") from None
