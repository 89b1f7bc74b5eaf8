# votebot/services/winners.py
from __future__ import annotations

import asyncio
import json
import logging
import weakref
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Collection
from votebot.database.repo.winners_repo import (
    WinnerRow,
    get_all_winners,
    get_snapshot,
    get_tallies,
    replace_snapshot,
)
from votebot.database.tx import transactional
from votebot.services.errors import NotFound, TransientStoreError
from votebot.utils.dates import parse_period, period_label

log = logging.getLogger(__name__)

DEFAULT_TOP_N = 50


@dataclass(frozen=True, slots=True)
class HistorySeries:
    collection_id: int
    name: str
    contract_address: str
    votes: list[int | None]  # aligned with WinnerHistory.months


@dataclass(frozen=True, slots=True)
class WinnerHistory:
    months: list[str] = field(default_factory=list)
    month_labels: list[str] = field(default_factory=list)
    collections: list[HistorySeries] = field(default_factory=list)


class WinnerService:
    """
    Winner snapshots: computed from live tallies, replaced as a whole.
    """

    # one lock per period, shared by every service instance in the process;
    # an entry lives only while some caller holds or waits on it
    _locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def __init__(self, default_top_n: int = DEFAULT_TOP_N) -> None:
        self.default_top_n = default_top_n

    @classmethod
    def _lock_for(cls, period: str) -> asyncio.Lock:
        lock = cls._locks.get(period)
        if lock is None:
            lock = cls._locks[period] = asyncio.Lock()
        return lock

    async def calculate_winners(
        self,
        session: AsyncSession,
        period: str,
        top_n: int | None = None,
    ) -> list[WinnerRow]:
        """
        Ranks the period's submissions by live vote count (ties: submission order,
        then collection id) and replaces the stored snapshot with the top N.

        Commits before releasing the period lock, so readers see either the old
        snapshot or the new one.
        """
        parse_period(period)
        n = self.default_top_n if top_n is None else int(top_n)
        if n < 1:
            raise ValueError("top_n must be at least 1.")

        async with self._lock_for(period):
            try:
                async with transactional(session):
                    tallies = await get_tallies(session, period)
                    winners = [(t.collection_id, t.vote_count) for t in tallies[:n]]
                    await replace_snapshot(session, month_year=period, winners=winners)
                await asyncio.shield(session.commit())
            except (IntegrityError, OperationalError) as e:
                await session.rollback()
                raise TransientStoreError("Winners are being recalculated elsewhere, try again.") from e

        log.info("Winners calculated: period=%s submissions=%s stored=%s", period, len(tallies), len(winners))
        return await get_snapshot(session, period)

    async def get_winners(self, session: AsyncSession, period: str) -> list[WinnerRow]:
        parse_period(period)
        return await get_snapshot(session, period)

    # ---------- export / import ----------
    async def export_snapshot(self, session: AsyncSession, period: str) -> dict[str, Any]:
        rows = await self.get_winners(session, period)
        return {
            "month_year": period,
            "winners": [
                {
                    "rank": r.rank,
                    "collection_id": r.collection_id,
                    "contract_address": r.contract_address,
                    "name": r.name,
                    "vote_count": r.vote_count,
                }
                for r in rows
            ],
        }

    @staticmethod
    def dumps(snapshot: dict[str, Any]) -> str:
        return json.dumps(snapshot, ensure_ascii=False, indent=2)

    async def import_snapshot(self, session: AsyncSession, period: str, rows: list[dict[str, Any]]) -> list[WinnerRow]:
        """
        Replaces the period's snapshot with exported rows.
        Ranks must be 1..n without gaps; collections must exist.
        """
        parse_period(period)
        try:
            parsed = sorted(
                (int(r["rank"]), int(r["collection_id"]), int(r["vote_count"])) for r in rows
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError("Snapshot rows need integer rank, collection_id and vote_count.") from e

        if [rank for rank, _, _ in parsed] != list(range(1, len(parsed) + 1)):
            raise ValueError("Snapshot ranks must be contiguous starting at 1.")

        ids = {cid for _, cid, _ in parsed}
        if len(ids) != len(parsed):
            raise ValueError("Snapshot lists the same collection more than once.")
        if ids:
            res = await session.execute(select(Collection.id).where(Collection.id.in_(ids)))
            missing = ids - {int(x) for x in res.scalars().all()}
            if missing:
                raise NotFound(f"Unknown collection ids in snapshot: {sorted(missing)}")

        winners = [(cid, votes) for _, cid, votes in parsed]
        async with self._lock_for(period):
            async with transactional(session):
                await replace_snapshot(session, month_year=period, winners=winners)
            await asyncio.shield(session.commit())

        log.info("Winners imported: period=%s rows=%s", period, len(winners))
        return await get_snapshot(session, period)

    # ---------- history ----------
    async def get_history(self, session: AsyncSession) -> WinnerHistory:
        """
        Every stored snapshot, pivoted per collection.
        Collections are sorted by votes in the latest month.
        """
        all_rows = await get_all_winners(session)
        months = sorted({m for m, _ in all_rows})
        if not months:
            return WinnerHistory()

        index = {m: i for i, m in enumerate(months)}
        series: dict[int, dict[str, Any]] = {}
        votes: dict[int, list[int | None]] = defaultdict(lambda: [None] * len(months))

        for month, row in all_rows:
            series.setdefault(row.collection_id, {"name": row.name, "contract_address": row.contract_address})
            votes[row.collection_id][index[month]] = row.vote_count

        collections = [
            HistorySeries(
                collection_id=cid,
                name=meta["name"],
                contract_address=meta["contract_address"],
                votes=votes[cid],
            )
            for cid, meta in series.items()
        ]
        collections.sort(key=lambda s: s.votes[-1] or 0, reverse=True)

        return WinnerHistory(
            months=months,
            month_labels=[period_label(m) for m in months],
            collections=collections,
        )

