import asyncio
import json

import pytest

from votebot.database.repo.winners_repo import snapshot_exists
from votebot.services.errors import NotFound
from votebot.services.winners import WinnerService


@pytest.fixture
async def voting(nominate, clock, make_identity, services, session):
    """Four nominees; votes: c3=3, c1=2, c2=2, c4=0."""
    ids = [(await nominate(100 + n, n, f"C{n}")).collection_id for n in range(1, 5)]
    clock.set(2025, 3, 28, 12, 0)

    async def vote(tg, idx):
        voter = await make_identity(tg)
        await services.votes.toggle(session, voter, ids[idx])
        await session.commit()

    for tg in (1, 2, 3):
        await vote(tg, 2)
    for tg in (1, 2):
        await vote(tg, 0)
    for tg in (3, 4):
        await vote(tg, 1)
    return ids


def _ranking(rows):
    return [(r.rank, r.collection_id, r.vote_count) for r in rows]


async def test_ranking_and_tie_break(session, services, voting):
    c1, c2, c3, c4 = voting
    rows = await services.winners.calculate_winners(session, "2025-04")
    # c1 and c2 tie on 2 votes; c1 was submitted first
    assert _ranking(rows) == [(1, c3, 3), (2, c1, 2), (3, c2, 2), (4, c4, 0)]
    assert rows[0].name == "C3"


async def test_recalculation_is_idempotent(session, services, voting):
    first = await services.winners.calculate_winners(session, "2025-04", top_n=15)
    second = await services.winners.calculate_winners(session, "2025-04", top_n=15)
    assert _ranking(first) == _ranking(second)


async def test_top_n_limits_snapshot(session, services, voting):
    rows = await services.winners.calculate_winners(session, "2025-04", top_n=2)
    assert [r.rank for r in rows] == [1, 2]
    with pytest.raises(ValueError):
        await services.winners.calculate_winners(session, "2025-04", top_n=0)


async def test_recalculation_replaces_previous_snapshot(session, services, voting, make_identity):
    c1, c2, c3, c4 = voting
    await services.winners.calculate_winners(session, "2025-04")

    for tg in (5, 6):
        voter = await make_identity(tg)
        await services.votes.toggle(session, voter, c4)
        await session.commit()

    rows = await services.winners.calculate_winners(session, "2025-04", top_n=2)
    assert _ranking(rows) == [(1, c3, 3), (2, c1, 2)]
    rows = await services.winners.calculate_winners(session, "2025-04")
    assert len(rows) == 4
    assert {r.collection_id: r.vote_count for r in rows}[c4] == 2


async def test_concurrent_calculations_serialize(db, services, voting):
    async def run():
        async with db.session() as s:
            return await services.winners.calculate_winners(s, "2025-04")

    a, b = await asyncio.gather(run(), run())
    assert _ranking(a) == _ranking(b)
    assert len(a) == 4


async def test_period_locks_are_released_after_use(session, services, voting):
    await services.winners.calculate_winners(session, "2025-04")
    assert "2025-04" not in WinnerService._locks


async def test_empty_period(session, services):
    assert await services.winners.calculate_winners(session, "2025-09") == []
    assert await snapshot_exists(session, "2025-09") is False


async def test_export_import_round_trip(session, services, voting):
    original = await services.winners.calculate_winners(session, "2025-04")
    doc = json.loads(services.winners.dumps(await services.winners.export_snapshot(session, "2025-04")))
    assert doc["month_year"] == "2025-04"

    await services.winners.calculate_winners(session, "2025-04", top_n=1)
    restored = await services.winners.import_snapshot(session, "2025-04", doc["winners"])
    assert _ranking(restored) == _ranking(original)


async def test_import_rejects_bad_rows(session, services, voting):
    c1 = voting[0]
    with pytest.raises(ValueError, match="contiguous"):
        await services.winners.import_snapshot(
            session, "2025-04", [{"rank": 2, "collection_id": c1, "vote_count": 1}]
        )
    with pytest.raises(ValueError):
        await services.winners.import_snapshot(session, "2025-04", [{"rank": 1}])
    with pytest.raises(NotFound):
        await services.winners.import_snapshot(
            session, "2025-04", [{"rank": 1, "collection_id": 9999, "vote_count": 1}]
        )


async def test_import_rejects_repeated_collection(session, services, voting):
    c1 = voting[0]
    rows = [
        {"rank": 1, "collection_id": c1, "vote_count": 2},
        {"rank": 2, "collection_id": c1, "vote_count": 2},
    ]
    with pytest.raises(ValueError, match="more than once"):
        await services.winners.import_snapshot(session, "2025-04", rows)
    assert await snapshot_exists(session, "2025-04") is False


async def test_history_pivots_per_collection(session, services, voting, nominate, clock, make_identity):
    c1, c2, c3, c4 = voting
    await services.winners.calculate_winners(session, "2025-04")

    clock.set(2025, 4, 24)
    await nominate(200, 1, "C1")
    clock.set(2025, 4, 28)
    voter = await make_identity(1)
    await services.votes.toggle(session, voter, c1)
    await session.commit()
    await services.winners.calculate_winners(session, "2025-05")

    history = await services.winners.get_history(session)
    assert history.months == ["2025-04", "2025-05"]
    assert history.month_labels == ["April 2025", "May 2025"]
    series = {s.collection_id: s.votes for s in history.collections}
    assert series[c1] == [2, 1]
    assert series[c3] == [3, None]
    # sorted by the latest month's votes
    assert history.collections[0].collection_id == c1
