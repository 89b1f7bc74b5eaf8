import asyncio

import pytest

from votebot.database.repo.vote_repo import count_collection_votes, count_user_votes
from votebot.services.auth import Identity
from votebot.services.collections import list_collections
from votebot.services.errors import (
    BudgetExceeded,
    DuplicateConflict,
    Forbidden,
    NotFound,
    PhaseMismatch,
    TransientStoreError,
    Unauthenticated,
)


@pytest.fixture
async def nominated(nominate, clock):
    """Six collections nominated for 2025-04, then the clock moves into voting."""
    results = [await nominate(100 + n, n) for n in range(1, 7)]
    clock.set(2025, 3, 28, 12, 0)
    return [r.collection_id for r in results]


async def test_toggle_adds_then_removes(session, services, nominated, make_identity):
    voter = await make_identity(1)
    cid = nominated[0]

    added = await services.votes.toggle(session, voter, cid)
    await session.commit()
    assert added.action == "added"
    assert added.votes_remaining == 4
    assert added.vote_count == 1

    removed = await services.votes.toggle(session, voter, cid)
    await session.commit()
    assert removed.action == "removed"
    assert removed.votes_remaining == 5
    assert removed.vote_count == 0
    assert await count_collection_votes(session, cid, "2025-04") == 0


async def test_budget_is_enforced(session, services, nominated, make_identity):
    voter = await make_identity(1)
    for cid in nominated[:5]:
        await services.votes.toggle(session, voter, cid)
        await session.commit()

    with pytest.raises(BudgetExceeded):
        await services.votes.toggle(session, voter, nominated[5])
    await session.rollback()
    assert await count_user_votes(session, voter.user_id, "2025-04") == 5

    # taking one back frees a slot
    await services.votes.toggle(session, voter, nominated[0])
    result = await services.votes.toggle(session, voter, nominated[5])
    assert result.action == "added"
    assert result.votes_remaining == 0


async def test_voting_during_submission_is_rejected(session, services, nominate, make_identity):
    r = await nominate(100, 1)
    voter = await make_identity(1)
    with pytest.raises(PhaseMismatch):
        await services.votes.toggle(session, voter, r.collection_id)


async def test_stale_keyboard_period_is_rejected(session, services, nominated, make_identity):
    voter = await make_identity(1)
    with pytest.raises(PhaseMismatch):
        await services.votes.toggle(session, voter, nominated[0], period="2025-03")


async def test_unknown_collection(session, services, nominated, make_identity):
    voter = await make_identity(1)
    with pytest.raises(NotFound):
        await services.votes.toggle(session, voter, 9999)


async def test_blocked_user_cannot_vote(session, services, nominated, admin, make_identity):
    voter = await make_identity(1)
    await services.admin.block_user(session, admin, 1)
    await session.commit()
    with pytest.raises(Forbidden):
        await services.votes.toggle(session, voter, nominated[0])


async def test_unauthenticated(session, services, nominated):
    with pytest.raises(Unauthenticated):
        await services.votes.toggle(session, Identity(external_id=42), nominated[0])


async def test_board_reflects_votes(session, services, nominated, make_identity):
    voter = await make_identity(1)
    other = await make_identity(2)
    await services.votes.toggle(session, voter, nominated[2])
    await services.votes.toggle(session, other, nominated[2])
    await services.votes.toggle(session, voter, nominated[0])
    await session.commit()

    board = await list_collections(session, "2025-04", voter.user_id)
    assert [c.id for c in board.collections] == nominated
    by_id = {c.id: c for c in board.collections}
    assert by_id[nominated[2]].vote_count == 2
    assert by_id[nominated[2]].has_voted is True
    assert by_id[nominated[1]].has_voted is False
    assert board.user_vote_count == 2
    assert board.user_submission is None

    anon = await list_collections(session, "2025-04")
    assert anon.user_vote_count == 0
    assert not any(c.has_voted for c in anon.collections)


async def _toggle_in_own_session(db, services, identity, collection_id):
    """One bot update: its own session, committed on success."""
    async with db.session() as s:
        try:
            result = await services.votes.toggle(s, identity, collection_id)
            await s.commit()
            return result.action
        except (BudgetExceeded, DuplicateConflict, TransientStoreError) as e:
            await s.rollback()
            return e


async def test_double_click_leaves_at_most_one_vote(db, session, services, nominated, make_identity):
    voter = await make_identity(1)
    cid = nominated[0]

    outcomes = await asyncio.gather(
        _toggle_in_own_session(db, services, voter, cid),
        _toggle_in_own_session(db, services, voter, cid),
    )
    assert "added" in outcomes
    assert await count_collection_votes(session, cid, "2025-04") <= 1
    assert await count_user_votes(session, voter.user_id, "2025-04") <= 1


async def test_parallel_votes_cannot_exceed_budget(db, session, services, nominated, make_identity):
    voter = await make_identity(1)
    for cid in nominated[:4]:
        await services.votes.toggle(session, voter, cid)
        await session.commit()

    outcomes = await asyncio.gather(
        *(_toggle_in_own_session(db, services, voter, cid) for cid in nominated[4:])
    )
    assert outcomes.count("added") <= 1
    assert await count_user_votes(session, voter.user_id, "2025-04") <= 5
