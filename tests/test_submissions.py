import asyncio

import pytest
from sqlalchemy import func, select

from votebot.config import Settings
from votebot.database.models import Collection
from votebot.database.repo.submission_repo import count_submissions, list_submissions
from votebot.services.auth import Identity
from votebot.services.container import build_services
from votebot.services.errors import (
    DuplicateConflict,
    ExternalValidationFailed,
    Forbidden,
    PhaseMismatch,
    Unauthenticated,
)
from tests.factories import addr


async def test_submit_then_duplicates_are_rejected(session, services, metadata, make_identity):
    alice = await make_identity(1)
    bob = await make_identity(2)
    metadata.add(addr(1), "Alpha")
    metadata.add(addr(2), "Beta")

    result = await services.submissions.submit(session, alice, addr(1))
    await session.commit()
    assert result.period == "2025-04"
    assert result.collection_name == "Alpha"

    # same user, another collection
    with pytest.raises(DuplicateConflict):
        await services.submissions.submit(session, alice, addr(2))

    # another user, same collection
    with pytest.raises(DuplicateConflict):
        await services.submissions.submit(session, bob, addr(1))

    assert await count_submissions(session, "2025-04") == 1


async def test_address_is_normalized(session, services, metadata, make_identity):
    alice = await make_identity(1)
    bob = await make_identity(2)
    metadata.add(addr(7), "Seven")

    await services.submissions.submit(session, alice, "  " + addr(7).upper().replace("0X", "0x") + " ")
    await session.commit()

    with pytest.raises(DuplicateConflict):
        await services.submissions.submit(session, bob, addr(7))


async def test_invalid_address_rejected_before_lookup(session, services, metadata, make_identity):
    alice = await make_identity(1)
    with pytest.raises(ExternalValidationFailed):
        await services.submissions.submit(session, alice, "0x1234")
    with pytest.raises(ExternalValidationFailed):
        await services.submissions.submit(session, alice, "")
    assert metadata.calls == []


async def test_unknown_or_unverified_collection(session, services, metadata, make_identity):
    alice = await make_identity(1)
    metadata.add(addr(3), "Unverified", verified=False)

    with pytest.raises(ExternalValidationFailed, match="not found"):
        await services.submissions.submit(session, alice, addr(4))
    with pytest.raises(ExternalValidationFailed, match="verified"):
        await services.submissions.submit(session, alice, addr(3))
    assert await count_submissions(session, "2025-04") == 0


async def test_submission_outside_window(session, services, clock, metadata, make_identity):
    alice = await make_identity(1)
    metadata.add(addr(1), "Alpha")
    clock.set(2025, 3, 28)
    with pytest.raises(PhaseMismatch):
        await services.submissions.submit(session, alice, addr(1))


async def test_submission_for_wrong_period(session, services, metadata, make_identity):
    alice = await make_identity(1)
    metadata.add(addr(1), "Alpha")
    with pytest.raises(PhaseMismatch):
        await services.submissions.submit(session, alice, addr(1), period="2025-03")


async def test_blocked_check_comes_before_phase(session, services, clock, admin, make_identity):
    alice = await make_identity(1)
    await services.admin.block_user(session, admin, 1, "spam")
    await session.commit()
    clock.set(2025, 3, 28)  # not the submission phase either

    with pytest.raises(Forbidden, match="blocked"):
        await services.submissions.submit(session, alice, "garbage")


async def test_missing_role_is_forbidden(session, metadata, clock, make_identity):
    restricted = build_services(
        Settings(bot_token="x", allowed_roles=("administrator", "og")), metadata, clock
    )
    member = await make_identity(1, roles=("member",))
    og = await make_identity(2, roles=("member", "og"))
    metadata.add(addr(1), "Alpha")

    with pytest.raises(Forbidden, match="role"):
        await restricted.submissions.submit(session, member, addr(1))
    await restricted.submissions.submit(session, og, addr(1))


async def test_unknown_user_is_unauthenticated(session, services):
    with pytest.raises(Unauthenticated):
        await services.submissions.submit(session, Identity(external_id=5), addr(1))


async def test_list_submissions_newest_first(session, nominate):
    await nominate(1, 1, "Alpha")
    await nominate(2, 2, "Beta")
    rows = await list_submissions(session, "2025-04")
    assert [r.collection_name for r in rows] == ["Beta", "Alpha"]
    assert rows[0].username == "user2"


async def test_existing_collection_row_is_reused(session, services, nominate, clock):
    first = await nominate(1, 1, "Alpha")
    # next month the same collection is nominated again
    clock.set(2025, 4, 24)
    again = await nominate(2, 1, "Alpha")
    assert again.period == "2025-05"
    assert again.collection_id == first.collection_id


async def test_same_new_address_submitted_in_parallel(db, session, services, metadata, make_identity):
    alice = await make_identity(1)
    bob = await make_identity(2)
    metadata.add(addr(9), "Nine")

    async def submit_as(identity):
        async with db.session() as s:
            try:
                result = await services.submissions.submit(s, identity, addr(9))
                await s.commit()
                return result
            except DuplicateConflict as e:
                await s.rollback()
                return e

    outcomes = await asyncio.gather(submit_as(alice), submit_as(bob))
    assert sum(isinstance(o, DuplicateConflict) for o in outcomes) == 1
    assert sum(not isinstance(o, DuplicateConflict) for o in outcomes) == 1

    assert await count_submissions(session, "2025-04") == 1
    collections = await session.scalar(
        select(func.count()).select_from(Collection).where(Collection.contract_address == addr(9))
    )
    assert collections == 1
