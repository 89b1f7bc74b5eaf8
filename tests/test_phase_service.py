from datetime import datetime, timedelta, timezone

import pytest

from votebot.database.models import Phase
from votebot.database.repo.phase_override_repo import get_override
from votebot.services.errors import PhaseMismatch
from votebot.services.phase import parse_phase


async def test_calendar_phase_without_override(session, services, clock):
    clock.set(2025, 3, 28, 10, 0)
    info = await services.phases.get_current_phase(session)
    assert info.phase == Phase.VOTING
    assert info.period == "2025-04"
    assert info.period_label == "April 2025"
    assert info.phase_label == "Voting Phase"
    assert info.is_overridden is False


async def test_override_expires_and_row_is_removed(session, services, clock):
    clock.set(2025, 3, 5, 9, 0)  # natural: display for 2025-03
    await services.phases.set_override(session, "2025-03", Phase.VOTING, 24)
    await session.commit()

    info = await services.phases.get_current_phase(session)
    assert info.phase == Phase.VOTING
    assert info.is_overridden is True
    assert info.end_time == datetime(2025, 3, 6, 9, 0, tzinfo=timezone.utc)

    clock.advance(hours=24, minutes=1)
    info = await services.phases.get_current_phase(session)
    await session.commit()
    assert info.phase == Phase.DISPLAY
    assert info.is_overridden is False
    assert await get_override(session, "2025-03") is None


async def test_indefinite_override_ends_with_natural_phase(session, services, clock):
    clock.set(2025, 3, 5, 9, 0)
    expires = await services.phases.set_override(session, "2025-03", Phase.SUBMISSION)
    assert expires is None

    info = await services.phases.get_current_phase(session)
    assert info.phase == Phase.SUBMISSION
    assert info.end_time == datetime(2025, 3, 26, 23, 59, 59, tzinfo=timezone.utc)


async def test_indefinite_override_late_in_month_ends_next_month(session, services, clock):
    clock.set(2025, 3, 31, 12, 0)
    await services.phases.set_override(session, "2025-04", Phase.SUBMISSION)

    info = await services.phases.get_current_phase(session)
    assert info.phase == Phase.SUBMISSION
    assert info.period == "2025-04"
    assert info.end_time == datetime(2025, 4, 25, 23, 59, 59, tzinfo=timezone.utc)
    assert info.end_time > info.start_time
    assert info.time_remaining > timedelta(0)


async def test_override_for_other_period_is_ignored(session, services, clock):
    clock.set(2025, 3, 5, 9, 0)
    await services.phases.set_override(session, "2025-07", Phase.VOTING, 5)
    info = await services.phases.get_current_phase(session)
    assert info.phase == Phase.DISPLAY
    assert info.is_overridden is False


async def test_setting_override_again_replaces_it(session, services, clock):
    clock.set(2025, 3, 5, 9, 0)
    await services.phases.set_override(session, "2025-03", Phase.VOTING, 2)
    await services.phases.set_override(session, "2025-03", Phase.SUBMISSION)
    await session.commit()

    row = await get_override(session, "2025-03")
    assert row.phase == Phase.SUBMISSION
    assert row.expires_at is None


async def test_clear_override(session, services, clock):
    clock.set(2025, 3, 5, 9, 0)
    await services.phases.set_override(session, "2025-03", Phase.VOTING)
    assert await services.phases.clear_override(session, "2025-03") is True
    assert await services.phases.clear_override(session, "2025-03") is False
    info = await services.phases.get_current_phase(session)
    assert info.is_overridden is False


async def test_set_override_rejects_bad_input(session, services):
    with pytest.raises(ValueError):
        await services.phases.set_override(session, "2025-13", Phase.VOTING)
    with pytest.raises(ValueError):
        await services.phases.set_override(session, "2025-03", Phase.VOTING, -1)


async def test_require_phase(session, services, clock):
    clock.set(2025, 3, 28)
    info = await services.phases.require_phase(session, Phase.VOTING, None)
    assert info.period == "2025-04"

    with pytest.raises(PhaseMismatch):
        await services.phases.require_phase(session, Phase.SUBMISSION, None)
    with pytest.raises(PhaseMismatch):
        await services.phases.require_phase(session, Phase.VOTING, "2025-03")


def test_parse_phase():
    assert parse_phase(" Voting ") == Phase.VOTING
    with pytest.raises(ValueError):
        parse_phase("results")
