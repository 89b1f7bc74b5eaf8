from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest

from votebot.config import Settings
from votebot.database import Database
from votebot.database.repo.collection_repo import CollectionMetadata
from votebot.services.auth import AccessPolicy, AuthService, Identity
from votebot.services.container import Services, build_services
from votebot.services.tradeport import NOT_FOUND, CollectionLookup
from tests.factories import addr

ADMIN_TG_ID = 1000


@dataclass
class FixedClock:
    current: datetime

    def now(self) -> datetime:
        return self.current

    def today(self):
        return self.current.date()

    def set(self, *args: int) -> None:
        self.current = datetime(*args, tzinfo=timezone.utc)

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@dataclass
class FakeMetadataSource:
    """Known addresses map to (verified, name); everything else is not found."""

    known: dict[str, tuple[bool, str]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def add(self, address: str, name: str, *, verified: bool = True) -> None:
        self.known[address] = (verified, name)

    async def lookup(self, contract_address: str) -> CollectionLookup:
        self.calls.append(contract_address)
        entry = self.known.get(contract_address)
        if entry is None:
            return NOT_FOUND
        verified, name = entry
        return CollectionLookup(
            exists=True,
            verified=verified,
            metadata=CollectionMetadata(contract_address=contract_address, name=name, floor_price=1.0),
        )


@pytest.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    await database.init_models()
    yield database
    await database.close()


@pytest.fixture
async def session(db):
    async with db.session() as s:
        yield s


@pytest.fixture
def clock() -> FixedClock:
    # March has 31 days: submission 24..26, voting 27..30, display from 31; all target 2025-04
    return FixedClock(datetime(2025, 3, 24, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def metadata() -> FakeMetadataSource:
    return FakeMetadataSource()


@pytest.fixture
def settings() -> Settings:
    return Settings(bot_token="test", admin_ids=(ADMIN_TG_ID,), max_votes=5, winners_top_n=50)


@pytest.fixture
def services(settings, metadata, clock) -> Services:
    return build_services(settings, metadata, clock)


@pytest.fixture
def admin() -> Identity:
    return Identity(external_id=ADMIN_TG_ID)


@pytest.fixture
def make_identity(session):
    """Creates (or reuses) a users row and returns the matching Identity."""
    auth = AuthService(AccessPolicy())

    async def _make(telegram_id: int, roles: tuple[str, ...] = ("member",)) -> Identity:
        user = await auth.get_or_create_user_by_telegram(session, telegram_id, username=f"user{telegram_id}")
        await session.commit()
        return Identity(external_id=telegram_id, roles=roles, user_id=user.id)

    return _make


@pytest.fixture
def nominate(session, services, metadata, make_identity):
    """Submits collection `n` as telegram user `telegram_id` (clock must be in the submission window)."""

    async def _nominate(telegram_id: int, n: int, name: str | None = None):
        address = addr(n)
        metadata.add(address, name or f"Collection {n}")
        identity = await make_identity(telegram_id)
        result = await services.submissions.submit(session, identity, address)
        await session.commit()
        return result

    return _nominate
