from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from votebot.database.models import Collection
from votebot.database.tx import dialect_insert


@dataclass(frozen=True, slots=True)
class CollectionMetadata:
    contract_address: str
    name: str
    image_url: str | None = None
    description: str | None = None
    twitter_url: str | None = None
    tradeport_url: str | None = None
    floor_price: float | None = None
    volume: float | None = None


async def get_or_create_collection(session: AsyncSession, meta: CollectionMetadata) -> Collection:
    """
    Conditional insert keyed by contract_address, then load.
    Two first-time submitters racing on the same address end up with one row.
    Market data is refreshed when the row already exists.
    """
    values = dict(
        contract_address=meta.contract_address,
        name=meta.name,
        image_url=meta.image_url,
        description=meta.description,
        twitter_url=meta.twitter_url,
        tradeport_url=meta.tradeport_url,
        floor_price=meta.floor_price,
        volume=meta.volume,
    )
    stmt = (
        dialect_insert(session, Collection)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["contract_address"])
    )
    res = await session.execute(stmt)

    if not res.rowcount:
        await session.execute(
            update(Collection)
            .where(Collection.contract_address == meta.contract_address)
            .values(floor_price=meta.floor_price, volume=meta.volume)
        )

    res = await session.execute(
        select(Collection)
        .where(Collection.contract_address == meta.contract_address)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one()
