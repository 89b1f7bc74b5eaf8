# votebot/database/tx.py
from __future__ import annotations

from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects import postgresql, sqlite


@asynccontextmanager
async def transactional(session: AsyncSession):
    """
    Safe transactional context for SQLAlchemy 2.x autobegin.

    - If a transaction is already active, use SAVEPOINT (begin_nested)
    - Otherwise, start a new transaction
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield
    else:
        async with session.begin():
            yield


def dialect_insert(session: AsyncSession, model):
    """
    INSERT construct with ON CONFLICT support for the session's dialect.
    Only SQLite and PostgreSQL are supported.
    """
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"Conditional insert is not supported for dialect {name!r}")
