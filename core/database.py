from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from pymongo import AsyncMongoClient
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.database import AsyncDatabase

from core.settings import get_settings


@lru_cache(maxsize=1)
def get_client() -> AsyncMongoClient:
    settings = get_settings()
    # connect=False defers the first connection to the first operation.
    return AsyncMongoClient(settings.mongo_url, serverSelectionTimeoutMS=2000, connect=False)


def get_db() -> AsyncDatabase:
    return get_client()[get_settings().db_name]


@asynccontextmanager
async def start_transaction() -> AsyncIterator[AsyncClientSession]:
    """Yield a session bound to an open multi-document transaction.

    The transaction commits when the block exits normally and is aborted
    when the block raises, so every write passed ``session=`` inside the
    block lands together or not at all.
    """
    async with get_client().start_session() as session:
        async with await session.start_transaction():
            yield session


async def ping() -> None:
    await get_client().admin.command("ping")


async def close_client() -> None:
    if get_client.cache_info().currsize:
        await get_client().close()
        get_client.cache_clear()
