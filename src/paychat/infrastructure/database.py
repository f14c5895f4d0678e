"""Redis connection used by the redemption ledger."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Protocol, Union

import redis.asyncio as redis


class HasRedemptionStoreSettings(Protocol):
    redemption_store_url: Optional[str]


class DatabaseClient:
    """Redis database client."""

    def __init__(self, url: str):
        self.url = url
        self._redis: Optional[redis.Redis] = None

    def initialize_database(self) -> None:
        """Initialize Redis connection instance. No schema to create."""
        # Expecting URL like: redis://host:port/0
        self._redis = redis.from_url(self.url, decode_responses=True)

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[redis.Redis, None]:
        """Yield a Redis connection (async client)."""
        if self._redis is None:
            self.initialize_database()
        assert self._redis is not None
        yield self._redis

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


# Global database client instance
_db_client: Union[DatabaseClient, None] = None


def get_database_client(settings: HasRedemptionStoreSettings) -> Optional[DatabaseClient]:
    """Get or create the database client singleton; None when no store is configured."""
    global _db_client
    if not settings.redemption_store_url:
        return None
    if _db_client is None:
        _db_client = DatabaseClient(settings.redemption_store_url)
    return _db_client
