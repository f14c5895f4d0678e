"""Key-value implementation of the redemption ledger."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Optional

from ..domain.redemption_repository import RedemptionRepository
from .storage import KeyValueStore


class RedemptionRepositoryImpl(RedemptionRepository):
    """Stores one key per redeemed transaction hash.

    Hashes are lower-cased so that casing variants of the same hash
    cannot be redeemed twice.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key_prefix: str = "paychat:redeemed:",
        ttl_seconds: Optional[int] = None,
    ) -> None:
        self._store = store
        self._key_prefix = key_prefix
        self._ttl_seconds = ttl_seconds

    def _key(self, tx_hash: str) -> str:
        return f"{self._key_prefix}{tx_hash.strip().lower()}"

    async def is_redeemed(self, tx_hash: str) -> bool:
        return await self._store.exists(self._key(tx_hash))

    async def claim(self, tx_hash: str, resource: str) -> bool:
        record = json.dumps(
            {
                "resource": resource,
                "redeemed_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        return await self._store.set_if_absent(
            self._key(tx_hash), record, ttl_seconds=self._ttl_seconds
        )
