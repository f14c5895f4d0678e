"""Redemption ledger repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class RedemptionRepository(ABC):
    """Records which payment transactions have already bought a request."""

    @abstractmethod
    async def is_redeemed(self, tx_hash: str) -> bool:
        """Return True if `tx_hash` has already been used as proof."""
        pass

    @abstractmethod
    async def claim(self, tx_hash: str, resource: str) -> bool:
        """Atomically mark `tx_hash` as redeemed for `resource`.

        Returns:
            True if this call claimed it, False if it was already claimed.
        """
        pass
