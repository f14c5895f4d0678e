"""Protocol interface for the payer's wallet."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from ..entities import PaymentRequirement


class WalletProtocol(Protocol):
    """Submits a native transfer satisfying a payment requirement."""

    @property
    def address(self) -> str:
        ...

    async def pay(self, requirement: "PaymentRequirement", amount: int) -> str:
        """Send `amount` base units to `requirement.pay_to` and wait for confirmation.

        Returns:
            The confirmed transaction hash (0x-prefixed hex).

        Raises:
            PaymentCancelledError: If the payer declined to sign.
            PaymentFailedError: If the transaction reverted.
        """
        ...
