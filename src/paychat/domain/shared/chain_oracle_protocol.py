"""Protocol interface for ledger RPC oracle implementations."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from ..entities import OracleLookup, ReceiptDocument, TransactionDocument


class ChainOracleProtocol(Protocol):
    """Read-only view of the ledger.

    Implementations must never raise: transport failures, malformed JSON
    and `null` results are all folded into the returned `OracleLookup`.
    """

    async def get_receipt(self, tx_hash: str) -> "OracleLookup[ReceiptDocument]":
        """Fetch the transaction receipt for `tx_hash`."""
        ...

    async def get_transaction(
        self, tx_hash: str
    ) -> "OracleLookup[TransactionDocument]":
        """Fetch the transaction body for `tx_hash`."""
        ...
