"""Use case: decide whether a transaction hash proves payment."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from ...domain.constants import CHAIN_ID
from ...domain.entities import (
    LookupStatus,
    PaymentProof,
    VerificationResult,
)
from ...domain.shared import ChainOracleProtocol
from .payment_validators import (
    addresses_match,
    chain_id_matches,
    parse_quantity,
    receipt_succeeded,
    value_covers_price,
)

logger = logging.getLogger(__name__)


class PaymentVerifier:
    """Checks a proof of payment against the ledger.

    Two sequential oracle reads per proof: the receipt first, and the
    transaction body only if the receipt shows success. The verifier never
    raises; any unexpected failure is reported as a rejection.
    """

    def __init__(
        self,
        oracle: ChainOracleProtocol,
        chain_id: Optional[int] = CHAIN_ID,
    ) -> None:
        self._oracle = oracle
        self._chain_id = chain_id

    async def verify(
        self, proof: PaymentProof, expected_recipient: str, min_amount: int
    ) -> bool:
        """Return True iff the proof is a confirmed, sufficient payment to the recipient."""
        result = await self.check(proof, expected_recipient, min_amount)
        return result.accepted

    async def check(
        self, proof: PaymentProof, expected_recipient: str, min_amount: int
    ) -> VerificationResult:
        """Like `verify`, but says why a proof was refused."""
        try:
            return await self._check(proof, expected_recipient, min_amount)
        except Exception as e:
            logger.exception("Unexpected error verifying payment %s", proof.tx_hash)
            return VerificationResult.reject(f"verification error: {e}")

    async def _check(
        self, proof: PaymentProof, expected_recipient: str, min_amount: int
    ) -> VerificationResult:
        tx_hash = proof.tx_hash

        receipt_lookup = await self._oracle.get_receipt(tx_hash)
        if receipt_lookup.status is LookupStatus.UNAVAILABLE:
            return VerificationResult.unavailable(
                f"ledger unavailable: {receipt_lookup.error}"
            )
        receipt = receipt_lookup.value
        if not receipt_lookup.found or not isinstance(receipt, Mapping):
            return VerificationResult.reject("transaction not found")

        if not receipt_succeeded(receipt):
            return VerificationResult.reject("transaction did not succeed")

        tx_lookup = await self._oracle.get_transaction(tx_hash)
        if tx_lookup.status is LookupStatus.UNAVAILABLE:
            return VerificationResult.unavailable(
                f"ledger unavailable: {tx_lookup.error}"
            )
        transaction = tx_lookup.value
        if not tx_lookup.found or not isinstance(transaction, Mapping):
            return VerificationResult.reject("transaction not found")

        recipient = transaction.get("to")
        if not isinstance(recipient, str):
            return VerificationResult.reject("transaction has no recipient")
        if not addresses_match(recipient, expected_recipient):
            return VerificationResult.reject(
                f"payment sent to {recipient}, expected {expected_recipient}"
            )

        if not chain_id_matches(transaction, self._chain_id):
            return VerificationResult.reject(
                f"transaction is not on chain {self._chain_id}"
            )

        try:
            value = parse_quantity(transaction.get("value"))
        except ValueError as e:
            return VerificationResult.reject(f"malformed transaction value: {e}")

        if not value_covers_price(value, min_amount):
            return VerificationResult.reject(
                f"insufficient payment: got {value}, required {min_amount}"
            )

        return VerificationResult.accept()
