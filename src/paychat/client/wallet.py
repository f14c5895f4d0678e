"""Local-key wallet that pays x402 challenges with native transfers."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from ..domain.constants import CHAIN_ID
from ..domain.entities import PaymentRequirement
from ..domain.errors import PaymentCancelledError, PaymentFailedError

# Returns False when the payer declines to sign.
ApprovalCallback = Callable[[PaymentRequirement, int], bool]

NATIVE_TRANSFER_GAS = 21000


class Web3Wallet:
    """Signs and submits native transfers, then waits for the receipt.

    web3's HTTP provider is synchronous, so each payment runs in a worker
    thread to keep the event loop free.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        chain_id: int = CHAIN_ID,
        approve: Optional[ApprovalCallback] = None,
        receipt_timeout: float = 120.0,
        w3: Optional[Web3] = None,
    ) -> None:
        self._w3 = w3 or Web3(Web3.HTTPProvider(rpc_url))
        self._account: LocalAccount = Account.from_key(private_key)
        self._chain_id = chain_id
        self._approve = approve
        self._receipt_timeout = receipt_timeout

    @property
    def address(self) -> str:
        return self._account.address

    async def pay(self, requirement: PaymentRequirement, amount: int) -> str:
        return await asyncio.to_thread(self._pay, requirement, amount)

    def _pay(self, requirement: PaymentRequirement, amount: int) -> str:
        if self._approve is not None and not self._approve(requirement, amount):
            raise PaymentCancelledError("Payment declined by user")

        w3 = self._w3
        tx = {
            "from": self._account.address,
            "to": Web3.to_checksum_address(requirement.pay_to),
            "value": amount,
            "nonce": w3.eth.get_transaction_count(self._account.address),
            "gas": NATIVE_TRANSFER_GAS,
            "maxFeePerGas": w3.eth.gas_price * 2,
            "maxPriorityFeePerGas": Web3.to_wei(1, "gwei"),
            "chainId": self._chain_id,
        }

        signed_tx = self._account.sign_transaction(tx)
        tx_hash = w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        tx_hash_hex = Web3.to_hex(tx_hash)

        receipt = w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self._receipt_timeout
        )
        if receipt["status"] != 1:
            raise PaymentFailedError(f"Payment transaction {tx_hash_hex} reverted")
        return tx_hash_hex
