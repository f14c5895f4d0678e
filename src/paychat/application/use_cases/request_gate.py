"""Use case: the x402 admission state machine for a single request.

AwaitingProof -> Challenged                 (no proof header)
AwaitingProof -> Verifying -> Rejected      (proof refused)
AwaitingProof -> Verifying -> Admitted      (proof accepted)

Challenged and Rejected both answer 402; only the body tells them apart.
Rejected and Admitted are terminal: retrying means a new request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ...domain.constants import QUERY_PRICE_WEI
from ...domain.entities import (
    PaymentProof,
    PaymentRequirement,
    Receipt,
    VerificationOutcome,
)
from ...domain.errors import ConfigurationError
from ...domain.redemption_repository import RedemptionRepository
from ..dtos import ChallengeResponseDTO, PaymentRejectionDTO
from .challenge import ChallengeBuilder
from .payment_verifier import PaymentVerifier

logger = logging.getLogger(__name__)

PAYMENT_REQUIRED = 402

PROOF_REQUIRED_MESSAGE = "X-PAYMENT header is required"
VERIFICATION_FAILED_MESSAGE = "Payment verification failed"
ALREADY_REDEEMED_MESSAGE = "Payment already redeemed for a previous request"


class GateState(str, Enum):
    CHALLENGED = "challenged"
    REJECTED = "rejected"
    ADMITTED = "admitted"


@dataclass(frozen=True)
class GateDecision:
    """Outcome of running one request through the gate."""

    state: GateState
    # Metrics label: challenged, rejected, unavailable, replayed or admitted.
    outcome: str
    body: Optional[dict[str, Any]] = None
    receipt: Optional[Receipt] = None
    reason: str = ""
    status_code: int = field(default=PAYMENT_REQUIRED)

    def __post_init__(self) -> None:
        if self.state is GateState.ADMITTED and self.receipt is None:
            raise ValueError("An admitted decision must carry a receipt")

    @property
    def admitted(self) -> bool:
        return self.state is GateState.ADMITTED


class RequestGate:
    """Turns a proof header into a challenge, a rejection or an admission."""

    def __init__(
        self,
        verifier: PaymentVerifier,
        challenge_builder: ChallengeBuilder,
        pay_to_address: Optional[str],
        price_wei: int = QUERY_PRICE_WEI,
        redemptions: Optional[RedemptionRepository] = None,
    ) -> None:
        self._verifier = verifier
        self._challenge_builder = challenge_builder
        self._pay_to_address = pay_to_address
        self._price_wei = price_wei
        self._redemptions = redemptions

    @property
    def pay_to_address(self) -> str:
        if not self._pay_to_address:
            raise ConfigurationError("Payment recipient address is not configured")
        return self._pay_to_address

    def payment_requirements(self, resource_url: str) -> list[PaymentRequirement]:
        return self._challenge_builder.build_accepts(resource_url, self.pay_to_address)

    async def evaluate(
        self, proof_header: Optional[str], resource_url: str
    ) -> GateDecision:
        """Run the state machine for one request.

        Raises:
            ConfigurationError: If no recipient address is configured.
        """
        recipient = self.pay_to_address

        proof = PaymentProof.from_header(proof_header)
        if proof is None:
            return self._challenge(resource_url, recipient)

        if self._redemptions is not None and await self._redemptions.is_redeemed(
            proof.tx_hash
        ):
            logger.info("Rejected replayed payment %s", proof.tx_hash)
            return self._reject(ALREADY_REDEEMED_MESSAGE, outcome="replayed")

        result = await self._verifier.check(proof, recipient, self._price_wei)
        if result.outcome is VerificationOutcome.UNAVAILABLE:
            logger.warning(
                "Payment verification unavailable for %s: %s",
                proof.tx_hash,
                result.reason,
            )
            return self._reject(
                f"{VERIFICATION_FAILED_MESSAGE}: the ledger could not be reached, "
                "retry with the same transaction later",
                outcome="unavailable",
                reason=result.reason,
            )
        if not result.accepted:
            logger.info("Rejected payment %s: %s", proof.tx_hash, result.reason)
            return self._reject(
                f"{VERIFICATION_FAILED_MESSAGE}: {result.reason}",
                outcome="rejected",
                reason=result.reason,
            )

        if self._redemptions is not None and not await self._redemptions.claim(
            proof.tx_hash, resource_url
        ):
            logger.info("Lost redemption race for payment %s", proof.tx_hash)
            return self._reject(ALREADY_REDEEMED_MESSAGE, outcome="replayed")

        logger.info("Admitted request paid by %s", proof.tx_hash)
        return GateDecision(
            state=GateState.ADMITTED,
            outcome="admitted",
            receipt=Receipt(tx_hash=proof.tx_hash, verified=True),
            status_code=200,
        )

    def _challenge(self, resource_url: str, recipient: str) -> GateDecision:
        body = ChallengeResponseDTO(
            error=PROOF_REQUIRED_MESSAGE,
            accepts=self._challenge_builder.build_accepts(resource_url, recipient),
        ).to_body()
        return GateDecision(state=GateState.CHALLENGED, outcome="challenged", body=body)

    def _reject(self, message: str, outcome: str, reason: str = "") -> GateDecision:
        body = PaymentRejectionDTO(error=message).to_body()
        return GateDecision(
            state=GateState.REJECTED, outcome=outcome, body=body, reason=reason or message
        )
