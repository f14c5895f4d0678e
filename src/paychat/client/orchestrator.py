"""Caller side of the x402 flow: pay on a 402 challenge, then retry with proof."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Type
from types import TracebackType

import httpx
from pydantic import ValidationError

from ..domain.constants import (
    CHAIN_ID,
    NATIVE_ASSET,
    PAYMENT_HEADER,
    QUERY_PRICE_WEI,
    RECEIPT_HEADER,
    network_id,
)
from ..domain.entities import ChatMessage, PaymentRequirement, Receipt
from ..domain.errors import (
    PayChatError,
    PaymentRejectedError,
    PaymentRequiredError,
    PaymentTooExpensiveError,
)
from ..domain.shared import WalletProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatReply:
    content: str
    receipt: Optional[Receipt] = None
    tx_hash: Optional[str] = None


def select_requirement(challenge: Any, chain_id: int = CHAIN_ID) -> PaymentRequirement:
    """Pick the first payment option from a 402 body.

    Raises:
        PaymentRequiredError: If the body is not a usable native-asset challenge.
    """
    if not isinstance(challenge, dict):
        raise PaymentRequiredError("402 response did not carry a JSON challenge")
    accepts = challenge.get("accepts") or []
    if not accepts:
        raise PaymentRequiredError(
            challenge.get("error") or "No payment options available"
        )
    try:
        requirement = PaymentRequirement.model_validate(accepts[0])
    except ValidationError as e:
        raise PaymentRequiredError(f"Malformed payment requirement: {e}") from e
    if requirement.network != network_id(chain_id):
        raise PaymentRequiredError(
            f"Payment requested on {requirement.network}, wallet is on {network_id(chain_id)}"
        )
    if requirement.asset != NATIVE_ASSET:
        raise PaymentRequiredError(f"Unsupported payment asset: {requirement.asset}")
    return requirement


class PaymentOrchestrator:
    """Sends chat requests to a payment-gated endpoint.

    A 402 challenge is paid through the wallet and the request is retried
    once with the transaction hash as proof. A payer declining the wallet
    prompt surfaces as `PaymentCancelledError` and is never retried.
    """

    def __init__(
        self,
        chat_url: str,
        wallet: WalletProtocol,
        max_price_wei: int = QUERY_PRICE_WEI,
        chain_id: int = CHAIN_ID,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._chat_url = chat_url
        self._wallet = wallet
        self._max_price_wei = max_price_wei
        self._chain_id = chain_id
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def chat(
        self,
        messages: Sequence[ChatMessage],
        model: Optional[str] = None,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> ChatReply:
        body = {
            "messages": [message.model_dump() for message in messages],
            "model": model,
        }

        async with self._client.stream("POST", self._chat_url, json=body) as resp:
            if resp.status_code != 402:
                return await self._read_reply(resp, None, on_chunk)
            challenge = self._decode(await resp.aread())

        requirement = select_requirement(challenge, self._chain_id)
        amount = requirement.max_amount_required
        if amount > self._max_price_wei:
            raise PaymentTooExpensiveError(
                f"Gateway asks for {amount} base units, limit is {self._max_price_wei}"
            )

        logger.info("Paying %s base units to %s", amount, requirement.pay_to)
        tx_hash = await self._wallet.pay(requirement, amount)
        logger.info("Payment confirmed in %s", tx_hash)

        async with self._client.stream(
            "POST", self._chat_url, json=body, headers={PAYMENT_HEADER: tx_hash}
        ) as resp:
            if resp.status_code == 402:
                rejection = self._decode(await resp.aread())
                message = (
                    rejection.get("error") if isinstance(rejection, dict) else None
                )
                raise PaymentRejectedError(message or "Payment was not accepted")
            return await self._read_reply(resp, tx_hash, on_chunk)

    async def _read_reply(
        self,
        resp: httpx.Response,
        tx_hash: Optional[str],
        on_chunk: Optional[Callable[[str], None]],
    ) -> ChatReply:
        if resp.status_code >= 400:
            text = (await resp.aread()).decode("utf-8", errors="replace")
            raise PayChatError(f"Chat request failed: {resp.status_code} - {text}")

        receipt = None
        raw_receipt = resp.headers.get(RECEIPT_HEADER)
        if raw_receipt:
            try:
                receipt = Receipt.model_validate_json(raw_receipt)
            except ValidationError:
                logger.warning("Ignoring malformed payment receipt: %s", raw_receipt)

        chunks: list[str] = []
        async for chunk in resp.aiter_text():
            chunks.append(chunk)
            if on_chunk is not None:
                on_chunk(chunk)
        return ChatReply(content="".join(chunks), receipt=receipt, tx_hash=tx_hash)

    @staticmethod
    def _decode(raw: bytes) -> Any:
        try:
            return json.loads(raw)
        except ValueError:
            return None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "PaymentOrchestrator":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
