from __future__ import annotations

import asyncio
import sys

from .client.orchestrator import PaymentOrchestrator
from .client.wallet import Web3Wallet
from .application.use_cases.challenge import format_amount
from .domain.constants import NATIVE_DECIMALS, NATIVE_SYMBOL
from .domain.entities import ChatMessage, PaymentRequirement
from .domain.errors import PayChatError, PaymentCancelledError
from .envs.client_env import Settings, get_settings


def confirm_payment(requirement: PaymentRequirement, amount: int) -> bool:
    decimals = requirement.extra.get("decimals", NATIVE_DECIMALS)
    symbol = requirement.extra.get("symbol", NATIVE_SYMBOL)
    price = format_amount(amount, decimals, symbol)
    answer = input(f"Send {price} to {requirement.pay_to}? [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


async def run(settings: Settings, prompt: str) -> int:
    wallet = Web3Wallet(
        settings.chain_rpc_url,
        settings.wallet_private_key,
        chain_id=settings.chain_id,
        approve=confirm_payment,
    )
    print(f"Paying from {wallet.address}")

    async with PaymentOrchestrator(
        settings.gateway_url,
        wallet,
        max_price_wei=settings.max_price_wei,
        chain_id=settings.chain_id,
    ) as orchestrator:
        try:
            reply = await orchestrator.chat(
                [ChatMessage(role="user", content=prompt)],
                model=settings.model,
                on_chunk=lambda chunk: print(chunk, end="", flush=True),
            )
        except PaymentCancelledError:
            print("Transaction cancelled: you rejected the payment.")
            return 1
        except PayChatError as e:
            print(f"Error: {e}")
            return 2

    print()
    if reply.receipt is not None:
        print(f"Paid with {reply.receipt.tx_hash} (verified={reply.receipt.verified})")
    return 0


def main() -> None:
    settings = get_settings()
    prompt = " ".join(sys.argv[1:]).strip() or input("Prompt: ").strip()
    if not prompt:
        print("Nothing to ask.")
        sys.exit(1)
    sys.exit(asyncio.run(run(settings, prompt)))


if __name__ == "__main__":
    main()
