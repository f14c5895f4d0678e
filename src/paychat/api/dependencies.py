"""FastAPI dependencies for the gateway API."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends

from ..application.use_cases.challenge import ChallengeBuilder
from ..application.use_cases.completion_relay import CompletionRelay
from ..application.use_cases.payment_verifier import PaymentVerifier
from ..application.use_cases.request_gate import RequestGate
from ..domain.redemption_repository import RedemptionRepository
from ..domain.shared import ChainOracleProtocol, CompletionProviderProtocol
from ..envs.gateway_env import Settings, get_settings
from ..infrastructure.chain.json_rpc_oracle import JsonRpcChainOracle
from ..infrastructure.completion.gemini_provider import GeminiCompletionProvider
from ..infrastructure.database import get_database_client
from ..infrastructure.redemption_repository_impl import RedemptionRepositoryImpl
from ..infrastructure.storage import RedisKeyValueStore


@lru_cache
def get_gateway_settings() -> Settings:
    """Get settings, read from the environment once per process."""
    return get_settings()


@lru_cache
def get_chain_oracle() -> ChainOracleProtocol:
    """Get the shared ledger oracle (one pooled HTTP client per process)."""
    settings = get_gateway_settings()
    return JsonRpcChainOracle(
        settings.chain_rpc_url, timeout=settings.chain_rpc_timeout
    )


@lru_cache
def get_completion_provider() -> CompletionProviderProtocol:
    """Get the shared completion provider."""
    settings = get_gateway_settings()
    return GeminiCompletionProvider(
        settings.gemini_api_key, base_url=settings.gemini_base_url
    )


def get_payment_verifier(
    oracle: ChainOracleProtocol = Depends(get_chain_oracle),
    settings: Settings = Depends(get_gateway_settings),
) -> PaymentVerifier:
    """Get payment verifier."""
    return PaymentVerifier(oracle, chain_id=settings.chain_id)


def get_challenge_builder(
    settings: Settings = Depends(get_gateway_settings),
) -> ChallengeBuilder:
    """Get challenge builder."""
    return ChallengeBuilder(price_wei=settings.query_price_wei, chain_id=settings.chain_id)


def get_redemption_repository(
    settings: Settings = Depends(get_gateway_settings),
) -> Optional[RedemptionRepository]:
    """Get the redemption ledger, or None when replay protection is off."""
    db_client = get_database_client(settings)
    if db_client is None:
        return None
    return RedemptionRepositoryImpl(RedisKeyValueStore(db_client))


def get_request_gate(
    verifier: PaymentVerifier = Depends(get_payment_verifier),
    challenge_builder: ChallengeBuilder = Depends(get_challenge_builder),
    redemptions: Optional[RedemptionRepository] = Depends(get_redemption_repository),
    settings: Settings = Depends(get_gateway_settings),
) -> RequestGate:
    """Get request gate."""
    return RequestGate(
        verifier=verifier,
        challenge_builder=challenge_builder,
        pay_to_address=settings.pay_to_address,
        price_wei=settings.query_price_wei,
        redemptions=redemptions,
    )


def get_completion_relay(
    provider: CompletionProviderProtocol = Depends(get_completion_provider),
    settings: Settings = Depends(get_gateway_settings),
) -> CompletionRelay:
    """Get completion relay."""
    return CompletionRelay(
        provider,
        default_model=settings.default_model,
        system_prompt=settings.system_prompt,
    )
