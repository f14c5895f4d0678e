"""Shared pytest fixtures for gateway tests."""

from __future__ import annotations

import pytest

from paychat.application.use_cases.challenge import ChallengeBuilder
from paychat.application.use_cases.completion_relay import CompletionRelay
from paychat.application.use_cases.payment_verifier import PaymentVerifier
from paychat.application.use_cases.request_gate import RequestGate
from paychat.domain.constants import QUERY_PRICE_WEI
from tests.fixtures import FakeChainOracle, ScriptedCompletionProvider

RECIPIENT = "0xAbC0000000000000000000000000000000000123"
RESOURCE_URL = "https://chat.example.com/api/chat"


def make_tx_hash(n: int) -> str:
    """Deterministic, well-formed transaction hash."""
    return "0x" + format(n, "064x")


@pytest.fixture
def recipient() -> str:
    return RECIPIENT


@pytest.fixture
def resource_url() -> str:
    return RESOURCE_URL


@pytest.fixture
def tx_hash() -> str:
    return make_tx_hash(1)


@pytest.fixture
def oracle() -> FakeChainOracle:
    return FakeChainOracle()


@pytest.fixture
def paid_oracle(oracle: FakeChainOracle, tx_hash: str, recipient: str) -> FakeChainOracle:
    """Ledger holding one confirmed payment of exactly the query price."""
    oracle.add_payment(tx_hash, to=recipient, value=QUERY_PRICE_WEI)
    return oracle


@pytest.fixture
def verifier(oracle: FakeChainOracle) -> PaymentVerifier:
    return PaymentVerifier(oracle)


@pytest.fixture
def challenge_builder() -> ChallengeBuilder:
    return ChallengeBuilder()


@pytest.fixture
def gate(
    verifier: PaymentVerifier, challenge_builder: ChallengeBuilder, recipient: str
) -> RequestGate:
    return RequestGate(verifier, challenge_builder, pay_to_address=recipient)


@pytest.fixture
def provider() -> ScriptedCompletionProvider:
    return ScriptedCompletionProvider()


@pytest.fixture
def relay(provider: ScriptedCompletionProvider) -> CompletionRelay:
    return CompletionRelay(provider, default_model="gemini-2.5-flash")
