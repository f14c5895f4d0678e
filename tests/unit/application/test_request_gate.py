"""Unit tests for the RequestGate admission flow."""

import json

import pytest

from paychat.application.use_cases.request_gate import (
    ALREADY_REDEEMED_MESSAGE,
    PROOF_REQUIRED_MESSAGE,
    GateDecision,
    GateState,
    RequestGate,
)
from paychat.domain.constants import QUERY_PRICE_WEI
from paychat.domain.errors import ConfigurationError
from paychat.infrastructure.redemption_repository_impl import RedemptionRepositoryImpl
from tests.conftest import RECIPIENT, RESOURCE_URL, make_tx_hash
from tests.fixtures import InMemoryKeyValueStore


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def guarded_gate(verifier, challenge_builder, store) -> RequestGate:
    return RequestGate(
        verifier,
        challenge_builder,
        pay_to_address=RECIPIENT,
        redemptions=RedemptionRepositoryImpl(store),
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("header", [None, "", "   "])
async def test_missing_proof_is_challenged(gate, oracle, header):
    decision = await gate.evaluate(header, RESOURCE_URL)

    assert decision.state is GateState.CHALLENGED
    assert decision.status_code == 402
    assert decision.receipt is None
    assert decision.body["x402Version"] == 1
    assert decision.body["error"] == PROOF_REQUIRED_MESSAGE
    [requirement] = decision.body["accepts"]
    assert requirement["payTo"] == RECIPIENT
    assert requirement["resource"] == RESOURCE_URL
    assert requirement["maxAmountRequired"] == str(QUERY_PRICE_WEI)
    assert oracle.calls == []


@pytest.mark.asyncio
async def test_missing_recipient_is_configuration_error(verifier, challenge_builder, oracle):
    gate = RequestGate(verifier, challenge_builder, pay_to_address=None)

    with pytest.raises(ConfigurationError):
        await gate.evaluate(None, RESOURCE_URL)
    with pytest.raises(ConfigurationError):
        await gate.evaluate(make_tx_hash(1), RESOURCE_URL)
    assert oracle.calls == []


@pytest.mark.asyncio
async def test_valid_proof_is_admitted(gate, paid_oracle, tx_hash):
    decision = await gate.evaluate(tx_hash, RESOURCE_URL)

    assert decision.admitted
    assert decision.status_code == 200
    assert decision.body is None
    assert json.loads(decision.receipt.to_header_value()) == {
        "txHash": tx_hash,
        "verified": True,
    }


@pytest.mark.asyncio
async def test_header_whitespace_is_trimmed(gate, paid_oracle, tx_hash):
    decision = await gate.evaluate(f"  {tx_hash} ", RESOURCE_URL)

    assert decision.admitted
    assert decision.receipt.tx_hash == tx_hash


@pytest.mark.asyncio
async def test_underpayment_is_rejected_without_accepts(gate, oracle, tx_hash):
    oracle.add_payment(tx_hash, to=RECIPIENT, value=QUERY_PRICE_WEI - 1)

    decision = await gate.evaluate(tx_hash, RESOURCE_URL)

    assert decision.state is GateState.REJECTED
    assert decision.outcome == "rejected"
    assert decision.status_code == 402
    assert "accepts" not in decision.body
    assert decision.body["error"].startswith("Payment verification failed")
    assert "insufficient payment" in decision.body["error"]


@pytest.mark.asyncio
async def test_unreachable_ledger_is_reported_separately(gate, paid_oracle, tx_hash):
    paid_oracle.set_unavailable("timed out")

    decision = await gate.evaluate(tx_hash, RESOURCE_URL)

    assert decision.state is GateState.REJECTED
    assert decision.outcome == "unavailable"
    assert decision.status_code == 402
    assert decision.reason == "ledger unavailable: timed out"
    assert "retry" in decision.body["error"]


@pytest.mark.asyncio
async def test_without_ledger_a_proof_can_be_reused(gate, paid_oracle, tx_hash):
    first = await gate.evaluate(tx_hash, RESOURCE_URL)
    second = await gate.evaluate(tx_hash, RESOURCE_URL)

    assert first.admitted and second.admitted


@pytest.mark.asyncio
async def test_redeemed_proof_is_refused(guarded_gate, paid_oracle, store, tx_hash):
    first = await guarded_gate.evaluate(tx_hash, RESOURCE_URL)
    paid_oracle.clear_calls()
    second = await guarded_gate.evaluate(tx_hash.upper().replace("0X", "0x"), RESOURCE_URL)

    assert first.admitted
    assert second.state is GateState.REJECTED
    assert second.outcome == "replayed"
    assert second.body["error"] == ALREADY_REDEEMED_MESSAGE
    assert paid_oracle.calls == []

    record = json.loads(await store.get(f"paychat:redeemed:{tx_hash}"))
    assert record["resource"] == RESOURCE_URL


@pytest.mark.asyncio
async def test_rejected_proof_is_not_claimed(guarded_gate, oracle, store, tx_hash):
    oracle.add_payment(tx_hash, to=RECIPIENT, value=1)

    decision = await guarded_gate.evaluate(tx_hash, RESOURCE_URL)

    assert decision.outcome == "rejected"
    assert not await store.exists(f"paychat:redeemed:{tx_hash}")


def test_payment_requirements_lists_challenge(gate):
    [requirement] = gate.payment_requirements(RESOURCE_URL)

    assert requirement.network == "eip155:10143"
    assert requirement.pay_to == RECIPIENT


def test_admitted_decision_requires_receipt():
    with pytest.raises(ValueError):
        GateDecision(state=GateState.ADMITTED, outcome="admitted", status_code=200)
