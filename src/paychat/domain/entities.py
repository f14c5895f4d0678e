"""Domain entities: payment terms, proofs, receipts and chat messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Literal, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from .constants import (
    MAX_TIMEOUT_SECONDS,
    NATIVE_ASSET,
    PAYMENT_DESCRIPTION,
    RESOURCE_MIME_TYPE,
    SCHEME_EXACT,
)


class PaymentRequirement(BaseModel):
    """One acceptable way to pay for a gated resource.

    Built fresh for every challenge and never persisted. Serialises with
    the camelCase keys x402 clients expect (`maxAmountRequired`, `payTo`).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    scheme: str = SCHEME_EXACT
    network: str
    max_amount_required: int = Field(..., ge=0)
    resource: str
    description: str = PAYMENT_DESCRIPTION
    mime_type: str = RESOURCE_MIME_TYPE
    pay_to: str
    max_timeout_seconds: int = MAX_TIMEOUT_SECONDS
    asset: str = NATIVE_ASSET
    output_schema: dict[str, Any] = Field(default_factory=dict)
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_serializer("max_amount_required")
    def serialize_max_amount_required(self, value: int) -> str:
        return str(value)


class PaymentProof(BaseModel):
    """Evidence of payment supplied by a caller: a transaction hash."""

    model_config = ConfigDict(frozen=True)

    tx_hash: str = Field(..., min_length=1)

    @classmethod
    def from_header(cls, value: Optional[str]) -> Optional["PaymentProof"]:
        """Build a proof from a raw header value; blank headers carry no proof."""
        if value is None or not value.strip():
            return None
        return cls(tx_hash=value.strip())


class Receipt(BaseModel):
    """Receipt attached to an admitted response."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    tx_hash: str
    verified: bool = True

    def to_header_value(self) -> str:
        return self.model_dump_json(by_alias=True)


class VerificationOutcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    # The ledger could not be asked; the payment may well be valid.
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class VerificationResult:
    outcome: VerificationOutcome
    reason: str = ""

    @property
    def accepted(self) -> bool:
        return self.outcome is VerificationOutcome.ACCEPTED

    @classmethod
    def accept(cls) -> "VerificationResult":
        return cls(VerificationOutcome.ACCEPTED)

    @classmethod
    def reject(cls, reason: str) -> "VerificationResult":
        return cls(VerificationOutcome.REJECTED, reason)

    @classmethod
    def unavailable(cls, reason: str) -> "VerificationResult":
        return cls(VerificationOutcome.UNAVAILABLE, reason)


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


T = TypeVar("T")


@dataclass(frozen=True)
class OracleLookup(Generic[T]):
    """Result of one read against the ledger RPC endpoint.

    `value` is the untyped JSON-RPC `result` document and is only set when
    `status` is FOUND.
    """

    status: LookupStatus
    value: Optional[T] = None
    error: str = ""

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND and self.value is not None

    @classmethod
    def hit(cls, value: T) -> "OracleLookup[T]":
        return cls(LookupStatus.FOUND, value)

    @classmethod
    def miss(cls) -> "OracleLookup[T]":
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: str) -> "OracleLookup[T]":
        return cls(LookupStatus.UNAVAILABLE, error=error)


# Raw JSON-RPC documents for eth_getTransactionReceipt / eth_getTransactionByHash
ReceiptDocument = Mapping[str, Any]
TransactionDocument = Mapping[str, Any]


ChatRole = Literal["user", "assistant", "system"]


class ChatMessage(BaseModel):
    """A single message in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    content: str


class ChatRequest(BaseModel):
    """Conversation to complete plus the requested model identifier."""

    messages: list[ChatMessage] = Field(..., min_length=1)
    model: Optional[str] = None
