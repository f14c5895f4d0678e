"""Data Transfer Objects for the chat gateway application layer."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..domain.constants import X402_VERSION
from ..domain.entities import ChatMessage, ChatRequest, PaymentRequirement


class MessagePartDTO(BaseModel):
    """One part of a UI message. Only text parts contribute to the prompt."""

    model_config = ConfigDict(extra="allow")

    type: str
    text: Optional[str] = None


class ChatMessageDTO(BaseModel):
    """DTO for a chat message.

    Accepts either a plain `content` string or the `parts` list sent by
    UI chat clients; text parts are concatenated into `content`.
    """

    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "assistant", "system"]
    content: Optional[str] = None
    parts: Optional[list[MessagePartDTO]] = None

    @model_validator(mode="after")
    def resolve_content(self) -> "ChatMessageDTO":
        if self.content is None:
            if self.parts is None:
                raise ValueError("message needs either 'content' or 'parts'")
            self.content = "".join(
                part.text for part in self.parts if part.type == "text" and part.text
            )
        return self

    def to_entity(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content or "")


class ChatRequestDTO(BaseModel):
    """DTO for the body of a chat request."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "messages": [{"role": "user", "content": "What is x402?"}],
                "model": "gemini-2.5-flash",
            }
        },
    )

    messages: list[ChatMessageDTO] = Field(..., min_length=1)
    model: Optional[str] = None

    def to_entity(self) -> ChatRequest:
        return ChatRequest(
            messages=[message.to_entity() for message in self.messages],
            model=self.model,
        )


class _X402Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    x402_version: int = X402_VERSION
    error: str

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ChallengeResponseDTO(_X402Body):
    """402 body telling the caller how to pay."""

    accepts: list[PaymentRequirement]


class PaymentRejectionDTO(_X402Body):
    """402 body telling the caller its proof did not check out."""


class PaymentRequirementsDTO(BaseModel):
    """Discovery body listing the accepted payment options."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    x402_version: int = X402_VERSION
    accepts: list[PaymentRequirement]


class ErrorResponseDTO(BaseModel):
    """Body for non-payment errors (4xx/5xx)."""

    error: str
    details: Optional[str] = None
