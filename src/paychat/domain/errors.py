"""Domain-specific exceptions."""

from __future__ import annotations

from typing import Optional


class PayChatError(Exception):
    """Base class for gateway errors."""


class ConfigurationError(PayChatError):
    """Raised when the server is missing configuration it needs to price a request."""


class MalformedChatRequestError(PayChatError):
    """Raised when an admitted request body does not have the chat request shape."""

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.details = details


class CompletionUpstreamError(PayChatError):
    """Raised when the completion provider fails before or while streaming."""


# Client side


class PaymentRequiredError(PayChatError):
    """Raised when a 402 response does not carry a usable payment challenge."""


class PaymentRejectedError(PayChatError):
    """Raised when the gateway refuses the proof presented for a request."""


class PaymentCancelledError(PayChatError):
    """Raised when the payer declines to sign the payment. Not retryable."""


class PaymentTooExpensiveError(PayChatError):
    """Raised when a challenge asks for more than the client is willing to pay."""


class PaymentFailedError(PayChatError):
    """Raised when the submitted payment transaction reverts on chain."""
