"""Protocol interface for language-model completion providers."""

from __future__ import annotations

from typing import AsyncIterator, Optional, Protocol, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from ..entities import ChatMessage


class CompletionProviderProtocol(Protocol):
    """Produces a completion as a lazy, finite, non-restartable stream of text."""

    def known_models(self) -> frozenset[str]:
        """Model identifiers this provider can serve."""
        ...

    def stream_completion(
        self,
        messages: Sequence["ChatMessage"],
        model: str,
        system_prompt: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """Yield text fragments in arrival order.

        Raises:
            CompletionUpstreamError: If the provider cannot be reached or fails.
        """
        ...
