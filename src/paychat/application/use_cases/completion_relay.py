"""Use case: forward an admitted chat request to the completion provider."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional

from pydantic import ValidationError

from ...domain.entities import ChatRequest
from ...domain.errors import CompletionUpstreamError, MalformedChatRequestError
from ...domain.shared import CompletionProviderProtocol
from ..dtos import ChatRequestDTO

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Provide clear, accurate, and concise responses."
)


class CompletionRelay:
    """Streams a completion back to the caller as fragments arrive.

    Nothing is buffered beyond the first fragment, which is pulled before
    the response starts so that an upstream failure can still become a 500.
    """

    def __init__(
        self,
        provider: CompletionProviderProtocol,
        default_model: str,
        system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        if default_model not in provider.known_models():
            raise ValueError(f"Default model {default_model!r} is not served by the provider")
        self._provider = provider
        self._default_model = default_model
        self._system_prompt = system_prompt

    def parse_request(self, payload: Any) -> ChatRequest:
        """Validate a decoded JSON body.

        Raises:
            MalformedChatRequestError: If the body is not a chat request.
        """
        try:
            return ChatRequestDTO.model_validate(payload).to_entity()
        except ValidationError as e:
            raise MalformedChatRequestError(
                "Request body is not a valid chat request",
                details=str(e),
            ) from e

    def resolve_model(self, requested: Optional[str]) -> str:
        """Unknown or missing model ids fall back to the default model."""
        if requested and requested in self._provider.known_models():
            return requested
        if requested:
            logger.info(
                "Unknown model %r requested, using %s", requested, self._default_model
            )
        return self._default_model

    async def open_stream(self, request: ChatRequest) -> AsyncIterator[str]:
        """Start the completion and return an iterator over its fragments.

        Raises:
            CompletionUpstreamError: If the provider fails before producing text.
        """
        model = self.resolve_model(request.model)
        upstream = self._provider.stream_completion(
            request.messages, model, system_prompt=self._system_prompt
        ).__aiter__()
        try:
            first: Optional[str] = await upstream.__anext__()
        except StopAsyncIteration:
            first = None
        except CompletionUpstreamError:
            raise
        except Exception as e:
            raise CompletionUpstreamError(f"Completion failed: {e}") from e
        return self._forward(first, upstream)

    async def _forward(
        self, first: Optional[str], upstream: AsyncIterator[str]
    ) -> AsyncIterator[str]:
        if first is None:
            return
        try:
            if first:
                yield first
            async for chunk in upstream:
                if chunk:
                    yield chunk
        except Exception:
            # Headers are already sent; all we can do is end the body.
            logger.exception("Completion stream failed after streaming started")
        finally:
            aclose = getattr(upstream, "aclose", None)
            if aclose is not None:
                await aclose()
