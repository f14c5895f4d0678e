"""Completion provider streaming from the Gemini REST API."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Optional, Sequence, Type
from types import TracebackType

import httpx

from ...domain.entities import ChatMessage
from ...domain.errors import CompletionUpstreamError
from ..http.http_client import AsyncHttpClient

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
GEMINI_MODELS = frozenset({"gemini-2.5-flash", "gemini-2.0-flash", "gemini-1.5-pro"})
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

_ROLE_MAP = {"user": "user", "assistant": "model"}


def build_generate_request(
    messages: Sequence[ChatMessage], system_prompt: Optional[str] = None
) -> dict[str, Any]:
    """Translate chat messages into a `generateContent` body.

    System messages are folded into `systemInstruction` after the
    configured system prompt.
    """
    system_texts = [system_prompt] if system_prompt else []
    contents = []
    for message in messages:
        if message.role == "system":
            system_texts.append(message.content)
            continue
        contents.append(
            {"role": _ROLE_MAP[message.role], "parts": [{"text": message.content}]}
        )

    body: dict[str, Any] = {"contents": contents}
    if system_texts:
        body["systemInstruction"] = {
            "parts": [{"text": "\n\n".join(system_texts)}]
        }
    return body


def extract_text(event: Any) -> str:
    """Pull the text out of one streamed GenerateContentResponse."""
    if not isinstance(event, dict):
        return ""
    candidates = event.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    return "".join(
        part.get("text", "") for part in parts if isinstance(part, dict)
    )


class GeminiCompletionProvider:
    """Streams completions with `streamGenerateContent?alt=sse`."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = GEMINI_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._http = AsyncHttpClient(
            base_url,
            timeout=timeout,
            headers={"x-goog-api-key": api_key or ""},
            transport=transport,
        )

    def known_models(self) -> frozenset[str]:
        return GEMINI_MODELS

    async def stream_completion(
        self,
        messages: Sequence[ChatMessage],
        model: str,
        system_prompt: Optional[str] = None,
    ) -> AsyncIterator[str]:
        if not self._api_key:
            raise CompletionUpstreamError("Gemini API key is not configured")

        path = f"/v1beta/models/{model}:streamGenerateContent"
        body = build_generate_request(messages, system_prompt)
        try:
            async with self._http.stream(
                "POST", path, json=body, params={"alt": "sse"}
            ) as resp:
                if resp.status_code >= 400:
                    detail = (await resp.aread()).decode("utf-8", errors="replace")
                    raise CompletionUpstreamError(
                        f"Gemini returned HTTP {resp.status_code}: {detail[:500]}"
                    )
                async for line in resp.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if not data:
                        continue
                    try:
                        event = json.loads(data)
                    except ValueError:
                        logger.warning("Skipping malformed Gemini event: %.200s", data)
                        continue
                    text = extract_text(event)
                    if text:
                        yield text
        except httpx.HTTPError as e:
            raise CompletionUpstreamError(f"Gemini request failed: {e}") from e

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "GeminiCompletionProvider":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
