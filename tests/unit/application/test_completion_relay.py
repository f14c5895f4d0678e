"""Unit tests for CompletionRelay."""

import pytest

from paychat.application.use_cases.completion_relay import (
    DEFAULT_SYSTEM_PROMPT,
    CompletionRelay,
)
from paychat.domain.entities import ChatMessage, ChatRequest
from paychat.domain.errors import CompletionUpstreamError, MalformedChatRequestError
from tests.fixtures import ScriptedCompletionProvider


def _request(model=None) -> ChatRequest:
    return ChatRequest(messages=[ChatMessage(role="user", content="Hi")], model=model)


async def _collect(stream) -> list[str]:
    return [chunk async for chunk in stream]


class TestParseRequest:
    """Test request body validation."""

    def test_plain_content_messages(self, relay) -> None:
        request = relay.parse_request(
            {"messages": [{"role": "user", "content": "Hi"}], "model": "gemini-2.0-flash"}
        )

        assert request.messages == [ChatMessage(role="user", content="Hi")]
        assert request.model == "gemini-2.0-flash"

    def test_ui_parts_messages(self, relay) -> None:
        request = relay.parse_request(
            {
                "messages": [
                    {
                        "id": "m1",
                        "role": "user",
                        "parts": [
                            {"type": "text", "text": "What is "},
                            {"type": "step-start"},
                            {"type": "text", "text": "x402?"},
                        ],
                    }
                ]
            }
        )

        assert request.messages[0].content == "What is x402?"
        assert request.model is None

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"messages": []},
            {"messages": "hello"},
            {"messages": [{"role": "wizard", "content": "Hi"}]},
            {"messages": [{"role": "user"}]},
            ["not", "an", "object"],
        ],
    )
    def test_malformed_bodies(self, relay, payload) -> None:
        with pytest.raises(MalformedChatRequestError) as exc_info:
            relay.parse_request(payload)
        assert exc_info.value.details


class TestResolveModel:
    """Test model fallback."""

    def test_known_model_is_kept(self, relay) -> None:
        assert relay.resolve_model("gemini-1.5-pro") == "gemini-1.5-pro"

    @pytest.mark.parametrize("requested", [None, "", "gpt-4"])
    def test_unknown_or_missing_falls_back(self, relay, requested) -> None:
        assert relay.resolve_model(requested) == "gemini-2.5-flash"

    def test_default_must_be_known(self, provider) -> None:
        with pytest.raises(ValueError):
            CompletionRelay(provider, default_model="gpt-4")


@pytest.mark.asyncio
async def test_streams_fragments_in_order(relay, provider):
    stream = await relay.open_stream(_request())

    assert await _collect(stream) == ["Hello", ", ", "world"]
    [call] = provider.calls
    assert call["model"] == "gemini-2.5-flash"
    assert call["system_prompt"] == DEFAULT_SYSTEM_PROMPT
    assert call["messages"] == [ChatMessage(role="user", content="Hi")]


@pytest.mark.asyncio
async def test_first_fragment_is_forwarded_before_upstream_finishes(relay, provider):
    stream = await relay.open_stream(_request())

    first = await stream.__anext__()

    assert first == "Hello"
    assert provider.produced == 1
    await stream.aclose()


@pytest.mark.asyncio
async def test_unknown_model_uses_default(relay, provider):
    await _collect(await relay.open_stream(_request(model="claude-9")))

    assert provider.calls[0]["model"] == "gemini-2.5-flash"


@pytest.mark.asyncio
async def test_failure_before_first_fragment_raises():
    provider = ScriptedCompletionProvider(fail_before_first=RuntimeError("quota exceeded"))
    relay = CompletionRelay(provider, default_model="gemini-2.5-flash")

    with pytest.raises(CompletionUpstreamError, match="quota exceeded"):
        await relay.open_stream(_request())


@pytest.mark.asyncio
async def test_upstream_error_passes_through_unwrapped():
    error = CompletionUpstreamError("Gemini returned 503")
    provider = ScriptedCompletionProvider(fail_before_first=error)
    relay = CompletionRelay(provider, default_model="gemini-2.5-flash")

    with pytest.raises(CompletionUpstreamError) as exc_info:
        await relay.open_stream(_request())
    assert exc_info.value is error


@pytest.mark.asyncio
async def test_failure_mid_stream_ends_body():
    provider = ScriptedCompletionProvider(chunks=("a", "b", "c"), fail_after=2)
    relay = CompletionRelay(provider, default_model="gemini-2.5-flash")

    stream = await relay.open_stream(_request())

    assert await _collect(stream) == ["a", "b"]


@pytest.mark.asyncio
async def test_empty_completion_yields_nothing():
    relay = CompletionRelay(ScriptedCompletionProvider(chunks=()), default_model="gemini-2.5-flash")

    assert await _collect(await relay.open_stream(_request())) == []


@pytest.mark.asyncio
async def test_empty_fragments_are_skipped():
    provider = ScriptedCompletionProvider(chunks=("", "a", "", "b"))
    relay = CompletionRelay(provider, default_model="gemini-2.5-flash")

    assert await _collect(await relay.open_stream(_request())) == ["a", "b"]
