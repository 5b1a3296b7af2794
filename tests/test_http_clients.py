"""Tests for HTTP-based chat transports."""

import asyncio
import json

import httpx
import pytest

from calsnap.adapters.httpx_chat_client import HttpxChatTransport
from calsnap.adapters.openai_chat_client import OpenAIChatTransport
from calsnap.services.requests import RequestBuilder

IMAGE = b"\x89PNG\r\n\x1a\n" + b"pixels"


def _envelope(content: str | None = '{"title": "Apple"}') -> dict[str, object]:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1715000000,
        "model": "gpt-4o-mini-2024-07-18",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content, "refusal": None},
                "logprobs": None,
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 900, "completion_tokens": 120, "total_tokens": 1020},
        "system_fingerprint": "fp_1",
    }


class _FakeCompletions:
    def __init__(self, content: str | None = '{"title": "Apple"}') -> None:
        self.content = content
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        message = type("Message", (), {"content": self.content})()
        choice = type("Choice", (), {"message": message})()
        usage = type("Usage", (), {"prompt_tokens": 10, "completion_tokens": 5})()
        return type("Resp", (), {"choices": [choice], "usage": usage})()


class _FakeChat:
    def __init__(self, completions: _FakeCompletions) -> None:
        self.completions = completions


class _FakeOpenAI:
    def __init__(self, content: str | None = '{"title": "Apple"}') -> None:
        self.chat = _FakeChat(_FakeCompletions(content))


def test_openai_transport_sends_payload_and_returns_content() -> None:
    fake = _FakeOpenAI()
    transport = OpenAIChatTransport(client=fake)  # type: ignore[arg-type]
    request = RequestBuilder().build(IMAGE)

    content = asyncio.run(transport.complete(request))

    assert content == '{"title": "Apple"}'
    payload = fake.chat.completions.last_payload
    assert payload is not None
    assert payload["model"] == "gpt-4o-mini"
    assert payload["response_format"]["json_schema"]["name"] == (
        "FoodNutritionAnalysis"
    )


def test_openai_transport_rejects_empty_content() -> None:
    fake = _FakeOpenAI(content=None)
    transport = OpenAIChatTransport(client=fake)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError):
        asyncio.run(transport.complete(RequestBuilder().build(IMAGE)))


def test_httpx_transport_posts_and_parses_envelope() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content.decode())
        return httpx.Response(200, json=_envelope())

    transport = HttpxChatTransport(
        api_key="sk-test",
        base_url="https://api.example.com/v1",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    content = asyncio.run(transport.complete(RequestBuilder().build(IMAGE)))

    assert content == '{"title": "Apple"}'
    assert seen["url"] == "https://api.example.com/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert isinstance(body, dict)
    assert body["max_tokens"] == 400
    assert body["messages"][0]["content"]
    assert body["messages"][1]["content"][1]["image_url"]["detail"] == "high"


def test_httpx_transport_create_strips_trailing_slash() -> None:
    transport = HttpxChatTransport.create(
        api_key="sk-test", base_url="https://api.example.com/v1/"
    )
    try:
        assert transport.base_url == "https://api.example.com/v1"
    finally:
        asyncio.run(transport.close())


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json={"id": "x", "choices": "nope"}),
        httpx.Response(200, json=_envelope(content=None)),
        httpx.Response(200, json={**_envelope(), "choices": []}),
    ],
)
def test_httpx_transport_rejects_bad_envelopes(response: httpx.Response) -> None:
    transport = HttpxChatTransport(
        api_key="sk-test",
        base_url="https://api.example.com/v1",
        http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda _request: response)
        ),
    )

    with pytest.raises(RuntimeError):
        asyncio.run(transport.complete(RequestBuilder().build(IMAGE)))


def test_httpx_transport_raises_on_error_status() -> None:
    transport = HttpxChatTransport(
        api_key="sk-test",
        base_url="https://api.example.com/v1",
        http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(
                lambda _request: httpx.Response(429, json={"error": "rate limited"})
            )
        ),
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(transport.complete(RequestBuilder().build(IMAGE)))


def test_httpx_transport_maps_timeouts() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    transport = HttpxChatTransport(
        api_key="sk-test",
        base_url="https://api.example.com/v1",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(TimeoutError):
        asyncio.run(transport.complete(RequestBuilder().build(IMAGE)))
