"""Raw HTTP chat-completions client for OpenAI-compatible endpoints."""

import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from calsnap.domain.chat import ChatCompletionResponse, ChatRequest
from calsnap.services.analysis import ChatTransport

_logger = logging.getLogger(__name__)


@dataclass
class HttpxChatTransport(ChatTransport):
    """HTTPX-backed chat transport that validates the response envelope."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 30.0

    @classmethod
    def create(
        cls, api_key: str, base_url: str, timeout: float = 30.0
    ) -> "HttpxChatTransport":
        """Create a chat transport with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def complete(self, request: ChatRequest) -> str:
        """POST the request and return the top choice's content."""
        url = f"{self.base_url}/chat/completions"
        try:
            response = await self.http_client.post(
                url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=request.to_payload(),
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            raise TimeoutError(f"Request to {url} timed out") from exc
        response.raise_for_status()
        try:
            envelope = ChatCompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RuntimeError("Malformed chat completion envelope") from exc
        if envelope.usage is not None:
            _logger.info(
                "Completion usage: model=%s prompt=%s completion=%s",
                envelope.model,
                envelope.usage.prompt_tokens,
                envelope.usage.completion_tokens,
            )
        content = envelope.first_content()
        if not content:
            raise RuntimeError("Chat completion has no content")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
