"""OpenAI Chat Completions client for food analysis."""

import logging
from dataclasses import dataclass

from openai import APITimeoutError, AsyncOpenAI

from calsnap.domain.chat import ChatRequest
from calsnap.services.analysis import ChatTransport

_logger = logging.getLogger(__name__)


@dataclass
class OpenAIChatTransport(ChatTransport):
    """Chat transport backed by the OpenAI SDK."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, base_url: str | None = None, timeout: float = 30.0
    ) -> "OpenAIChatTransport":
        """Create an OpenAI chat transport."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
            )
        )

    async def complete(self, request: ChatRequest) -> str:
        """Send the request and return the top choice's content."""
        try:
            response = await self.client.chat.completions.create(
                **request.to_payload()
            )
        except APITimeoutError as exc:
            raise TimeoutError("OpenAI request timed out") from exc
        usage = getattr(response, "usage", None)
        if usage is not None:
            _logger.info(
                "OpenAI usage: prompt=%s completion=%s",
                usage.prompt_tokens,
                usage.completion_tokens,
            )
        if not response.choices:
            raise RuntimeError("OpenAI returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise RuntimeError("OpenAI returned an empty response")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
