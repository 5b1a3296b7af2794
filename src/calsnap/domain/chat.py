"""Models for chat-completions requests and response envelopes."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ImageUrl(BaseModel):
    """Image reference embedded in a content item."""

    url: str
    detail: str = "auto"


class ContentItem(BaseModel):
    """One part of a multi-part message: text or an image."""

    type: Literal["text", "image_url"]
    text: str | None = None
    image_url: ImageUrl | None = None

    @classmethod
    def from_text(cls, text: str) -> "ContentItem":
        """Create a text content item."""
        return cls(type="text", text=text)

    @classmethod
    def from_image(cls, url: str, detail: str) -> "ContentItem":
        """Create an image content item."""
        return cls(type="image_url", image_url=ImageUrl(url=url, detail=detail))


class RequestMessage(BaseModel):
    """Chat message whose content is either plain text or a list of items."""

    role: Literal["system", "user", "assistant"]
    # Text is tried before items so ambiguous input always decodes as text.
    content: str | list[ContentItem] = Field(union_mode="left_to_right")

    @property
    def is_text(self) -> bool:
        """Return True when the content is a plain string."""
        return isinstance(self.content, str)


class JsonSchemaFormat(BaseModel):
    """Named JSON schema for structured output."""

    name: str
    schema_: dict[str, object] = Field(alias="schema")

    model_config = ConfigDict(populate_by_name=True)


class ResponseFormat(BaseModel):
    """Structured-output settings of a chat request."""

    type: Literal["json_schema"] = "json_schema"
    json_schema: JsonSchemaFormat


class ChatRequest(BaseModel):
    """Fully-formed chat-completions request body."""

    model: str
    temperature: float = Field(ge=0.0, le=2.0)
    max_tokens: int = Field(gt=0)
    response_format: ResponseFormat
    messages: list[RequestMessage]

    def to_payload(self) -> dict[str, object]:
        """Return the JSON-ready request body."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CompletionMessage(BaseModel):
    """Assistant message inside a completion choice."""

    role: str
    content: str | None = None
    refusal: str | None = None


class Choice(BaseModel):
    """One completion candidate."""

    index: int
    message: CompletionMessage
    finish_reason: str | None = None


class Usage(BaseModel):
    """Token accounting reported by the endpoint."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionResponse(BaseModel):
    """Envelope returned by a chat-completions endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage | None = None
    service_tier: str | None = None
    system_fingerprint: str | None = None

    def first_content(self) -> str | None:
        """Return the text of the top choice, if any."""
        if not self.choices:
            return None
        return self.choices[0].message.content
