"""Builds schema-constrained chat requests for food image analysis."""

import base64
from dataclasses import dataclass

from pydantic import ValidationError

from calsnap.domain.chat import (
    ChatRequest,
    ContentItem,
    JsonSchemaFormat,
    RequestMessage,
    ResponseFormat,
)
from calsnap.domain.errors import RequestBuildError
from calsnap.services.schema import SCHEMA_NAME, render_nutrition_schema

SYSTEM_PROMPT = (
    "You are an AI food analyzer. Analyze the image and answer only with "
    "structured nutritional information in JSON format matching the schema."
)
USER_PROMPT = (
    "Analyze this food image and list all visible food items with their "
    "estimated calories. If no food is visible, return an empty ingredients list."
)


@dataclass
class RequestBuilder:
    """Turns raw image bytes into a chat-completions request."""

    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 400
    image_detail: str = "high"

    def build(
        self, image_bytes: bytes, schema: dict[str, object] | None = None
    ) -> ChatRequest:
        """Return a request embedding the image, instructions and schema."""
        if not image_bytes:
            raise RequestBuildError("Image data is empty")
        resolved_schema = schema if schema is not None else render_nutrition_schema()
        data_url = _to_data_url(image_bytes)
        try:
            return ChatRequest(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format=ResponseFormat(
                    json_schema=JsonSchemaFormat(
                        name=SCHEMA_NAME, schema=resolved_schema
                    )
                ),
                messages=[
                    RequestMessage(role="system", content=SYSTEM_PROMPT),
                    RequestMessage(
                        role="user",
                        content=[
                            ContentItem.from_text(USER_PROMPT),
                            ContentItem.from_image(data_url, self.image_detail),
                        ],
                    ),
                ],
            )
        except ValidationError as exc:
            raise RequestBuildError(f"Invalid request parameters: {exc}") from exc


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[4:8] == b"ftyp" and image_bytes[8:12] in {b"heic", b"heix"}:
        return "image/heic"
    return "image/jpeg"
