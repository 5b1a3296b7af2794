"""Food image analysis: request, transport and extraction."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from calsnap.domain.chat import ChatRequest
from calsnap.domain.errors import (
    AnalysisTimeoutError,
    ExtractionError,
    InvalidResultError,
    TransportError,
)
from calsnap.domain.nutrition import NutritionRecord
from calsnap.services.extraction import extract_nutrition_record
from calsnap.services.requests import RequestBuilder

_logger = logging.getLogger(__name__)


class ChatTransport(Protocol):
    """Interface for sending a chat request to a model endpoint."""

    async def complete(self, request: ChatRequest) -> str:
        """Return the raw text of the top choice.

        Implementations raise ``TimeoutError`` when the endpoint times out and
        any other exception for connection, status or envelope failures.
        """


class AnalysisState(str, Enum):
    """Lifecycle of a single analysis attempt."""

    IDLE = "idle"
    REQUESTING = "requesting"
    EXTRACTING = "extracting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class AnalysisService:
    """Runs one analysis attempt end to end.

    One in-flight call per instance is assumed. Nothing is retried here; a
    failed attempt is surfaced once and the caller may call ``analyze`` again.
    """

    transport: ChatTransport
    request_builder: RequestBuilder = field(default_factory=RequestBuilder)
    timeout_seconds: float = 30.0
    state: AnalysisState = field(default=AnalysisState.IDLE, init=False)

    async def analyze(self, image_bytes: bytes) -> NutritionRecord:
        """Analyze a food image and return its validated nutrition record."""
        self.state = AnalysisState.IDLE
        request = self.request_builder.build(image_bytes)
        self.state = AnalysisState.REQUESTING
        _logger.info(
            "Starting food analysis: model=%s image_bytes=%s",
            request.model,
            len(image_bytes),
        )
        try:
            raw_text = await asyncio.wait_for(
                self.transport.complete(request), timeout=self.timeout_seconds
            )
        except asyncio.CancelledError:
            self.state = AnalysisState.IDLE
            raise
        except TimeoutError as exc:
            self.state = AnalysisState.FAILED
            _logger.warning("Food analysis timed out after %ss", self.timeout_seconds)
            raise AnalysisTimeoutError(
                f"Analysis timed out after {self.timeout_seconds} seconds", exc
            ) from exc
        except Exception as exc:
            self.state = AnalysisState.FAILED
            _logger.warning("Food analysis transport failed: %s", exc)
            raise TransportError(f"Model request failed: {exc}", exc) from exc

        self.state = AnalysisState.EXTRACTING
        try:
            record = extract_nutrition_record(raw_text)
        except ExtractionError as exc:
            self.state = AnalysisState.FAILED
            raise InvalidResultError(
                f"Model returned an invalid result: {exc}", exc
            ) from exc

        self.state = AnalysisState.SUCCEEDED
        _logger.info(
            "Food analysis succeeded: title=%s calories=%s ingredients=%s",
            record.title,
            record.total_calories,
            len(record.ingredients),
        )
        return record

    def reset(self) -> None:
        """Return to the idle state before a new attempt."""
        self.state = AnalysisState.IDLE
