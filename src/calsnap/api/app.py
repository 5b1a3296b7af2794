"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from calsnap.api.models import EntryPayload, FoodEntryView, MacroTotalsView
from calsnap.app_logging import configure_logging
from calsnap.containers import AppContainer
from calsnap.domain.errors import (
    AnalysisError,
    AnalysisTimeoutError,
    EntryNotFoundError,
    InvalidResultError,
    RequestBuildError,
    StoreWriteError,
    TransportError,
)
from calsnap.domain.nutrition import NutritionRecord


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(EntryNotFoundError)
    async def entry_not_found(
        request: Request, exc: EntryNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    @app.exception_handler(StoreWriteError)
    async def store_write_failed(
        request: Request, exc: StoreWriteError
    ) -> JSONResponse:
        state_container: AppContainer = request.app.state.container
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": _format_error(state_container, exc, "Failed to save entry")
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/analysis")
    async def analyze(request: Request) -> NutritionRecord:
        """Analyze raw image bytes and return the nutrition record."""
        state_container: AppContainer = request.app.state.container
        image = await request.body()
        try:
            return await state_container.analysis_service.analyze(image)
        except RequestBuildError as exc:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
        except AnalysisError as exc:
            logger.warning("Analysis failed: %s", exc)
            raise HTTPException(
                _analysis_status(exc),
                _format_error(state_container, exc, "Food analysis failed"),
            ) from exc

    @app.post("/entries", status_code=status.HTTP_201_CREATED)
    async def create_entry(payload: EntryPayload, request: Request) -> FoodEntryView:
        """Persist an accepted analysis."""
        state_container: AppContainer = request.app.state.container
        entry = state_container.food_log_service.create(
            payload.record,
            image=_decode_image(payload.image_base64),
            date_added=payload.date_added,
        )
        return FoodEntryView.from_entry(entry)

    @app.get("/entries")
    async def list_entries(
        request: Request, day: date | None = None
    ) -> list[FoodEntryView]:
        """List entries for a day, or all entries when no day is given."""
        state_container: AppContainer = request.app.state.container
        service = state_container.food_log_service
        entries = service.list_all() if day is None else service.list_by_day(day)
        return [FoodEntryView.from_entry(entry) for entry in entries]

    @app.get("/entries/{entry_id}")
    async def get_entry(entry_id: UUID, request: Request) -> FoodEntryView:
        """Return a single entry."""
        state_container: AppContainer = request.app.state.container
        return FoodEntryView.from_entry(state_container.food_log_service.get(entry_id))

    @app.put("/entries/{entry_id}")
    async def update_entry(
        entry_id: UUID, payload: EntryPayload, request: Request
    ) -> FoodEntryView:
        """Overwrite an entry; omitted image and date keep their values."""
        state_container: AppContainer = request.app.state.container
        service = state_container.food_log_service
        service.update(
            entry_id,
            payload.record,
            image=_decode_image(payload.image_base64),
            date_added=payload.date_added,
        )
        return FoodEntryView.from_entry(service.get(entry_id))

    @app.delete("/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_entry(entry_id: UUID, request: Request) -> Response:
        """Delete an entry."""
        state_container: AppContainer = request.app.state.container
        state_container.food_log_service.delete(entry_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/days/{day}/totals")
    async def day_totals(day: date, request: Request) -> MacroTotalsView:
        """Return summed calories and macros for a day."""
        state_container: AppContainer = request.app.state.container
        totals = state_container.food_log_service.aggregate_macros(day)
        return MacroTotalsView.from_totals(totals)

    return app


def _analysis_status(exc: AnalysisError) -> int:
    if isinstance(exc, AnalysisTimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, TransportError):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(exc, InvalidResultError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _decode_image(value: str | None) -> bytes | None:
    if value is None:
        return None
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, "image_base64 is not valid base64"
        ) from exc


def _format_error(state_container: AppContainer, exc: Exception, fallback: str) -> str:
    """Return a user-facing error message with local debug info."""
    if state_container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback
