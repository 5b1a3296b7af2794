"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from calsnap.adapters.httpx_chat_client import HttpxChatTransport
from calsnap.adapters.openai_chat_client import OpenAIChatTransport
from calsnap.adapters.sqlite_food_entry_repository import SqliteFoodEntryRepository
from calsnap.adapters.supabase_food_entry_repository import (
    SupabaseFoodEntryRepository,
)
from calsnap.config import Settings, resolve_timezone
from calsnap.services.analysis import AnalysisService
from calsnap.services.food_log import FoodEntryRepository, FoodLogService
from calsnap.services.requests import RequestBuilder


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    analysis_service: AnalysisService
    food_log_service: FoodLogService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    request_builder = RequestBuilder(
        model=resolved_settings.openai_model,
        temperature=resolved_settings.analysis_temperature,
        max_tokens=resolved_settings.analysis_max_tokens,
        image_detail=resolved_settings.analysis_image_detail,
    )
    transport = _build_transport(resolved_settings)
    analysis_service = AnalysisService(
        transport=transport,
        request_builder=request_builder,
        timeout_seconds=resolved_settings.analysis_timeout_seconds,
    )
    repository = _build_repository(resolved_settings)
    food_log_service = FoodLogService(
        repository=repository,
        timezone=resolve_timezone(resolved_settings.timezone),
    )

    async def close_resources() -> None:
        await transport.close()
        if isinstance(repository, SqliteFoodEntryRepository):
            repository.close()

    return AppContainer(
        settings=resolved_settings,
        analysis_service=analysis_service,
        food_log_service=food_log_service,
        close_resources=close_resources,
    )


def _build_transport(
    settings: Settings,
) -> OpenAIChatTransport | HttpxChatTransport:
    if settings.chat_transport == "openai":
        return OpenAIChatTransport.create(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.analysis_timeout_seconds,
        )
    if settings.chat_transport == "httpx":
        return HttpxChatTransport.create(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.analysis_timeout_seconds,
        )
    raise ValueError(f"Unknown chat transport: {settings.chat_transport}")


def _build_repository(settings: Settings) -> FoodEntryRepository:
    if settings.storage_backend == "sqlite":
        return SqliteFoodEntryRepository.create(settings.sqlite_path)
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase storage requires SUPABASE_URL and key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseFoodEntryRepository(client)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
