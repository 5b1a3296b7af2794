"""Shared test fixtures."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

import pytest

from calsnap.config import Settings
from calsnap.containers import AppContainer
from calsnap.domain.chat import ChatRequest
from calsnap.domain.food_entries import FoodEntry
from calsnap.domain.nutrition import NutritionRecord
from calsnap.services.analysis import AnalysisService, ChatTransport
from calsnap.services.food_log import FoodEntryRepository, FoodLogService

RECORD_PAYLOAD: dict[str, object] = {
    "title": "Seared Tuna Bowl",
    "proteinGrams": 35,
    "carbsGrams": 50,
    "fatsGrams": 20,
    "healthScore": 80,
    "ingredients": [
        {"name": "Seared Tuna", "calories": 200},
        {"name": "Brown Rice", "calories": 150},
        {"name": "Avocado", "calories": 160},
    ],
    "dishCount": 1,
    "totalCalories": 780,
}


def make_record(**overrides: object) -> NutritionRecord:
    """Return a valid record, overriding wire fields by name."""
    payload = {**RECORD_PAYLOAD, **overrides}
    return NutritionRecord.model_validate(payload)


@dataclass
class FakeChatTransport(ChatTransport):
    """Fake chat transport returning fixed content."""

    content: str = field(default_factory=lambda: json.dumps(RECORD_PAYLOAD))
    error: BaseException | None = None
    delay_seconds: float = 0.0
    requests: list[ChatRequest] = field(default_factory=list)

    async def complete(self, request: ChatRequest) -> str:
        self.requests.append(request)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.content


@dataclass
class InMemoryFoodEntryRepository(FoodEntryRepository):
    """In-memory food entry repository for tests."""

    entries: dict[UUID, FoodEntry] = field(default_factory=dict)
    fail_writes: bool = False

    def insert_entry(self, entry: FoodEntry) -> None:
        if self.fail_writes:
            raise RuntimeError("disk full")
        self.entries[entry.id] = entry

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        return self.entries.get(entry_id)

    def replace_entry(self, entry: FoodEntry) -> bool:
        if self.fail_writes:
            raise RuntimeError("disk full")
        if entry.id not in self.entries:
            return False
        self.entries[entry.id] = entry
        return True

    def delete_entry(self, entry_id: UUID) -> bool:
        if self.fail_writes:
            raise RuntimeError("disk full")
        return self.entries.pop(entry_id, None) is not None

    def list_entries(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[FoodEntry]:
        results = [
            entry
            for entry in self.entries.values()
            if (start is None or entry.date_added >= start)
            and (end is None or entry.date_added < end)
        ]
        return sorted(results, key=lambda entry: entry.date_added, reverse=True)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key="openai-key",
        sqlite_path=str(tmp_path / "calsnap.sqlite"),
        timezone="UTC",
        environment="test",
    )


@pytest.fixture
def chat_transport() -> FakeChatTransport:
    return FakeChatTransport()


@pytest.fixture
def food_entry_repository() -> InMemoryFoodEntryRepository:
    return InMemoryFoodEntryRepository()


@pytest.fixture
def food_log_service(
    food_entry_repository: InMemoryFoodEntryRepository,
) -> FoodLogService:
    return FoodLogService(repository=food_entry_repository, timezone=UTC)


@pytest.fixture
def container(
    settings: Settings,
    chat_transport: FakeChatTransport,
    food_log_service: FoodLogService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        analysis_service=AnalysisService(transport=chat_transport),
        food_log_service=food_log_service,
        close_resources=close_resources,
    )
