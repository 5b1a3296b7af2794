"""Food log service: persisted entries and daily macro totals."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from typing import Protocol
from uuid import UUID, uuid4

from calsnap.domain.errors import EntryNotFoundError, StoreWriteError
from calsnap.domain.food_entries import FoodEntry
from calsnap.domain.nutrition import MacroTotals, NutritionRecord

_logger = logging.getLogger(__name__)


class FoodEntryRepository(Protocol):
    """Persistence interface for food entries."""

    def insert_entry(self, entry: FoodEntry) -> None:
        """Persist a new entry atomically."""

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return an entry by id, if present."""

    def replace_entry(self, entry: FoodEntry) -> bool:
        """Overwrite an existing entry; return False if it does not exist."""

    def delete_entry(self, entry_id: UUID) -> bool:
        """Delete an entry; return False if it does not exist."""

    def list_entries(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[FoodEntry]:
        """Return entries with start <= date_added < end, newest first."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class FoodLogService:
    """Stores food entries and aggregates them per local calendar day."""

    repository: FoodEntryRepository
    timezone: tzinfo = UTC
    clock: Callable[[], datetime] = field(default=_utc_now)

    def create(
        self,
        record: NutritionRecord,
        image: bytes | None = None,
        date_added: datetime | None = None,
    ) -> FoodEntry:
        """Persist a new entry for an accepted analysis and return it."""
        entry = FoodEntry.from_record(
            entry_id=uuid4(),
            record=record,
            date_added=self._normalize(date_added or self.clock()),
            image_data=image,
        )
        try:
            self.repository.insert_entry(entry)
        except Exception as exc:
            _logger.exception("Failed to create food entry %s", entry.id)
            raise StoreWriteError(f"Failed to save food entry: {exc}") from exc
        _logger.info(
            "Created food entry %s (%s kcal)", entry.id, entry.total_calories
        )
        return entry

    def get(self, entry_id: UUID) -> FoodEntry:
        """Return an entry by id."""
        entry = self.repository.get_entry(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    def update(
        self,
        entry_id: UUID,
        record: NutritionRecord,
        image: bytes | None = None,
        date_added: datetime | None = None,
    ) -> None:
        """Overwrite an entry's nutrition fields.

        The image and timestamp keep their previous values when omitted.
        """
        current = self.get(entry_id)
        updated = FoodEntry.from_record(
            entry_id=current.id,
            record=record,
            date_added=(
                self._normalize(date_added) if date_added else current.date_added
            ),
            image_data=image if image is not None else current.image_data,
        )
        try:
            replaced = self.repository.replace_entry(updated)
        except Exception as exc:
            _logger.exception("Failed to update food entry %s", entry_id)
            raise StoreWriteError(f"Failed to update food entry: {exc}") from exc
        if not replaced:
            raise EntryNotFoundError(entry_id)
        _logger.info("Updated food entry %s", entry_id)

    def delete(self, entry_id: UUID) -> None:
        """Delete an entry; unknown ids are reported, not ignored."""
        try:
            deleted = self.repository.delete_entry(entry_id)
        except Exception as exc:
            _logger.exception("Failed to delete food entry %s", entry_id)
            raise StoreWriteError(f"Failed to delete food entry: {exc}") from exc
        if not deleted:
            raise EntryNotFoundError(entry_id)
        _logger.info("Deleted food entry %s", entry_id)

    def list_all(self) -> list[FoodEntry]:
        """Return every entry, most recent first."""
        return self.repository.list_entries()

    def list_by_day(self, day: date | datetime) -> list[FoodEntry]:
        """Return entries added on the given local calendar day, newest first."""
        start, end = self.day_bounds(day)
        return self.repository.list_entries(
            start.astimezone(UTC), end.astimezone(UTC)
        )

    def aggregate_macros(self, day: date | datetime) -> MacroTotals:
        """Return summed calories and macros for a local calendar day."""
        totals = MacroTotals(calories=0, protein=0, carbs=0, fats=0)
        for entry in self.list_by_day(day):
            totals = MacroTotals(
                calories=totals.calories + entry.total_calories,
                protein=totals.protein + entry.protein_grams,
                carbs=totals.carbs + entry.carbs_grams,
                fats=totals.fats + entry.fats_grams,
            )
        return totals

    def day_bounds(self, day: date | datetime) -> tuple[datetime, datetime]:
        """Return local midnight-to-midnight bounds for a day."""
        if isinstance(day, datetime):
            day = self._normalize(day).astimezone(self.timezone).date()
        start = datetime.combine(day, time.min, tzinfo=self.timezone)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.timezone)
        return start, end

    def _normalize(self, value: datetime) -> datetime:
        """Read naive timestamps as local time and return them in UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.timezone)
        return value.astimezone(UTC)
