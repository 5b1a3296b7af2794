"""Request and response models for the HTTP API."""

import base64
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from calsnap.domain.food_entries import FoodEntry
from calsnap.domain.nutrition import MacroTotals, NutritionRecord


class EntryPayload(BaseModel):
    """Body for creating or updating a food entry."""

    record: NutritionRecord
    image_base64: str | None = None
    date_added: datetime | None = None


class FoodEntryView(BaseModel):
    """Food entry as returned to clients."""

    id: UUID
    record: NutritionRecord
    date_added: datetime
    image_base64: str | None = None

    @classmethod
    def from_entry(cls, entry: FoodEntry) -> "FoodEntryView":
        return cls(
            id=entry.id,
            record=entry.to_record(),
            date_added=entry.date_added,
            image_base64=(
                base64.b64encode(entry.image_data).decode("ascii")
                if entry.image_data is not None
                else None
            ),
        )


class MacroTotalsView(BaseModel):
    """Daily totals as returned to clients."""

    calories: int
    protein: int
    carbs: int
    fats: int

    @classmethod
    def from_totals(cls, totals: MacroTotals) -> "MacroTotalsView":
        return cls(
            calories=totals.calories,
            protein=totals.protein,
            carbs=totals.carbs,
            fats=totals.fats,
        )
