"""Domain model for persisted food entries."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from calsnap.domain.nutrition import Ingredient, NutritionRecord


@dataclass(frozen=True)
class FoodEntry:
    """A nutrition record with identity, timestamp and image, as stored."""

    id: UUID
    title: str
    protein_grams: int
    carbs_grams: int
    fats_grams: int
    health_score: int
    ingredients: list[Ingredient]
    dish_count: int
    total_calories: int
    date_added: datetime
    image_data: bytes | None = None

    @classmethod
    def from_record(
        cls,
        entry_id: UUID,
        record: NutritionRecord,
        date_added: datetime,
        image_data: bytes | None,
    ) -> "FoodEntry":
        """Build an entry from a validated nutrition record."""
        return cls(
            id=entry_id,
            title=record.title,
            protein_grams=record.protein_grams,
            carbs_grams=record.carbs_grams,
            fats_grams=record.fats_grams,
            health_score=record.health_score,
            ingredients=list(record.ingredients),
            dish_count=record.dish_count,
            total_calories=record.total_calories,
            date_added=date_added,
            image_data=image_data,
        )

    def to_record(self) -> NutritionRecord:
        """Return the nutrition fields of this entry."""
        return NutritionRecord(
            title=self.title,
            protein_grams=self.protein_grams,
            carbs_grams=self.carbs_grams,
            fats_grams=self.fats_grams,
            health_score=self.health_score,
            ingredients=list(self.ingredients),
            dish_count=self.dish_count,
            total_calories=self.total_calories,
        )
