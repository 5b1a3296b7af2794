"""Supabase repository for food entries."""

import base64
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from calsnap.domain.food_entries import FoodEntry
from calsnap.domain.nutrition import Ingredient
from calsnap.services.food_log import FoodEntryRepository

_TABLE = "food_entries"
_COLUMNS = (
    "id, title, protein_grams, carbs_grams, fats_grams, health_score, "
    "dish_count, total_calories, ingredients, date_added, image_base64"
)


@dataclass
class SupabaseFoodEntryRepository(FoodEntryRepository):
    """Supabase implementation for food entries."""

    client: Client

    def insert_entry(self, entry: FoodEntry) -> None:
        """Insert an entry row."""
        response = self.client.table(_TABLE).insert(_to_payload(entry)).execute()
        if not response.data:
            raise RuntimeError("Failed to create food entry")

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return an entry by id."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(entry_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def replace_entry(self, entry: FoodEntry) -> bool:
        """Overwrite an entry row; return False if no row matched."""
        payload = _to_payload(entry)
        payload.pop("id")
        response = (
            self.client.table(_TABLE).update(payload).eq("id", str(entry.id)).execute()
        )
        return bool(response.data)

    def delete_entry(self, entry_id: UUID) -> bool:
        """Delete an entry row; return False if no row matched."""
        response = self.client.table(_TABLE).delete().eq("id", str(entry_id)).execute()
        return bool(response.data)

    def list_entries(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[FoodEntry]:
        """Return entries in the time range, newest first."""
        query = self.client.table(_TABLE).select(_COLUMNS)
        if start is not None:
            query = query.gte("date_added", start.astimezone(UTC).isoformat())
        if end is not None:
            query = query.lt("date_added", end.astimezone(UTC).isoformat())
        response = query.order("date_added", desc=True).execute()
        return [_parse_row(row) for row in response.data or []]


def _to_payload(entry: FoodEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "title": entry.title,
        "protein_grams": entry.protein_grams,
        "carbs_grams": entry.carbs_grams,
        "fats_grams": entry.fats_grams,
        "health_score": entry.health_score,
        "dish_count": entry.dish_count,
        "total_calories": entry.total_calories,
        "ingredients": [ingredient.model_dump() for ingredient in entry.ingredients],
        "date_added": entry.date_added.astimezone(UTC).isoformat(),
        "image_base64": (
            base64.b64encode(entry.image_data).decode("ascii")
            if entry.image_data is not None
            else None
        ),
    }


def _parse_row(row: dict[str, object]) -> FoodEntry:
    image_raw = row.get("image_base64")
    return FoodEntry(
        id=UUID(str(row["id"])),
        title=str(row["title"]),
        protein_grams=int(row["protein_grams"]),
        carbs_grams=int(row["carbs_grams"]),
        fats_grams=int(row["fats_grams"]),
        health_score=int(row["health_score"]),
        ingredients=[
            Ingredient.model_validate(item) for item in row.get("ingredients") or []
        ],
        dish_count=int(row["dish_count"]),
        total_calories=int(row["total_calories"]),
        date_added=datetime.fromisoformat(str(row["date_added"])),
        image_data=base64.b64decode(image_raw) if isinstance(image_raw, str) else None,
    )
