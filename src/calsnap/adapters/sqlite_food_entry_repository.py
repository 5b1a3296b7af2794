"""SQLite repository for food entries."""

import json
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID

from calsnap.domain.food_entries import FoodEntry
from calsnap.domain.nutrition import Ingredient
from calsnap.services.food_log import FoodEntryRepository

# Fixed-width UTC text keeps lexical order equal to chronological order.
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"

_COLUMNS = (
    "id, title, protein_grams, carbs_grams, fats_grams, health_score, "
    "dish_count, total_calories, ingredients, date_added, image_data"
)


@dataclass
class SqliteFoodEntryRepository(FoodEntryRepository):
    """Embedded SQLite implementation for food entries."""

    connection: sqlite3.Connection

    @classmethod
    def create(cls, path: str | Path) -> "SqliteFoodEntryRepository":
        """Open (or create) the database file and ensure the schema exists."""
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(str(path), check_same_thread=False)
        connection.row_factory = sqlite3.Row
        repository = cls(connection=connection)
        repository.init_schema()
        return repository

    def init_schema(self) -> None:
        """Create the food entries table and its date index."""
        with self.connection:
            self.connection.execute(
                """
                CREATE TABLE IF NOT EXISTS food_entries (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    protein_grams INTEGER NOT NULL,
                    carbs_grams INTEGER NOT NULL,
                    fats_grams INTEGER NOT NULL,
                    health_score INTEGER NOT NULL,
                    dish_count INTEGER NOT NULL,
                    total_calories INTEGER NOT NULL,
                    ingredients TEXT NOT NULL,
                    date_added TEXT NOT NULL,
                    image_data BLOB
                )
                """
            )
            self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_food_entries_date_added "
                "ON food_entries (date_added)"
            )

    def insert_entry(self, entry: FoodEntry) -> None:
        """Insert an entry in a single transaction."""
        with self.connection:
            self.connection.execute(
                f"INSERT INTO food_entries ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                _to_row(entry),
            )

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return an entry by id."""
        row = self.connection.execute(
            f"SELECT {_COLUMNS} FROM food_entries WHERE id = ?",
            (str(entry_id),),
        ).fetchone()
        if row is None:
            return None
        return _parse_row(row)

    def replace_entry(self, entry: FoodEntry) -> bool:
        """Overwrite all mutable columns of an entry."""
        row = _to_row(entry)
        with self.connection:
            cursor = self.connection.execute(
                """
                UPDATE food_entries
                SET title = ?, protein_grams = ?, carbs_grams = ?, fats_grams = ?,
                    health_score = ?, dish_count = ?, total_calories = ?,
                    ingredients = ?, date_added = ?, image_data = ?
                WHERE id = ?
                """,
                (*row[1:], row[0]),
            )
        return cursor.rowcount > 0

    def delete_entry(self, entry_id: UUID) -> bool:
        """Delete an entry by id."""
        with self.connection:
            cursor = self.connection.execute(
                "DELETE FROM food_entries WHERE id = ?", (str(entry_id),)
            )
        return cursor.rowcount > 0

    def list_entries(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[FoodEntry]:
        """Return entries in the half-open range, newest first."""
        clauses: list[str] = []
        params: list[str] = []
        if start is not None:
            clauses.append("date_added >= ?")
            params.append(_format_timestamp(start))
        if end is not None:
            clauses.append("date_added < ?")
            params.append(_format_timestamp(end))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.connection.execute(
            f"SELECT {_COLUMNS} FROM food_entries{where} ORDER BY date_added DESC",
            params,
        ).fetchall()
        return [_parse_row(row) for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self.connection.close()


def _format_timestamp(value: datetime) -> str:
    return value.astimezone(UTC).strftime(_TIMESTAMP_FORMAT)


def _to_row(entry: FoodEntry) -> tuple[object, ...]:
    ingredients = json.dumps(
        [ingredient.model_dump() for ingredient in entry.ingredients],
        ensure_ascii=False,
    )
    return (
        str(entry.id),
        entry.title,
        entry.protein_grams,
        entry.carbs_grams,
        entry.fats_grams,
        entry.health_score,
        entry.dish_count,
        entry.total_calories,
        ingredients,
        _format_timestamp(entry.date_added),
        entry.image_data,
    )


def _parse_row(row: sqlite3.Row) -> FoodEntry:
    image_data = row["image_data"]
    return FoodEntry(
        id=UUID(row["id"]),
        title=row["title"],
        protein_grams=int(row["protein_grams"]),
        carbs_grams=int(row["carbs_grams"]),
        fats_grams=int(row["fats_grams"]),
        health_score=int(row["health_score"]),
        ingredients=[
            Ingredient.model_validate(item) for item in json.loads(row["ingredients"])
        ],
        dish_count=int(row["dish_count"]),
        total_calories=int(row["total_calories"]),
        date_added=datetime.strptime(row["date_added"], _TIMESTAMP_FORMAT),
        image_data=bytes(image_data) if image_data is not None else None,
    )
