"""Nutrition record models produced by image analysis."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class Ingredient(BaseModel):
    """Single ingredient with its estimated calories."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(strict=True)
    calories: float = Field(strict=True, allow_inf_nan=False)


class NutritionRecord(BaseModel):
    """Validated nutrition data for one analyzed meal.

    Scalars are strict: a string, boolean or fractional value in an integer
    field is rejected rather than coerced.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(strict=True)
    protein_grams: int = Field(alias="proteinGrams", ge=0, strict=True)
    carbs_grams: int = Field(alias="carbsGrams", ge=0, strict=True)
    fats_grams: int = Field(alias="fatsGrams", ge=0, strict=True)
    health_score: int = Field(alias="healthScore", ge=0, le=100, strict=True)
    ingredients: list[Ingredient]
    dish_count: int = Field(alias="dishCount", ge=0, strict=True)
    total_calories: int = Field(alias="totalCalories", ge=0, strict=True)

    @property
    def has_food(self) -> bool:
        """Return False when the model detected no food in the image."""
        return bool(self.ingredients)


@dataclass(frozen=True)
class MacroTotals:
    """Summed calories and macros for a calendar day."""

    calories: int
    protein: int
    carbs: int
    fats: int
