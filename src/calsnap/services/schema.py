"""Nutrition schema sent to the model to constrain its output."""

from dataclasses import dataclass

SCHEMA_NAME = "FoodNutritionAnalysis"
SCHEMA_DIALECT = "http://json-schema.org/draft-07/schema#"
SCHEMA_DESCRIPTION = "Detailed macro and calorie breakdown for a food dish"


@dataclass(frozen=True)
class FieldSpec:
    """Declared kind and bounds of one schema field."""

    name: str
    kind: str
    minimum: int | None = None
    maximum: int | None = None
    items: tuple["FieldSpec", ...] | None = None


INGREDIENT_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("name", "string"),
    FieldSpec("calories", "number"),
)

NUTRITION_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("title", "string"),
    FieldSpec("proteinGrams", "integer", minimum=0),
    FieldSpec("carbsGrams", "integer", minimum=0),
    FieldSpec("fatsGrams", "integer", minimum=0),
    FieldSpec("healthScore", "integer", minimum=0, maximum=100),
    FieldSpec("ingredients", "array", items=INGREDIENT_FIELDS),
    FieldSpec("dishCount", "integer", minimum=0),
    FieldSpec("totalCalories", "integer", minimum=0),
)

NUTRITION_FIELD_NAMES: frozenset[str] = frozenset(
    spec.name for spec in NUTRITION_FIELDS
)


def render_nutrition_schema() -> dict[str, object]:
    """Render the nutrition field table as a JSON-schema object."""
    schema = _render_object(NUTRITION_FIELDS)
    return {
        "$schema": SCHEMA_DIALECT,
        "description": SCHEMA_DESCRIPTION,
        **schema,
    }


def _render_object(fields: tuple[FieldSpec, ...]) -> dict[str, object]:
    return {
        "type": "object",
        "required": [spec.name for spec in fields],
        "properties": {spec.name: _render_field(spec) for spec in fields},
    }


def _render_field(spec: FieldSpec) -> dict[str, object]:
    if spec.kind == "array":
        if spec.items is None:
            raise ValueError(f"Array field {spec.name} has no item fields")
        return {"type": "array", "items": _render_object(spec.items)}
    rendered: dict[str, object] = {"type": spec.kind}
    if spec.minimum is not None:
        rendered["minimum"] = spec.minimum
    if spec.maximum is not None:
        rendered["maximum"] = spec.maximum
    return rendered
