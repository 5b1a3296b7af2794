"""Extracts a validated nutrition record from raw model output.

Model answers are not guaranteed to be bare JSON. They may arrive wrapped in a
markdown code fence, they may echo the schema envelope with the record nested
under ``properties``, or they may be unusable. Extraction is ordered:

1. take the text between the first opening and closing fence, else the whole text;
2. parse it as generic JSON (``MalformedJSONError`` on failure);
3. unwrap an echoed schema envelope;
4. re-serialize and decode strictly into ``NutritionRecord``
   (``SchemaMismatchError`` on failure).

No field is defaulted or coerced. An empty ingredient list is a valid record.
"""

import json
import logging
import math
import re

from pydantic import ValidationError

from calsnap.domain.errors import MalformedJSONError, SchemaMismatchError
from calsnap.domain.nutrition import NutritionRecord

_logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(
    r"```[A-Za-z0-9_-]*[ \t]*\r?\n(?P<body>.*?)\r?\n?[ \t]*```",
    re.DOTALL,
)


def extract_nutrition_record(raw_text: str) -> NutritionRecord:
    """Return the nutrition record contained in a model answer."""
    candidate = extract_json_candidate(raw_text)
    try:
        value = json.loads(
            candidate, parse_constant=_reject_constant, parse_float=_parse_finite
        )
    except ValueError as exc:
        _logger.info("Model output is not JSON: %s", exc)
        raise MalformedJSONError(f"Model output is not valid JSON: {exc}") from exc

    value = _unwrap_schema_echo(value)
    canonical = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    try:
        return NutritionRecord.model_validate_json(canonical)
    except ValidationError as exc:
        field, path, detail = _describe_first_error(exc)
        _logger.info("Model output does not match schema at %s: %s", path, detail)
        raise SchemaMismatchError(field=field, path=path, detail=detail) from exc


def extract_json_candidate(raw_text: str) -> str:
    """Return the fenced JSON body if present, otherwise the stripped text."""
    match = _FENCE_PATTERN.search(raw_text)
    if match is None:
        return raw_text.strip()
    return match.group("body").strip()


def _reject_constant(token: str) -> object:
    raise ValueError(f"{token} is not a JSON value")


def _parse_finite(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"{token} overflows a float")
    return value


def _unwrap_schema_echo(value: object) -> object:
    """Return the record nested in an echoed schema envelope, if any."""
    if not isinstance(value, dict) or "title" in value:
        return value
    nested = value.get("properties")
    if isinstance(nested, dict) and "title" in nested:
        return nested
    return value


def _describe_first_error(exc: ValidationError) -> tuple[str | None, str, str]:
    error = exc.errors()[0]
    location = tuple(error.get("loc", ()))
    field = next(
        (part for part in reversed(location) if isinstance(part, str)), None
    )
    path = ".".join(str(part) for part in location)
    return field, path, str(error.get("msg", "invalid value"))
