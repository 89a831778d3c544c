"""
Schema-aware transforms applied to already-parsed values.

These run after structural parsing and before schema validation. Each
transform returns a new value and never mutates its input; the orchestrator
records a diagnostic for every transform that changed something.
"""

import logging
import math
import re
from typing import Any, Optional, Union

from ..utils.config import SanitizerConfig

logger = logging.getLogger(__name__)

# Type values that mark a field definition rather than data
JSON_SCHEMA_TYPE_VALUES = frozenset(
    {"string", "number", "integer", "boolean", "object", "array", "null"}
)

# Keywords that appear in JSON Schema but not in normal data
JSON_SCHEMA_META_PROPERTIES = frozenset(
    {
        "$schema",
        "additionalProperties",
        "required",
        "enum",
        "allOf",
        "anyOf",
        "oneOf",
        "items",
        "minLength",
        "maxLength",
        "minimum",
        "maximum",
        "pattern",
        "format",
        "default",
    }
)

_STRICT_NUMBER = re.compile(r"^-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?$")
_LEADING_NUMBER = re.compile(r"^[~≈]?\s*(-?\d+(?:\.\d+)?)")
_EMBEDDED_NUMBER = re.compile(r"(?<![\w.])(-?\d+(?:\.\d+)?)(?![\w.])")

Number = Union[int, float]


def _is_schema_object(value: Any) -> bool:
    """``{"type": "object", "properties": {...}}`` with non-empty properties."""
    return (
        isinstance(value, dict)
        and value.get("type") == "object"
        and isinstance(value.get("properties"), dict)
        and bool(value["properties"])
    )


def _is_field_definition(value: dict[str, Any]) -> bool:
    """``{"type": "string", "description": "actual value"}`` and similar."""
    field_type = value.get("type")
    if not isinstance(field_type, str) or field_type not in JSON_SCHEMA_TYPE_VALUES:
        return False
    if "description" not in value or "properties" in value:
        return False
    if any(key in JSON_SCHEMA_META_PROPERTIES for key in value):
        return True
    return len(value) <= 3


def _has_extractable_properties(value: dict[str, Any]) -> bool:
    """Nested object schema whose properties hold data or field definitions."""
    if not _is_schema_object(value):
        return False
    if not any(key in JSON_SCHEMA_META_PROPERTIES for key in value):
        return False
    for prop in value["properties"].values():
        if not isinstance(prop, dict):
            return True
        prop_type = prop.get("type")
        if not isinstance(prop_type, str) or prop_type not in JSON_SCHEMA_TYPE_VALUES:
            return True
        if "description" in prop or "properties" in prop:
            return True
    return False


def _extract_field_values(value: Any, unwrap_fields: bool) -> Any:
    if isinstance(value, list):
        return [_extract_field_values(item, unwrap_fields) for item in value]
    if not isinstance(value, dict):
        return value
    if unwrap_fields and _is_field_definition(value):
        return _extract_field_values(value["description"], unwrap_fields)
    if _has_extractable_properties(value):
        return _extract_field_values(value["properties"], unwrap_fields)
    return {key: _extract_field_values(item, unwrap_fields) for key, item in value.items()}


def unwrap_json_schema_structure(
    value: Any, config: Optional[SanitizerConfig] = None
) -> Any:
    """
    Replace an echoed schema definition with the data it describes.

    ``{"type": "object", "properties": {"purpose": {"type": "string",
    "description": "Parses input"}}}`` becomes ``{"purpose": "Parses input"}``.
    Field definitions are not unwrapped when ``type`` and ``description`` are
    themselves known properties of the target schema.
    """
    result = value
    if _is_schema_object(result):
        result = result["properties"]

    unwrap_fields = True
    if config is not None and config.has_known_properties:
        known = {prop.lower() for prop in config.known_properties}
        unwrap_fields = not {"type", "description"} <= known
    return _extract_field_values(result, unwrap_fields)


def _as_number(text: str) -> Optional[Number]:
    try:
        number: Number = float(text) if any(ch in text for ch in ".eE") else int(text)
    except ValueError:
        # Integer strings beyond the interpreter's digit limit
        return None
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return number


def extract_numeric_value(value: str) -> Optional[Number]:
    """
    Extract a number from a string such as ``"19"``, ``"~150 items"`` or
    ``"approximately 50"``. Returns None when the string holds no number.
    """
    trimmed = value.strip()
    if _STRICT_NUMBER.match(trimmed):
        return _as_number(trimmed)

    leading = _LEADING_NUMBER.match(trimmed)
    if leading:
        return _as_number(leading.group(1))

    embedded = _EMBEDDED_NUMBER.search(trimmed)
    if embedded:
        return _as_number(embedded.group(1))
    return None


def coerce_numeric_properties(value: Any, config: SanitizerConfig) -> Any:
    """Convert string values of numeric properties to numbers at any depth."""
    if isinstance(value, list):
        return [coerce_numeric_properties(item, config) for item in value]
    if not isinstance(value, dict):
        return value

    result: dict[str, Any] = {}
    for key, item in value.items():
        if isinstance(item, str) and item.strip() and config.is_numeric_property(key):
            number = extract_numeric_value(item)
            if number is not None:
                result[key] = number
                continue
        result[key] = coerce_numeric_properties(item, config)
    return result


def _is_incomplete_trailing_item(items: list[Any]) -> bool:
    if len(items) < 2 or not all(isinstance(item, dict) for item in items):
        return False
    *complete, last = items
    average = sum(len(item) for item in complete) / len(complete)
    return len(last) < average / 2 and average - len(last) >= 2


def trim_incomplete_trailing_items(value: Any) -> Any:
    """
    Drop the last element of an array of objects when it is clearly truncated.

    The last item is dropped when its property count is below half the
    average of the other items and at least two properties short of it.
    """
    if isinstance(value, dict):
        return {key: trim_incomplete_trailing_items(item) for key, item in value.items()}
    if not isinstance(value, list):
        return value

    items = [trim_incomplete_trailing_items(item) for item in value]
    if _is_incomplete_trailing_item(items):
        return items[:-1]
    return items


def apply_post_parse_transforms(
    value: Any, config: Optional[SanitizerConfig] = None
) -> tuple[Any, list[str]]:
    """Run every post-parse transform in order, describing each change."""
    if config is None:
        config = SanitizerConfig()

    diagnostics: list[str] = []
    result = value

    unwrapped = unwrap_json_schema_structure(result, config)
    if unwrapped != result:
        diagnostics.append("Unwrapped JSON Schema definition into data")
        result = unwrapped

    if config.numeric_properties:
        coerced = coerce_numeric_properties(result, config)
        if coerced != result:
            diagnostics.append("Coerced string values of numeric properties to numbers")
            result = coerced

    trimmed = trim_incomplete_trailing_items(result)
    if trimmed != result:
        diagnostics.append("Removed incomplete trailing array item")
        result = trimmed

    if diagnostics:
        logger.debug("Post-parse transforms applied: %s", "; ".join(diagnostics))
    return result, diagnostics
