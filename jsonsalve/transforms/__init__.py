"""Post-parse transforms applied between parsing and schema validation."""

from .schema_transforms import (
    JSON_SCHEMA_META_PROPERTIES,
    JSON_SCHEMA_TYPE_VALUES,
    apply_post_parse_transforms,
    coerce_numeric_properties,
    extract_numeric_value,
    trim_incomplete_trailing_items,
    unwrap_json_schema_structure,
)

__all__ = [
    "JSON_SCHEMA_META_PROPERTIES",
    "JSON_SCHEMA_TYPE_VALUES",
    "apply_post_parse_transforms",
    "coerce_numeric_properties",
    "extract_numeric_value",
    "trim_incomplete_trailing_items",
    "unwrap_json_schema_structure",
]
