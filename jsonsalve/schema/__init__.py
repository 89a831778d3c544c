"""Schema collaborators: metadata extraction and default validators."""

from .metadata import (
    SchemaMetadata,
    extract_sanitizer_config,
    extract_schema_metadata,
    validate_schema_handle,
)
from .validation import JsonSchemaValidator, PydanticSchemaValidator

__all__ = [
    "JsonSchemaValidator",
    "PydanticSchemaValidator",
    "SchemaMetadata",
    "extract_sanitizer_config",
    "extract_schema_metadata",
    "validate_schema_handle",
]
