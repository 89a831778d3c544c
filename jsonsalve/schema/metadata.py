"""
Schema metadata extraction.

Derives the property lists a ``SanitizerConfig`` needs (known, numeric and
array-typed property names) from a target schema. Pydantic models are
introspected through their field annotations; ``TypeAdapter`` instances and
plain JSON-Schema dicts are walked as JSON Schema. Nesting is followed up to a
bounded depth.
"""

import logging
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel, TypeAdapter

from ..security.exceptions import ConfigurationError
from ..utils.config import SanitizerConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 4

_NUMERIC_TYPES = (int, float, Decimal)
_ARRAY_TYPES = (list, tuple, set, frozenset)
_UNION_TYPES = (Union, types.UnionType)
_COMBINATOR_KEYS = ("anyOf", "oneOf", "allOf")


@dataclass
class SchemaMetadata:
    """Property names collected from a schema, in first-seen order."""

    known_properties: list[str] = field(default_factory=list)
    numeric_properties: list[str] = field(default_factory=list)
    array_property_names: list[str] = field(default_factory=list)

    @staticmethod
    def _add(target: list[str], name: str) -> None:
        if name not in target:
            target.append(name)

    def add_property(self, name: str, *, numeric: bool = False, array: bool = False) -> None:
        self._add(self.known_properties, name)
        if numeric:
            self._add(self.numeric_properties, name)
        if array:
            self._add(self.array_property_names, name)

    def to_config(self, **options: Any) -> SanitizerConfig:
        """Build a sanitizer config from the collected names."""
        return SanitizerConfig.from_properties(
            self.known_properties,
            numeric_properties=self.numeric_properties,
            array_property_names=self.array_property_names,
            **options,
        )


def is_model_class(schema: Any) -> bool:
    return isinstance(schema, type) and issubclass(schema, BaseModel)


# ============================================================================
# Pydantic model introspection
# ============================================================================


def _unwrap_annotation(annotation: Any) -> list[Any]:
    """Strip Optional/Union/Annotated wrappers down to the member types."""
    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return _unwrap_annotation(typing.get_args(annotation)[0])
    if origin in _UNION_TYPES:
        members: list[Any] = []
        for arg in typing.get_args(annotation):
            if arg is not type(None):
                members.extend(_unwrap_annotation(arg))
        return members
    return [annotation]


def _is_numeric(annotation: Any) -> bool:
    return (
        isinstance(annotation, type)
        and issubclass(annotation, _NUMERIC_TYPES)
        and not issubclass(annotation, bool)
    )


def _is_array(annotation: Any) -> bool:
    origin = typing.get_origin(annotation) or annotation
    return isinstance(origin, type) and issubclass(origin, _ARRAY_TYPES)


def _nested_types(annotation: Any) -> list[Any]:
    """Types reachable through containers: list items and dict values."""
    origin = typing.get_origin(annotation)
    if origin is None:
        return [annotation]
    args = [arg for arg in typing.get_args(annotation) if arg is not Ellipsis]
    if isinstance(origin, type) and issubclass(origin, Mapping):
        args = args[1:]
    nested: list[Any] = []
    for arg in args:
        for member in _unwrap_annotation(arg):
            nested.extend(_nested_types(member))
    return nested


def _collect_from_model(
    model: type[BaseModel], metadata: SchemaMetadata, depth: int, max_depth: int
) -> None:
    if depth > max_depth:
        return
    for name, field_info in model.model_fields.items():
        members = _unwrap_annotation(field_info.annotation)
        metadata.add_property(
            field_info.alias or name,
            numeric=any(_is_numeric(member) for member in members),
            array=any(_is_array(member) for member in members),
        )
        for member in members:
            for nested in _nested_types(member):
                if is_model_class(nested):
                    _collect_from_model(nested, metadata, depth + 1, max_depth)


# ============================================================================
# JSON Schema walking
# ============================================================================


def _resolve_ref(node: Mapping[str, Any], root: Mapping[str, Any]) -> Mapping[str, Any]:
    ref = node.get("$ref")
    if not isinstance(ref, str) or not ref.startswith("#/"):
        return node
    target: Any = root
    for part in ref[2:].split("/"):
        if not isinstance(target, Mapping) or part not in target:
            return node
        target = target[part]
    return target if isinstance(target, Mapping) else node


def _schema_types(node: Mapping[str, Any], root: Mapping[str, Any]) -> set[str]:
    node = _resolve_ref(node, root)
    declared = node.get("type")
    found = set(declared) if isinstance(declared, list) else {declared} if declared else set()
    for key in _COMBINATOR_KEYS:
        for option in node.get(key) or ():
            if isinstance(option, Mapping):
                found |= _schema_types(option, root)
    return found


def _collect_from_json_schema(
    node: Mapping[str, Any],
    root: Mapping[str, Any],
    metadata: SchemaMetadata,
    depth: int,
    max_depth: int,
) -> None:
    if depth > max_depth:
        return
    node = _resolve_ref(node, root)

    properties = node.get("properties")
    if isinstance(properties, Mapping):
        for name, prop in properties.items():
            if not isinstance(prop, Mapping):
                metadata.add_property(name)
                continue
            prop_types = _schema_types(prop, root)
            metadata.add_property(
                name,
                numeric=bool(prop_types & {"number", "integer"}),
                array="array" in prop_types,
            )
            _collect_from_json_schema(prop, root, metadata, depth + 1, max_depth)

    items = node.get("items")
    if isinstance(items, Mapping):
        _collect_from_json_schema(items, root, metadata, depth + 1, max_depth)
    for key in _COMBINATOR_KEYS:
        for option in node.get(key) or ():
            if isinstance(option, Mapping):
                _collect_from_json_schema(option, root, metadata, depth, max_depth)


# ============================================================================
# Public API
# ============================================================================


def extract_schema_metadata(schema: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> SchemaMetadata:
    """
    Collect property metadata from a pydantic model class, a ``TypeAdapter``
    or a JSON-Schema dict.

    Raises:
        ConfigurationError: If the schema handle is of an unsupported kind.
    """
    metadata = SchemaMetadata()
    if is_model_class(schema):
        _collect_from_model(schema, metadata, 0, max_depth)
    elif isinstance(schema, TypeAdapter):
        json_schema = schema.json_schema()
        _collect_from_json_schema(json_schema, json_schema, metadata, 0, max_depth)
    elif isinstance(schema, Mapping):
        _collect_from_json_schema(schema, schema, metadata, 0, max_depth)
    else:
        raise ConfigurationError(
            f"Unsupported schema handle of type {type(schema).__name__}"
        )

    logger.debug(
        "Extracted %d known, %d numeric and %d array properties from schema",
        len(metadata.known_properties),
        len(metadata.numeric_properties),
        len(metadata.array_property_names),
    )
    return metadata


def extract_sanitizer_config(
    schema: Any, max_depth: int = DEFAULT_MAX_DEPTH, **options: Any
) -> SanitizerConfig:
    """Build a ``SanitizerConfig`` from the property metadata of ``schema``."""
    return extract_schema_metadata(schema, max_depth).to_config(**options)


def validate_schema_handle(schema: Optional[Any]) -> None:
    """
    Check that ``schema`` can drive repairs.

    Raises:
        ConfigurationError: If the handle is unsupported or declares no
            properties.
    """
    if schema is None:
        raise ConfigurationError("No schema handle supplied")
    if not extract_schema_metadata(schema).known_properties:
        raise ConfigurationError("Schema handle declares no properties")
