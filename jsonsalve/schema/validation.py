"""
Default schema validator collaborators.

``PydanticSchemaValidator`` validates against pydantic model classes and
``TypeAdapter`` instances; ``JsonSchemaValidator`` checks JSON-Schema dicts with
``jsonschema``, using the draft the schema declares. Neither raises for invalid
data: problems are returned as issues in the verdict. An invalid schema raises
``ConfigurationError``.
"""

import logging
from collections.abc import Mapping
from typing import Any

from jsonschema.exceptions import SchemaError
from jsonschema.exceptions import ValidationError as JsonSchemaValidationError
from jsonschema.validators import validator_for
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..core.interfaces import ValidationVerdict
from ..security.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class PydanticSchemaValidator:
    """Validates data with pydantic, falling back to JSON Schema for dicts."""

    def __init__(self) -> None:
        self.json_schema_validator = JsonSchemaValidator()

    def validate(self, data: Any, schema: Any) -> ValidationVerdict:
        if isinstance(schema, type) and issubclass(schema, BaseModel):
            return self._run(lambda: schema.model_validate(data))
        if isinstance(schema, TypeAdapter):
            return self._run(lambda: schema.validate_python(data))
        if isinstance(schema, Mapping):
            return self.json_schema_validator.validate(data, schema)
        raise ConfigurationError(
            f"Cannot validate against schema handle of type {type(schema).__name__}"
        )

    @staticmethod
    def _run(validate: Any) -> ValidationVerdict:
        try:
            validated = validate()
        except ValidationError as exc:
            issues = [
                {
                    "path": ".".join(str(part) for part in error["loc"]),
                    "message": error["msg"],
                    "type": error["type"],
                }
                for error in exc.errors()
            ]
            logger.debug("Schema validation failed with %d issue(s)", len(issues))
            return ValidationVerdict(valid=False, issues=issues)
        return ValidationVerdict(valid=True, data=validated)


class JsonSchemaValidator:
    """Validates data against JSON-Schema dicts with ``jsonschema``."""

    def validate(self, data: Any, schema: Mapping[str, Any]) -> ValidationVerdict:
        validator = self._validator(schema)
        issues = [_issue(error) for error in validator.iter_errors(data)]
        if issues:
            logger.debug("JSON schema validation failed with %d issue(s)", len(issues))
            return ValidationVerdict(valid=False, issues=issues)
        return ValidationVerdict(valid=True, data=data)

    @staticmethod
    def _validator(schema: Mapping[str, Any]) -> Any:
        """Validator for the draft the schema declares, or the latest draft."""
        cls = validator_for(schema)
        try:
            cls.check_schema(schema)
        except SchemaError as exc:
            raise ConfigurationError(f"Invalid JSON schema: {exc.message}") from exc
        return cls(schema)


def _issue(error: JsonSchemaValidationError) -> dict[str, str]:
    parts = [str(part) for part in error.absolute_path]
    if error.validator == "required":
        # The message is the only place jsonschema names the missing property
        missing = next(
            (name for name in error.validator_value if error.message.startswith(repr(name))),
            None,
        )
        if missing is not None:
            parts.append(missing)
    return {"path": ".".join(parts), "message": error.message, "type": str(error.validator)}
