"""
Processing orchestrator.

Takes raw model output through the straight-line sequence
``Raw -> Sanitized -> Parsed -> Transformed -> Validated`` and returns a
``Success`` or a ``Failure``. Each stage has exactly one failure exit and
nothing is retried: a parse failure after the declared strategies have run is
terminal. Errors are returned inside ``Failure``, never raised.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any, Optional

from ..sanitizers.pipeline import PipelineResult, SanitizerPipeline
from ..schema.metadata import extract_sanitizer_config
from ..schema.validation import PydanticSchemaValidator
from ..security.exceptions import (
    ConfigurationError,
    InputValidationError,
    JsonSalveError,
    ParseError,
    SchemaValidationError,
)
from ..security.limits import InputValidator
from ..transforms.schema_transforms import apply_post_parse_transforms
from ..utils.config import ProcessingConfig, SanitizerConfig
from .error_handling import ErrorContextBuilder, LoggingErrorLogger
from .interfaces import ErrorLogger, RequestContext, SchemaValidator
from .parsing import is_parseable, parse_json
from .results import Failure, ProcessingResult, Success

logger = logging.getLogger(__name__)

# Cleanup that does not change the data a response carries
INSIGNIFICANT_REPAIR_MARKERS = ("code fence", "whitespace")


def has_significant_repairs(steps: Sequence[str]) -> bool:
    """Whether any step is more than whitespace or code-fence cleanup."""
    return any(
        not any(marker in step.lower() for marker in INSIGNIFICANT_REPAIR_MARKERS)
        for step in steps
    )


def _resource(context: Optional[RequestContext]) -> str:
    return context.resource_name if context and context.resource_name else "unknown"


class JsonProcessor:
    """Runs model output through sanitization, parsing, transforms and validation."""

    def __init__(
        self,
        config: Optional[ProcessingConfig] = None,
        pipeline: Optional[SanitizerPipeline] = None,
        validator: Optional[SchemaValidator] = None,
        error_logger: Optional[ErrorLogger] = None,
    ):
        self.config = config or ProcessingConfig()
        self.pipeline = pipeline or SanitizerPipeline.create_default_pipeline(
            stop_when_parseable=self.config.stop_when_parseable
        )
        self.validator = validator or PydanticSchemaValidator()
        self.error_logger = error_logger or LoggingErrorLogger()
        self.input_validator = InputValidator(self.config.max_input_size)

    def build_sanitizer_config(self, target_schema: Any = None) -> SanitizerConfig:
        """Merge schema-derived metadata with the explicitly configured sanitizer."""
        explicit = self.config.sanitizer
        if target_schema is None:
            return explicit
        try:
            derived = extract_sanitizer_config(target_schema)
        except ConfigurationError as exc:
            logger.warning("Schema metadata unavailable, using default matching: %s", exc)
            return explicit
        if not derived.has_known_properties:
            logger.warning(
                "Schema declares no properties, property names fall back to common names"
            )
        return derived.merged_with(explicit)

    def sanitize(self, raw_text: str, target_schema: Any = None) -> PipelineResult:
        """Run only the repair pipeline."""
        return self.pipeline.run(raw_text, self.build_sanitizer_config(target_schema))

    def process(
        self,
        raw_text: Any,
        target_schema: Any = None,
        *,
        context: Optional[RequestContext] = None,
    ) -> ProcessingResult:
        """Recover schema-conformant data from raw model output."""
        try:
            text = self.input_validator.validate(raw_text)
        except InputValidationError as exc:
            rejection = (f"Rejected input: {exc.message}",)
            exc.mutation_steps = rejection
            raw = raw_text if isinstance(raw_text, str) else repr(raw_text)
            return self._fail(raw, exc, rejection, "input validation", context)

        sanitizer_config = self.build_sanitizer_config(target_schema)

        # Fast path: untouched valid JSON skips sanitization
        if is_parseable(text, strict=True):
            content = text
            steps: list[str] = []
        else:
            sanitized = self.pipeline.run(text, sanitizer_config)
            content = sanitized.content
            steps = list(sanitized.diagnostics)
            logger.debug(
                "Sanitized response for %s with steps: %s",
                _resource(context),
                ", ".join(sanitized.applied_steps) or "none",
            )

        try:
            data = parse_json(content)
        except json.JSONDecodeError as exc:
            steps.append(f"Parse failed after sanitization: {exc.msg}")
            error = ErrorContextBuilder.create_parse_error(exc, steps)
            return self._fail(text, error, steps, "parse", context)
        except RecursionError as exc:
            steps.append("Parse failed after sanitization: nesting too deep")
            error = ParseError("Sanitized text is nested too deeply", steps, cause=exc)
            return self._fail(text, error, steps, "parse", context)

        if self.config.apply_transforms:
            data, transform_steps = apply_post_parse_transforms(data, sanitizer_config)
            steps.extend(transform_steps)

        if target_schema is None:
            if not isinstance(data, (dict, list)):
                steps.append("Parsed value is not an object or array")
                error = ParseError(
                    "Expected a JSON object or array but received a primitive value",
                    steps,
                )
                return self._fail(text, error, steps, "parse", context)
            return self._succeed(data, steps, context)

        try:
            verdict = self.validator.validate(data, target_schema)
        except ConfigurationError as exc:
            exc.mutation_steps = tuple(steps)
            return self._fail(text, exc, steps, "validation", context)
        if not verdict.valid:
            error = SchemaValidationError(
                f"Parsed data failed schema validation with {len(verdict.issues)} issue(s)",
                issues=verdict.issues,
                mutation_steps=steps,
            )
            return self._fail(text, error, steps, "validation", context)
        return self._succeed(verdict.data, steps, context)

    def _succeed(
        self, data: Any, steps: Sequence[str], context: Optional[RequestContext]
    ) -> Success[Any]:
        if self.config.log_repairs and has_significant_repairs(steps):
            logger.info(
                "Applied %d JSON repair(s) for %s: %s",
                len(steps),
                _resource(context),
                "; ".join(steps),
            )
        return Success(data=data, mutation_steps=tuple(steps))

    def _fail(
        self,
        raw_text: str,
        error: JsonSalveError,
        steps: Sequence[str],
        stage: str,
        context: Optional[RequestContext],
    ) -> Failure:
        logger.warning(
            "Processing failed at %s stage for %s after %d diagnostic(s): %s",
            stage,
            _resource(context),
            len(steps),
            error.message,
        )
        self.error_logger.log_failure(raw_text, steps, error, context)
        return Failure(error=error, mutation_steps=tuple(steps))


def process(
    raw_text: Any,
    config: Optional[ProcessingConfig] = None,
    target_schema: Any = None,
    *,
    context: Optional[RequestContext] = None,
) -> ProcessingResult:
    """
    Recover data from raw model output.

    Args:
        raw_text: Completion text as returned by the model
        config: Processing configuration; defaults to ``ProcessingConfig()``
        target_schema: Pydantic model class, ``TypeAdapter`` or JSON-Schema
            dict. Without one, the parsed value is returned unvalidated.
        context: Request description used in logs and failure reports

    Returns:
        ``Success`` with the data and every mutation step, or ``Failure``
        with the error and the steps attempted before it.
    """
    return JsonProcessor(config).process(raw_text, target_schema, context=context)


def sanitize(raw_text: str, config: Optional[SanitizerConfig] = None) -> PipelineResult:
    """Run the default repair pipeline without parsing or validation."""
    return SanitizerPipeline.create_default_pipeline().run(raw_text, config)
