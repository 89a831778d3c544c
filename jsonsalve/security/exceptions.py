"""
Exception hierarchy for jsonsalve.

Strategies never raise for malformed input; these exceptions describe the
terminal outcomes the orchestrator reports inside a ``Failure`` result, plus
configuration and regex engine problems.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence


@dataclass
class ErrorLocation:
    """Line/column information for a parse failure."""

    position: int
    line: int
    column: int
    excerpt: str = ""


class JsonSalveError(Exception):
    """Base exception for all jsonsalve errors."""

    def __init__(self, message: str, mutation_steps: Sequence[str] = ()):
        self.message = message
        self.mutation_steps: tuple[str, ...] = tuple(mutation_steps)
        super().__init__(message)


class ParseError(JsonSalveError):
    """Sanitized text still failed structural JSON parsing."""

    def __init__(
        self,
        message: str,
        mutation_steps: Sequence[str] = (),
        location: Optional[ErrorLocation] = None,
        cause: Optional[BaseException] = None,
    ):
        self.location = location
        self.cause = cause
        if location is not None:
            message = f"{message} at line {location.line}, column {location.column}"
            if location.excerpt.strip():
                message += f": {location.excerpt.strip()}"
        super().__init__(message, mutation_steps)
        if cause is not None:
            self.__cause__ = cause


class InputValidationError(ParseError):
    """Raw input was rejected before sanitization started."""


class SchemaValidationError(JsonSalveError):
    """Parsed data did not satisfy the target schema."""

    def __init__(
        self,
        message: str,
        issues: Sequence[Any] = (),
        mutation_steps: Sequence[str] = (),
    ):
        self.issues = list(issues)
        super().__init__(message, mutation_steps)


class ConfigurationError(JsonSalveError):
    """The supplied sanitizer configuration or schema handle is unusable."""


class RegexTimeoutError(JsonSalveError):
    """Raised when a regex operation exceeds its timeout."""

    def __init__(
        self,
        pattern: str,
        input_length: int,
        timeout: float,
        backend: str,
        operation: str = "search",
    ):
        self.pattern = pattern
        self.input_length = input_length
        self.timeout = timeout
        self.backend = backend
        self.operation = operation

        pattern_display = pattern[:100] + "..." if len(pattern) > 100 else pattern
        super().__init__(
            f"Regex {operation} timed out after {timeout}s "
            f"(pattern={pattern_display!r}, input length={input_length}, "
            f"backend={backend})"
        )


class RegexBackendError(JsonSalveError):
    """Raised when no suitable regex backend is available."""
