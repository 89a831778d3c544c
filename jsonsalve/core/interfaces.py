"""
Core interfaces and protocols for the sanitization system.

These define the contracts for repair strategies and for the external
collaborators the orchestrator hands work to: the schema validator and the
error logger.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from ..security.exceptions import JsonSalveError
from ..utils.config import SanitizerConfig
from .results import StrategyResult


class SanitizerStrategy(Protocol):
    """A pure text rewrite pass: ``(text, config) -> StrategyResult``."""

    name: str

    def should_apply(self, config: SanitizerConfig) -> bool:
        """Whether the strategy is enabled for this config."""
        ...

    def sanitize(self, text: str, config: SanitizerConfig) -> StrategyResult:
        """Repair ``text``; must never raise for malformed input."""
        ...


@dataclass
class ValidationVerdict:
    """Outcome of validating transformed data against a schema."""

    valid: bool
    data: Any = None
    issues: list[Any] = field(default_factory=list)


class SchemaValidator(Protocol):
    """Validates transformed data against a schema handle."""

    def validate(self, data: Any, schema: Any) -> ValidationVerdict:
        """Return a structural verdict; must not raise for invalid data."""
        ...


@dataclass
class RequestContext:
    """Describes the model request a response belongs to."""

    resource_name: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


class ErrorLogger(Protocol):
    """Sink that records failed responses for offline inspection."""

    def log_failure(
        self,
        raw_text: str,
        mutation_steps: Sequence[str],
        error: JsonSalveError,
        context: Optional[RequestContext] = None,
    ) -> None:
        """Record a processing failure."""
        ...
