"""
Error context building and the default error logger.

``ErrorContextBuilder`` turns a parser position into a line/column location
with a text excerpt; ``LoggingErrorLogger`` is the error-logger collaborator
used when the caller does not supply one.
"""

import json
import logging
from collections.abc import Sequence
from typing import Optional

from ..security.exceptions import ErrorLocation, JsonSalveError, ParseError
from .interfaces import RequestContext

logger = logging.getLogger(__name__)

DEFAULT_EXCERPT_LENGTH = 50
RAW_TEXT_PREVIEW_LENGTH = 500


class ErrorContextBuilder:
    """Builds error locations from parser state."""

    @staticmethod
    def build_location(
        position: int, text: str, context_length: int = DEFAULT_EXCERPT_LENGTH
    ) -> ErrorLocation:
        """Build a location from a character offset into ``text``."""
        if not text:
            return ErrorLocation(position=position, line=1, column=position + 1)

        position = max(0, min(position, len(text)))
        line = text[:position].count("\n") + 1
        line_start = text.rfind("\n", 0, position) + 1
        column = position - line_start + 1

        start = max(0, position - context_length // 2)
        end = min(len(text), position + context_length // 2)
        return ErrorLocation(
            position=position, line=line, column=column, excerpt=text[start:end]
        )

    @classmethod
    def from_decode_error(
        cls, error: json.JSONDecodeError, context_length: int = DEFAULT_EXCERPT_LENGTH
    ) -> ErrorLocation:
        """Build a location from a ``json.JSONDecodeError``."""
        location = cls.build_location(error.pos, error.doc, context_length)
        # The decoder already computed line/column against the same document
        location.line = error.lineno
        location.column = error.colno
        return location

    @classmethod
    def create_parse_error(
        cls,
        error: json.JSONDecodeError,
        mutation_steps: Sequence[str] = (),
    ) -> ParseError:
        """Create a ParseError carrying the decoder error as its cause."""
        return ParseError(
            f"Sanitized text is not valid JSON: {error.msg}",
            mutation_steps=mutation_steps,
            location=cls.from_decode_error(error),
            cause=error,
        )


def _preview(text: str, limit: int = RAW_TEXT_PREVIEW_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... [{len(text) - limit} more characters]"


class LoggingErrorLogger:
    """Error logger that writes failures through the ``logging`` module."""

    def __init__(
        self,
        log: Optional[logging.Logger] = None,
        preview_length: int = RAW_TEXT_PREVIEW_LENGTH,
    ):
        self.log = log or logger
        self.preview_length = preview_length

    def log_failure(
        self,
        raw_text: str,
        mutation_steps: Sequence[str],
        error: JsonSalveError,
        context: Optional[RequestContext] = None,
    ) -> None:
        """Record a processing failure with the raw text and repair trail."""
        resource = context.resource_name if context and context.resource_name else "unknown"
        trail = "\n".join(f"  - {step}" for step in mutation_steps) or "  (none)"
        self.log.warning(
            "Failed to process response for %s: %s\nRepairs attempted:\n%s\nRaw text:\n%s",
            resource,
            error,
            trail,
            _preview(raw_text, self.preview_length),
            extra={"jsonsalve_context": context.extra if context else {}},
        )
