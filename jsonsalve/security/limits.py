"""
Input validation and size limits for jsonsalve.

Raw model output is checked before any repair work starts so that obviously
unusable input fails fast with a descriptive error.
"""

from typing import Any

from .exceptions import InputValidationError


class InputValidator:
    """Validates raw model output before it enters the repair pipeline."""

    def __init__(self, max_input_size: int = 10 * 1024 * 1024):
        self.max_input_size = max_input_size

    def validate(self, content: Any) -> str:
        """Return the content if usable, otherwise raise InputValidationError."""
        if not isinstance(content, str):
            raise InputValidationError(
                f"Content must be a string, got {type(content).__name__}"
            )
        self.validate_input_size(content)
        if not content.strip():
            raise InputValidationError("Content is empty or whitespace only")
        if self.has_malformed_unicode(content):
            raise InputValidationError("Content contains malformed Unicode (lone surrogates)")
        if not self.has_json_like_structure(content):
            raise InputValidationError(
                "Content contains no JSON structure (no '{' or '[' found)"
            )
        return content

    def validate_input_size(self, text: str) -> None:
        """Validate that input text size is within limits."""
        if len(text) > self.max_input_size:
            raise InputValidationError(
                f"Input size {len(text)} exceeds limit {self.max_input_size}"
            )

    @staticmethod
    def has_malformed_unicode(text: str) -> bool:
        """Lone surrogates left by truncated streaming or bad decoding."""
        try:
            text.encode("utf-8")
        except UnicodeEncodeError:
            return True
        return False

    @staticmethod
    def has_json_like_structure(text: str) -> bool:
        """Check whether the text could contain a JSON object or array."""
        return "{" in text or "[" in text
