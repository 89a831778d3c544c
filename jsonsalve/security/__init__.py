"""Exception hierarchy and input validation for jsonsalve."""

from .exceptions import (
    ConfigurationError,
    ErrorLocation,
    InputValidationError,
    JsonSalveError,
    ParseError,
    RegexBackendError,
    RegexTimeoutError,
    SchemaValidationError,
)
from .limits import InputValidator

__all__ = [
    "ConfigurationError",
    "ErrorLocation",
    "InputValidationError",
    "InputValidator",
    "JsonSalveError",
    "ParseError",
    "RegexBackendError",
    "RegexTimeoutError",
    "SchemaValidationError",
]
