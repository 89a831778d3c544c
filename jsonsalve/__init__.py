"""
jsonsalve - Recovers valid, schema-conformant data from LLM "almost JSON".

Language models asked for JSON routinely return near-JSON: curly quotes,
missing or trailing commas, unquoted and truncated keys, stray commentary,
responses cut off mid-array, or the schema itself instead of the data.
jsonsalve runs such text through an ordered pipeline of repair strategies,
parses it, applies schema-aware transforms and validates the result, and
reports every repair it made.

Quick Start:
    import jsonsalve

    result = jsonsalve.process('{“name”: ‘Widget’,}')
    if result.success:
        print(result.data, result.mutation_steps)

    # With a pydantic model as the target schema
    result = jsonsalve.process(raw_text, target_schema=MyModel)

    # Repair text only
    repaired = jsonsalve.sanitize(raw_text).content
"""

from .core.interfaces import RequestContext
from .core.processor import JsonProcessor, has_significant_repairs, process, sanitize
from .core.property_matcher import match_property_name
from .core.results import (
    Failure,
    ProcessingResult,
    PropertyMatchResult,
    StrategyResult,
    Success,
)
from .core.rules import Rule
from .sanitizers.pipeline import PipelineResult, SanitizerPipeline
from .schema.metadata import extract_sanitizer_config
from .security.exceptions import (
    ConfigurationError,
    InputValidationError,
    JsonSalveError,
    ParseError,
    RegexBackendError,
    RegexTimeoutError,
    SchemaValidationError,
)
from .utils.config import ProcessingConfig, SanitizerConfig

__version__ = "0.1.0"
__author__ = "jsonsalve contributors"

__all__ = [
    # Processing
    "process",
    "sanitize",
    "JsonProcessor",
    "has_significant_repairs",
    "RequestContext",
    # Configuration
    "SanitizerConfig",
    "ProcessingConfig",
    "Rule",
    "extract_sanitizer_config",
    # Results
    "Success",
    "Failure",
    "ProcessingResult",
    "StrategyResult",
    "PropertyMatchResult",
    "PipelineResult",
    "SanitizerPipeline",
    "match_property_name",
    # Exceptions
    "JsonSalveError",
    "ParseError",
    "InputValidationError",
    "SchemaValidationError",
    "ConfigurationError",
    "RegexTimeoutError",
    "RegexBackendError",
    "__version__",
]
