"""
Structural parse helpers.

Repaired text is parsed with ``strict=False`` so raw tabs and newlines left
inside string values are accepted; the fast path uses the strict parser so
only untouched valid JSON skips sanitization.
"""

import json
from typing import Any


def parse_json(text: str, strict: bool = False) -> Any:
    """Parse text, raising ``json.JSONDecodeError`` on failure."""
    return json.loads(text, strict=strict)


def is_parseable(text: str, strict: bool = False) -> bool:
    """Whether ``text`` parses as a JSON document."""
    try:
        parse_json(text, strict=strict)
    except (json.JSONDecodeError, RecursionError):
        return False
    return True
