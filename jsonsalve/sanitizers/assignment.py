"""
Assignment syntax repair.

Normalizes non-standard key/value separators and quotes string values that
were written bare. Runs as a bounded multi-pass rule table since fixing one
value can expose the next.
"""

from typing import Optional

from ..core.classifiers import NON_STRING_KEYWORDS, looks_like_number
from ..core.rules import Rule, RuleContext, is_in_property_context
from ..utils.config import SanitizerConfig
from .base import RuleBasedStrategy

_QUOTED_KEY = r'("[^"\n]+"\s*'
_VALUE_END = r"(?=\s*[,}\]\n]|\s*$)"

PYTHON_LITERALS = {"True": "true", "False": "false", "None": "null"}


def _quote_missing_opening(context: RuleContext) -> str:
    return f'{context.group(1).rstrip()} "{context.group(2)}"'


def _quote_bare_value(context: RuleContext) -> Optional[str]:
    value = context.group(2).rstrip()
    if not value or value in NON_STRING_KEYWORDS or looks_like_number(value):
        return None
    escaped = value.replace("\\", "\\\\")
    return f'{context.group(1)}"{escaped}"{context.group(3)}'


ASSIGNMENT_RULES: tuple[Rule, ...] = (
    Rule(
        name="walrus_separator",
        pattern=_QUOTED_KEY + r"):=\s*",
        replacement=r"\1: ",
        diagnostic="Replaced ':=' with ':'",
    ),
    Rule(
        name="colon_dash_separator",
        pattern=_QUOTED_KEY + r"):-\s*(?=[^\d\s.])",
        replacement=r"\1: ",
        diagnostic="Replaced ':-' with ':'",
    ),
    Rule(
        name="equals_separator",
        pattern=r'("[^"\n]+")(\s*)=(?![=>])(\s*)',
        replacement=r"\1\2:\3",
        diagnostic="Replaced '=' with ':' after property name",
        context_check=is_in_property_context,
    ),
    Rule(
        name="stray_text_after_colon",
        pattern=_QUOTED_KEY + r':)[ \t]*([a-z]{1,3})[ \t]*(?="[^"\n]*"\s*[,}\n])',
        replacement=r"\1 ",
        diagnostic=lambda ctx: f"Removed stray text \"{ctx.group(2)}\" after colon",
    ),
    Rule(
        name="missing_opening_quote_value",
        pattern=_QUOTED_KEY + r':\s*)([A-Za-z_$][\w$.\-]*)"' + _VALUE_END,
        replacement=_quote_missing_opening,
        diagnostic=lambda ctx: f"Added missing opening quote to value \"{ctx.group(2)}\"",
    ),
    Rule(
        name="undefined_value",
        pattern=_QUOTED_KEY + r":\s*)undefined" + _VALUE_END,
        replacement=r"\1null",
        diagnostic="Replaced undefined with null",
    ),
    Rule(
        name="python_literal_value",
        pattern=_QUOTED_KEY + r":\s*)(True|False|None)" + _VALUE_END,
        replacement=lambda ctx: ctx.group(1) + PYTHON_LITERALS[ctx.group(2)],
        diagnostic=lambda ctx: f"Replaced {ctx.group(2)} with {PYTHON_LITERALS[ctx.group(2)]}",
    ),
    Rule(
        name="unquoted_value",
        pattern=_QUOTED_KEY + r':\s*)([A-Za-z_$][^,}\]\n"]*?)([ \t]*)' + _VALUE_END,
        replacement=_quote_bare_value,
        diagnostic=lambda ctx: f"Quoted bare value \"{ctx.group(2).rstrip()}\"",
    ),
)


class AssignmentRepairer(RuleBasedStrategy):
    """Repairs separators and unquoted string values."""

    name = "assignment"
    multi_pass = True

    def rules(self, _config: SanitizerConfig) -> tuple[Rule, ...]:
        return ASSIGNMENT_RULES
