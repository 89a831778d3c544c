"""
Array element repair.

Quotes bareword, dotted and ALL-CAPS elements, restores missing element
quotes and commas, and removes lead-in junk before quoted elements. Every
rule applies only where the nearest enclosing structure is an array.
"""

import re
from typing import Optional

from ..core import scanner
from ..core.classifiers import NON_STRING_KEYWORDS, looks_like_constant
from ..core.property_matcher import looks_like_dot_separated_identifier
from ..core.rules import Rule, RuleContext
from ..utils.config import SanitizerConfig
from .base import RuleBasedStrategy

_ELEMENT_START = r"([\[,]\s*)"
_ELEMENT_END = r"(?=\s*[,\]])(?!\s*,\s*\"[^\"\n]*\"\s*:)"
_IDENTIFIER = r"[A-Za-z_$][\w$.\-]*"


def _element_in_array(context: RuleContext) -> bool:
    element_offset = context.offset + len(context.group(1))
    return context.directly_in_array_at(element_offset)


def _unterminated_element(context: RuleContext) -> bool:
    """The quote opening the element does not close a complete element."""
    if not _element_in_array(context):
        return False
    text = context.full_content
    quote = context.offset + len(context.group(1))
    closing = scanner.find_closing_quote(text, quote)
    if closing == -1:
        return True
    after = text[closing + 1:].lstrip()
    return bool(after) and after[0] not in ",]}:"


def _quote_identifier(context: RuleContext) -> Optional[str]:
    token = context.group(2)
    if token in NON_STRING_KEYWORDS:
        return None
    return f'{context.group(1)}"{token}"'


def _describe_identifier(context: RuleContext) -> str:
    token = context.group(2)
    if looks_like_constant(token):
        return f"Quoted constant array element {token}"
    if looks_like_dot_separated_identifier(token):
        return f"Quoted identifier array element {token}"
    return f"Quoted bare array element {token}"


def _prefix_rule(corrupted: str, replacement: str) -> Rule:
    def replace(context: RuleContext) -> str:
        return f"{context.group(1)}{context.group(2)}{replacement}"

    return Rule(
        name=f"corrupted_prefix:{corrupted}",
        pattern=_ELEMENT_START + r'("?)' + re.escape(corrupted),
        replacement=replace,
        diagnostic=f"Replaced corrupted prefix \"{corrupted}\" with \"{replacement}\"",
        context_check=_element_in_array,
    )


ARRAY_ELEMENT_RULES: tuple[Rule, ...] = (
    Rule(
        name="property_name_in_array",
        pattern=_ELEMENT_START + r'([A-Za-z_$][\w$]*)"\s*:\s*(?=")',
        replacement=r"\1",
        diagnostic=lambda ctx: f"Removed stray property name \"{ctx.group(2)}\" in array",
        context_check=_element_in_array,
    ),
    Rule(
        name="missing_opening_quote_element",
        pattern=_ELEMENT_START + "(" + _IDENTIFIER + r')"' + _ELEMENT_END,
        replacement=r'\1"\2"',
        diagnostic=lambda ctx: f"Added missing opening quote to array element {ctx.group(2)}",
        context_check=_element_in_array,
    ),
    Rule(
        name="missing_closing_quote_element",
        pattern=_ELEMENT_START + '"(' + _IDENTIFIER + ")" + _ELEMENT_END,
        replacement=r'\1"\2"',
        diagnostic=lambda ctx: f"Added missing closing quote to array element {ctx.group(2)}",
        context_check=_unterminated_element,
    ),
    Rule(
        name="stray_lead_in",
        pattern=_ELEMENT_START + r'([A-Za-z]{1,10}|[^\x00-\x7F\s"]+|[-*•])[ \t]*(?="[^"\n]*"\s*[,\]\n])',
        replacement=r"\1",
        diagnostic=lambda ctx: f"Removed stray \"{ctx.group(2)}\" before array element",
        context_check=_element_in_array,
    ),
    Rule(
        name="bare_identifier",
        pattern=_ELEMENT_START + "(" + _IDENTIFIER + ")" + _ELEMENT_END,
        replacement=_quote_identifier,
        diagnostic=_describe_identifier,
        context_check=_element_in_array,
    ),
    Rule(
        name="adjacent_strings",
        pattern=r'(?<=")([ \t]*)(?="[^"\n]*"\s*[,\]\n])',
        replacement=r",\1",
        diagnostic="Inserted missing comma between array elements",
        context_check=lambda ctx: ctx.directly_in_array,
    ),
)


class ArrayElementRepairer(RuleBasedStrategy):
    """Repairs quoting and separators of array elements."""

    name = "array_elements"
    multi_pass = True

    def rules(self, config: SanitizerConfig) -> tuple[Rule, ...]:
        # Known corrupted prefixes first: a corrupted identifier still looks valid
        prefix_rules = tuple(
            _prefix_rule(corrupted, fixed)
            for corrupted, fixed in config.package_name_prefix_replacements.items()
        )
        return prefix_rules + ARRAY_ELEMENT_RULES
