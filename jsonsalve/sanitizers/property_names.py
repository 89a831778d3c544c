"""
Property name repair.

Fixes keys that a model split, truncated, misspelled or left unquoted.
Truncated and misspelled keys are resolved against the known properties of
the target schema through the property name matcher, after the caller's
legacy exact-match tables.
"""

import logging
from typing import Optional

from ..core import scanner
from ..core.property_matcher import PropertyNameMatcher, infer_from_short_fragment
from ..core.results import MatchType
from ..core.rules import Rule, RuleContext, is_in_property_context
from ..utils.config import SanitizerConfig
from .base import RuleBasedStrategy

logger = logging.getLogger(__name__)

# Lowest confidence at which a matcher result renames a key
MIN_RENAME_CONFIDENCE = {
    MatchType.EXACT: 0.0,
    MatchType.PREFIX: 0.6,
    MatchType.SUFFIX: 0.6,
    MatchType.CONTAINS: 0.7,
    MatchType.FUZZY: 0.75,
}

_KEY = r"[A-Za-z_$][\w$-]*"


def _key_position_check(context: RuleContext) -> bool:
    """The identifier after the leading delimiter group sits in an object."""
    key_offset = context.offset + len(context.group(1))
    return not context.directly_in_array_at(key_offset)


def _is_known(name: str, config: SanitizerConfig) -> bool:
    return name in config.known_properties


def resolve_property_name(name: str, config: SanitizerConfig) -> Optional[str]:
    """
    Best replacement for a key, or None to keep it.

    Legacy mappings and typo corrections win over the matcher. Without known
    properties only one and two character fragments are resolved, through the
    common truncation table, whether or not the key was quoted: a complete
    short key such as ``"n"`` becomes ``"name"``. Declare the key in
    ``known_properties`` to keep it.
    """
    mapped = config.property_name_mappings.get(name) or config.property_typo_corrections.get(name)
    if mapped:
        return mapped if mapped != name else None
    if _is_known(name, config):
        return None

    if not config.has_known_properties:
        if len(name) <= 2:
            return infer_from_short_fragment(name)
        return None

    result = PropertyNameMatcher(config.matching).match(name, config.known_properties)
    if not result or result.matched == name:
        return None
    if len(name) <= 2 or result.confidence >= MIN_RENAME_CONFIDENCE[result.match_type]:
        logger.debug(
            "Resolved property %r to %r (%s, %.2f)",
            name, result.matched, result.match_type.value, result.confidence,
        )
        return result.matched
    return None


def _resolve_key(context: RuleContext) -> Optional[str]:
    resolved = resolve_property_name(context.group(2), context.config)
    if resolved is None:
        return None
    return f'{context.group(1)}"{resolved}"{context.group(3)}'


def _strip_underscores(context: RuleContext) -> Optional[str]:
    name = context.group(1) + context.group(2)
    stripped = context.group(1)
    config = context.config
    if _is_known(name, config):
        return None
    if config.has_known_properties and not _is_known(stripped, config):
        return None
    return f'"{stripped}"{context.group(3)}'


def _collapse_underscores(context: RuleContext) -> Optional[str]:
    name = context.group(1)
    collapsed = "_".join(part for part in name.split("_") if part)
    if collapsed == name or not _is_known(collapsed, context.config):
        return None
    return f'"{collapsed}"{context.group(2)}'


def _embedded_value(context: RuleContext) -> Optional[str]:
    name, extra = context.group(1), context.group(2).strip()
    config = context.config
    if _is_known(f"{name} {extra}", config):
        return None

    value_start = context.end
    value_end = scanner.find_closing_quote(context.full_content, value_start)
    value = context.full_content[value_start + 1:value_end] if value_end != -1 else ""

    if (config.has_known_properties and _is_known(name, config)) or (
        extra and extra.lower() in value.lower()
    ):
        return f'"{name}"{context.group(3)}'
    return None


def _dangling_key_quote(context: RuleContext) -> bool:
    """``"name: "x"`` where the quote after the colon opens the value."""
    if not _key_position_check(context):
        return False
    text = context.full_content
    quote_start = context.offset + len(context.group(1))
    closing = scanner.find_closing_quote(text, quote_start)
    if closing == -1:
        return True
    after = text[closing + 1:].lstrip()
    return not after.startswith(":")


PROPERTY_NAME_RULES: tuple[Rule, ...] = (
    Rule(
        name="list_marker_before_key",
        pattern=r'([{,]\s*|\n[ \t]*)(?:[-*•]|\d+\.)[ \t]+(?="[A-Za-z_$][\w$]*"\s*:)',
        replacement=r"\1",
        diagnostic="Removed list marker before property",
        context_check=_key_position_check,
    ),
    Rule(
        name="concatenated_fragments",
        pattern=r'"([^"\n]*)"\s*\+\s*"([^"\n]*)"',
        replacement=r'"\1\2"',
        diagnostic=lambda ctx: f"Merged concatenated fragments into \"{ctx.group(1)}{ctx.group(2)}\"",
    ),
    Rule(
        name="duplicated_key",
        pattern=r'"([A-Za-z_$][\w$]*)"\s*:\s*"\1"\s*:',
        replacement=r'"\1":',
        diagnostic=lambda ctx: f"Removed duplicated property name \"{ctx.group(1)}\"",
        context_check=is_in_property_context,
    ),
    Rule(
        name="corrupted_key_extra_text",
        pattern=r'("[A-Za-z_$][\w$]*"\s*:)\s*([A-Za-z0-9_@#$.-]{1,20})"\s*:\s*(?=["\[{\d\-tfn])',
        replacement=r"\1 ",
        diagnostic=lambda ctx: f"Removed corrupted text \"{ctx.group(2)}\" after property name",
        context_check=is_in_property_context,
    ),
    Rule(
        name="unquoted_key",
        pattern=r"([{,]\s*|\n[ \t]*|^\s*)(" + _KEY + r")(\s*):(?!//)",
        replacement=r'\1"\2"\3:',
        diagnostic=lambda ctx: f"Quoted property name \"{ctx.group(2)}\"",
        context_check=_key_position_check,
    ),
    Rule(
        name="missing_opening_quote_key",
        pattern=r'([{,]\s*|\n[ \t]*|^\s*)(' + _KEY + r')"(\s*):',
        replacement=r'\1"\2"\3:',
        diagnostic=lambda ctx: f"Added missing opening quote to property \"{ctx.group(2)}\"",
        context_check=_key_position_check,
    ),
    Rule(
        name="missing_closing_quote_key",
        pattern=r'([{,]\s*)"(' + _KEY + r')(\s*):(?=\s*["\[{\d\-tfn])',
        replacement=r'\1"\2"\3:',
        diagnostic=lambda ctx: f"Added missing closing quote to property \"{ctx.group(2)}\"",
        context_check=_dangling_key_quote,
    ),
    Rule(
        name="missing_colon",
        pattern=r'("[A-Za-z_$][\w$-]*")([ \t]+)(?="[^"\n]*"\s*[,}\n]|[\d\[{]|true\b|false\b|null\b)',
        replacement=r"\1:\2",
        diagnostic=lambda ctx: f"Inserted missing colon after property {ctx.group(1)}",
        context_check=is_in_property_context,
    ),
    Rule(
        name="embedded_value_in_key",
        pattern=r'"([A-Za-z_$][\w$]*)[ \t]+([^"\n:]{1,40})"(\s*:\s*)(?=")',
        replacement=_embedded_value,
        diagnostic=lambda ctx: f"Removed embedded value \"{ctx.group(2).strip()}\" from property \"{ctx.group(1)}\"",
        context_check=is_in_property_context,
    ),
    Rule(
        name="trailing_underscores",
        pattern=r'"([A-Za-z$][\w$]*?)(_+)"(\s*:)',
        replacement=_strip_underscores,
        diagnostic=lambda ctx: f"Stripped trailing underscores from property \"{ctx.group(1)}\"",
        context_check=is_in_property_context,
    ),
    Rule(
        name="doubled_underscores",
        pattern=r'"([A-Za-z$][\w$]*__[\w$]*)"(\s*:)',
        replacement=_collapse_underscores,
        diagnostic=lambda ctx: f"Collapsed doubled underscores in property \"{ctx.group(1)}\"",
        context_check=is_in_property_context,
    ),
    Rule(
        name="resolve_property_name",
        pattern=r'([{,]\s*|^\s*)"([A-Za-z_$][\w$.-]*)"(\s*:)',
        replacement=_resolve_key,
        diagnostic=lambda ctx: (
            f"Fixed property name \"{ctx.group(2)}\" -> "
            f"\"{resolve_property_name(ctx.group(2), ctx.config)}\""
        ),
        context_check=_key_position_check,
    ),
)


class PropertyNameRepairer(RuleBasedStrategy):
    """Repairs split, truncated, unquoted and misspelled property names."""

    name = "property_names"
    multi_pass = True

    def rules(self, _config: SanitizerConfig) -> tuple[Rule, ...]:
        return PROPERTY_NAME_RULES
