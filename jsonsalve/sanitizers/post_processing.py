"""
Structural post-processing.

Runs after the content repairs: gives dangling keys a ``null`` value, turns a
truncated value left inside an array of objects into its own sibling object,
and removes short tokens glued onto delimiters.
"""

from typing import Optional

from ..core.classifiers import JSON_KEYWORDS
from ..core.rules import Rule, RuleContext
from ..utils.config import SanitizerConfig
from .base import RuleBasedStrategy

SPLIT_VALUE_KEY = "value"

_NEXT_PROPERTY = r'(?="[A-Za-z_$][\w$]*"\s*:)'


def _key_in_object(context: RuleContext) -> bool:
    return context.directly_in_object_at(context.offset + len(context.group(1)))


def _object_inside_array(context: RuleContext) -> bool:
    return context.in_array and not context.directly_in_array


def _split_after_property(context: RuleContext) -> str:
    indent = context.group(2)
    return (
        f"{context.group(1)}\n{indent}}}, {{\"{SPLIT_VALUE_KEY}\": "
        f"\"{context.group(3)}\",{context.group(4)}"
    )


def _split_after_object(context: RuleContext) -> str:
    return (
        f"{context.group(1)}\n{context.group(2)}{{\"{SPLIT_VALUE_KEY}\": "
        f"\"{context.group(3)}\",{context.group(4)}"
    )


def _drop_glued_token(context: RuleContext) -> Optional[str]:
    if context.group(2) in JSON_KEYWORDS:
        return None
    return context.group(1)


POST_PROCESSING_RULES: tuple[Rule, ...] = (
    Rule(
        name="dangling_key",
        pattern=r'([{,]\s*)"([A-Za-z_$][\w$]*)\s*"([ \t]*)(?=[,}]|\n)',
        replacement=r'\1"\2": null\3',
        diagnostic=lambda ctx: f"Inserted null for dangling property \"{ctx.group(2)}\"",
        context_check=_key_in_object,
    ),
    Rule(
        name="truncated_value_after_property",
        pattern=(
            r'("[A-Za-z_$][\w$]*"\s*:\s*"[^"\n]*")[ \t]*\n([ \t]*)'
            r'([a-z][A-Za-z0-9_]*)"\s*,(\s*\n\s*)' + _NEXT_PROPERTY
        ),
        replacement=_split_after_property,
        diagnostic=lambda ctx: (
            f"Split truncated value \"{ctx.group(3)}\" into a new array element"
        ),
        context_check=_object_inside_array,
    ),
    Rule(
        name="truncated_value_after_object",
        pattern=(
            r'(\}\s*,)[ \t]*\n([ \t]*)([a-z][A-Za-z0-9_]*)"\s*,(\s*\n\s*)' + _NEXT_PROPERTY
        ),
        replacement=_split_after_object,
        diagnostic=lambda ctx: (
            f"Opened new array element for truncated value \"{ctx.group(3)}\""
        ),
        context_check=lambda ctx: ctx.in_array,
    ),
    Rule(
        name="token_glued_before_key",
        pattern=r'([,{\[]\s*)([A-Za-z]{1,4})(?=\s*["{\[\]}])',
        replacement=_drop_glued_token,
        diagnostic=lambda ctx: f"Removed stray token \"{ctx.group(2)}\" after delimiter",
    ),
    Rule(
        name="token_glued_after_closer",
        pattern=r"([}\]])([A-Za-z]{1,4})(?=\s*[,}\]\n]|\s*$)",
        replacement=_drop_glued_token,
        diagnostic=lambda ctx: f"Removed stray token \"{ctx.group(2)}\" after closing bracket",
    ),
)


class StructuralPostProcessor(RuleBasedStrategy):
    """Final structural clean-up once content repairs have run."""

    name = "post_processing"
    multi_pass = True

    def rules(self, _config: SanitizerConfig) -> tuple[Rule, ...]:
        return POST_PROCESSING_RULES
