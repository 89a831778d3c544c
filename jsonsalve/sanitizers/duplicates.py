"""
Duplicate and corrupted array entry removal.

A model that notices a mistake mid-array often re-emits the entry with a
marker prefix (``extra.persistence.Version`` after ``jakarta.persistence.Version``)
or starts a second string in the slot of a complete one. Those entries are
dropped while the delimiter of the valid entry is kept.
"""

from typing import Optional

from ..core import scanner
from ..core.classifiers import looks_like_corruption_marker
from ..core.rules import Rule, RuleContext
from ..utils.config import SanitizerConfig
from .base import RuleBasedStrategy


def _drop_marker_entry(context: RuleContext) -> Optional[str]:
    if not looks_like_corruption_marker(context.group(3)):
        return None
    if not context.directly_in_array:
        return None
    return context.group(1)


def _drop_partial_string(context: RuleContext) -> Optional[str]:
    if not context.directly_in_array:
        return None
    text = context.full_content
    second_quote = context.offset + len(context.group(1)) + len(context.group(2))
    closing = scanner.find_closing_quote(text, second_quote)
    if closing != -1 and "\n" not in text[second_quote:closing]:
        return None
    return context.group(1)


DUPLICATE_ENTRY_RULES: tuple[Rule, ...] = (
    Rule(
        name="corruption_marker_entry",
        pattern=r'("[^"\n]+")(\s*,[ \t]*\n\s*)"?([A-Za-z]+[\w$.\-]*)"(?=\s*[,\]\n])',
        replacement=_drop_marker_entry,
        diagnostic=lambda ctx: (
            f"Removed corrupted array entry \"{ctx.group(3)}\" after {ctx.group(1)}"
        ),
    ),
    Rule(
        name="partial_second_string",
        pattern=r'("[^"\n]+")([ \t]*)"[^"\n,\]]*(?=[ \t]*(?:,|\n|\]))',
        replacement=_drop_partial_string,
        diagnostic=lambda ctx: f"Removed partial duplicate string after {ctx.group(1)}",
    ),
)


class DuplicateEntryRemover(RuleBasedStrategy):
    """Drops re-attempted and partial duplicate array entries."""

    name = "duplicate_entries"
    multi_pass = True

    def rules(self, _config: SanitizerConfig) -> tuple[Rule, ...]:
        return DUPLICATE_ENTRY_RULES
