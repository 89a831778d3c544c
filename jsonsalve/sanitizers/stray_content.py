"""
Stray content removal.

Removes model commentary, disclaimers, binary corruption markers and
metadata-looking properties that appear between JSON tokens. What counts as
stray is decided by the shape classifiers in ``core.classifiers`` rather than
by word lists in the rules.
"""

import logging
import re
from typing import Optional

from ..core import scanner
from ..core.classifiers import (
    JSON_KEYWORDS,
    looks_like_artifact_property,
    looks_like_identifier,
    looks_like_non_json_key,
    looks_like_stray_suffix,
    looks_like_stray_text,
)
from ..core.diagnostics import DiagnosticCollector
from ..core.results import StrategyResult
from ..core.rules import Rule, RuleContext
from ..utils.config import SanitizerConfig
from .base import RuleBasedStrategy

logger = logging.getLogger(__name__)

_VALUE_POSITION = re.compile(r"(?::|[\[,])\s*$")
_PROPERTY_KEY = re.compile(r'([{,])(\s*)"([^"\n]+)"\s*:')
_TRAILING_DELIMITER = re.compile(r"\s*,")


def _commentary_line(context: RuleContext) -> Optional[str]:
    line = context.group(2).strip()
    if not looks_like_stray_text(line):
        return None
    # A lone word inside an array may be an element the array rules missed
    if looks_like_identifier(line) and context.directly_in_array:
        return None
    # After a colon the line is the value itself
    if context.before_match.rstrip().endswith(":"):
        return None
    return ""


def _stray_text_before_property(context: RuleContext) -> Optional[str]:
    text = context.group(2).strip()
    if text in JSON_KEYWORDS or not looks_like_stray_text(text):
        return None
    if context.directly_in_array_at(context.offset + len(context.group(1))):
        return None
    return context.group(1) + context.group(3)


def _non_json_key_line(context: RuleContext) -> Optional[str]:
    if not looks_like_non_json_key(context.group(2), context.config.known_properties):
        return None
    return ""


def _stray_suffix(context: RuleContext) -> Optional[str]:
    if not looks_like_stray_suffix(context.group(2)):
        return None
    if _VALUE_POSITION.search(context.before_match) is None:
        return None
    return context.group(1) + context.group(3)


STRAY_CONTENT_RULES: tuple[Rule, ...] = (
    Rule(
        name="binary_corruption_marker",
        pattern=r"<[a-z]_bin_\d+>",
        replacement="",
        diagnostic="Removed binary corruption marker",
    ),
    Rule(
        name="commentary_line",
        pattern=r'(\n)[ \t]*([^\n"{}\[\]]+?)[ \t]*(?=\n)',
        replacement=_commentary_line,
        diagnostic=lambda ctx: f"Removed commentary line \"{ctx.group(2).strip()[:60]}\"",
    ),
    Rule(
        name="stray_text_before_property",
        pattern=r'([{,]\s*)([a-z][a-z ]{0,40}?)[ \t]+("[A-Za-z_$][\w$]*"\s*:)',
        replacement=_stray_text_before_property,
        diagnostic=lambda ctx: f"Removed stray text \"{ctx.group(2).strip()}\" before property",
    ),
    Rule(
        name="yaml_style_line",
        pattern=r"(\n)[ \t]*([A-Za-z_][\w-]*)[ \t]*:[ \t]*([^\n]*)(?=\n)",
        replacement=_non_json_key_line,
        diagnostic=lambda ctx: f"Removed non-JSON line \"{ctx.group(2)}: ...\"",
    ),
    Rule(
        name="attribute_assignment",
        pattern=r'(?:(?<=[{,])|(?<=\n))([ \t]*)([A-Za-z_][\w-]*)[ \t]*=[ \t]*("[^"\n]*"|[^\s,}\]]*)[ \t]*,?',
        replacement=_non_json_key_line,
        diagnostic=lambda ctx: f"Removed attribute \"{ctx.group(2)}=...\"",
    ),
    Rule(
        name="stray_suffix_after_string",
        pattern=r'("[^"\n]*")([^,}\]\n"]+?)(\s*[,}\]])',
        replacement=_stray_suffix,
        diagnostic=lambda ctx: f"Removed stray text \"{ctx.group(2).strip()}\" after string value",
    ),
)


class StrayContentRemover(RuleBasedStrategy):
    """Removes commentary, markers and artifact properties between tokens."""

    name = "stray_content"
    multi_pass = True

    def rules(self, _config: SanitizerConfig) -> tuple[Rule, ...]:
        return STRAY_CONTENT_RULES

    def sanitize(self, text: str, config: SanitizerConfig) -> StrategyResult:
        collector = self.new_collector(config)
        repaired = super().sanitize(text, config)
        collector.extend(repaired.diagnostics)
        result = self.remove_artifact_properties(repaired.content, config, collector)
        return self.finish(text, result, collector)

    @staticmethod
    def _find_artifact(text: str, config: SanitizerConfig) -> Optional[tuple[int, int, str]]:
        """Span ``(start, end)`` of the first removable artifact property."""
        in_string = scanner.StringBoundaryChecker(text)
        for match in _PROPERTY_KEY.finditer(text):
            key = match.group(3)
            if in_string(match.start()) or not looks_like_artifact_property(
                key, config.known_properties
            ):
                continue
            value_end = scanner.find_json_value_end(text, match.end())
            if value_end is None:
                continue
            if match.group(1) == ",":
                return match.start(), value_end, key
            # First property: drop the comma that follows instead
            trailing = _TRAILING_DELIMITER.match(text, value_end)
            end = trailing.end() if trailing else value_end
            return match.start() + 1, end, key
        return None

    @classmethod
    def remove_artifact_properties(
        cls, text: str, config: SanitizerConfig, collector: DiagnosticCollector
    ) -> str:
        """Remove properties whose names look like model metadata."""
        result = text
        for _ in range(config.limits.max_fixed_point_iterations):
            found = cls._find_artifact(result, config)
            if found is None:
                break
            start, end, key = found
            result = result[:start] + result[end:]
            collector.add(f"Removed artifact property \"{key}\"")
        else:
            logger.debug("Artifact property removal stopped at the iteration limit")
        return result
