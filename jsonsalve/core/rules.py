"""
Declarative repair rules and the rule executor.

A ``Rule`` pairs a regex pattern with a rewrite function and an optional
context predicate. The executor evaluates a rule table in declared order,
skipping matches inside string literals (via the lexical scanner) and
recording one bounded diagnostic per applied rewrite.
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from ..utils.config import SanitizerConfig
from . import scanner
from .diagnostics import DiagnosticCollector
from .regex_engine import RegexEngine, get_engine
from .results import StrategyResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 10

_AFTER_DELIMITER = re.compile(r"[{}\[\],]\s*$")
_AFTER_NEWLINE_COMMA = re.compile(r",\s*\n\s*$")
_PROPERTY_START = re.compile(r"(?:[{,]|\n)\s*$")
_ARRAY_START = re.compile(r"(?:\[|,\s*\n|\"\s*,)\s*$")


@dataclass(frozen=True)
class RuleContext:
    """Everything a replacement or context check may inspect about a match."""

    before_match: str
    offset: int
    full_content: str
    match_text: str
    groups: tuple[str, ...]
    config: SanitizerConfig = field(default_factory=SanitizerConfig)

    @property
    def end(self) -> int:
        return self.offset + len(self.match_text)

    @property
    def after_match(self) -> str:
        """Text following the match in the content the rule was applied to."""
        return self.full_content[self.end:]

    @property
    def lexical(self) -> scanner.LexicalIndex:
        """Whole-text lexical index shared by every match of one rule pass."""
        return scanner.lexical_index(self.full_content)

    @property
    def in_array(self) -> bool:
        return self.lexical.in_array(self.offset)

    @property
    def directly_in_array(self) -> bool:
        return self.lexical.directly_in_array(self.offset)

    def directly_in_array_at(self, offset: int) -> bool:
        return self.lexical.directly_in_array(offset)

    def directly_in_object_at(self, offset: int) -> bool:
        return self.lexical.directly_in_object(offset)

    def in_array_at(self, offset: int) -> bool:
        return self.lexical.in_array(offset)

    def group(self, index: int) -> str:
        """1-based group accessor returning "" for unmatched groups."""
        return self.groups[index - 1] if 0 < index <= len(self.groups) else ""


ReplacementFunc = Callable[[RuleContext], Optional[str]]
DiagnosticFunc = Callable[[RuleContext], str]


@dataclass(frozen=True)
class Rule:
    """
    A single pattern based repair.

    ``replacement`` is either a template expanded with the match groups
    (``\\1`` style) or a function returning the new text, or None to keep the
    match unchanged.
    """

    name: str
    pattern: str
    replacement: Union[str, ReplacementFunc]
    diagnostic: Union[str, DiagnosticFunc]
    context_check: Optional[Callable[[RuleContext], bool]] = None
    skip_in_string: bool = True
    context_lookback: int = 500
    flags: int = 0

    def describe(self, context: RuleContext) -> str:
        """Human readable diagnostic for one applied rewrite."""
        if callable(self.diagnostic):
            return self.diagnostic(context)
        return self.diagnostic


def is_after_json_delimiter(context: RuleContext) -> bool:
    """Match follows a structural delimiter, or starts the content."""
    before = context.before_match
    return (
        not before.strip()
        or _AFTER_DELIMITER.search(before) is not None
        or _AFTER_NEWLINE_COMMA.search(before) is not None
    )


def is_in_property_context(context: RuleContext) -> bool:
    """Match sits where an object key is expected."""
    before = context.before_match
    if _PROPERTY_START.search(before) is not None or not before.strip():
        return not context.directly_in_array
    return False


def is_in_array_context(context: RuleContext) -> bool:
    """Match sits where an array element is expected."""
    if _ARRAY_START.search(context.before_match) is None:
        return False
    return context.directly_in_array


def _build_context(
    match: Any, text: str, rule: Rule, config: SanitizerConfig
) -> RuleContext:
    offset = match.start()
    lookback = max(min(rule.context_lookback, config.lookback_window), 0)
    return RuleContext(
        before_match=text[max(0, offset - lookback):offset],
        offset=offset,
        full_content=text,
        match_text=match.group(0),
        groups=tuple(g if g is not None else "" for g in match.groups()),
        config=config,
    )


def apply_rule(
    text: str,
    rule: Rule,
    config: SanitizerConfig,
    collector: DiagnosticCollector,
    engine: Optional[RegexEngine] = None,
) -> tuple[str, bool]:
    """
    Apply one rule to every non-overlapping match in ``text``.

    Descriptions are formatted only while ``collector`` has room; rewrites
    past its capacity are counted as dropped.
    """
    engine = engine or get_engine()
    index = scanner.lexical_index(text) if rule.skip_in_string else None
    capacity = collector.remaining
    pending: list[str] = []
    skipped = 0

    def replace(match: Any) -> str:
        nonlocal skipped
        original = match.group(0)
        if index is not None and index.in_string(match.start()):
            return original
        context = _build_context(match, text, rule, config)
        if rule.context_check is not None and not rule.context_check(context):
            return original
        if callable(rule.replacement):
            replacement = rule.replacement(context)
        else:
            replacement = match.expand(rule.replacement)
        if replacement is None or replacement == original:
            return original
        if len(pending) < capacity:
            pending.append(rule.describe(context))
        else:
            skipped += 1
        return replacement

    result = engine.sub(rule.pattern, replace, text, flags=rule.flags)
    if result == text:
        return text, False
    collector.extend(pending)
    collector.stats.dropped += skipped
    return result, True


def execute_rules(
    content: str,
    rules: Sequence[Rule],
    config: Optional[SanitizerConfig] = None,
    *,
    max_diagnostics: Optional[int] = None,
    multi_pass: bool = False,
    max_passes: int = DEFAULT_MAX_PASSES,
    engine: Optional[RegexEngine] = None,
) -> StrategyResult:
    """
    Execute a rule table in order.

    With ``multi_pass`` the whole table is re-run until a pass changes nothing,
    bounded by ``max_passes``, because one fix can expose an adjacent one.
    """
    if not content or not rules:
        return StrategyResult.unchanged(content)

    config = config or SanitizerConfig()
    collector = DiagnosticCollector(
        config.max_diagnostics if max_diagnostics is None else max_diagnostics
    )
    text = content
    passes = 0
    while True:
        passes += 1
        pass_changed = False
        for rule in rules:
            text, changed = apply_rule(text, rule, config, collector, engine)
            pass_changed = pass_changed or changed
        if not (multi_pass and pass_changed):
            break
        if passes >= max_passes:
            logger.debug("Rule table stopped after %d passes without converging", passes)
            break

    if text == content:
        return StrategyResult.unchanged(content)
    return StrategyResult(content=text, changed=True, diagnostics=collector.messages)
