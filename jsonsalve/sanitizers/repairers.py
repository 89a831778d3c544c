"""
Structure repair strategies.

``SyntaxRepairer`` fixes delimiter-level mistakes early in the pipeline
(comments, missing and trailing commas, objects that lost their opening
brace). ``StructureCompleter`` runs after the content repairs and balances
mismatched delimiters and closes structures cut off by truncation.
"""

import re

from ..core import scanner
from ..core.diagnostics import DiagnosticCollector
from ..core.results import StrategyResult
from ..core.rules import Rule, RuleContext, execute_rules
from ..core.scanner import CLOSERS, OPENERS, StringBoundaryChecker
from ..utils.config import SanitizerConfig
from .base import RuleBasedStrategy, SanitizerStrategyBase

# Lookbehinds for "a complete value just ended here"
_VALUE_END = r'(?:(?<=["\d}\]])|(?<=true)|(?<=false)|(?<=null))'
_DANGLING_KEY = re.compile(r'[{,]\s*"[^"\n]*"$')


def _key_directly_in_array(context: RuleContext) -> bool:
    key_offset = context.offset + len(context.group(1))
    return context.directly_in_array_at(key_offset)


TRAILING_COMMA_RULE = Rule(
    name="trailing_comma",
    pattern=r",(\s*[}\]])",
    replacement=r"\1",
    diagnostic="Removed trailing comma",
)

SYNTAX_RULES: tuple[Rule, ...] = (
    Rule(
        name="missing_array_object_brace",
        pattern=r'(\}\s*,\s*)(?:[a-z]{1,3}(?="))?("[A-Za-z_$][\w$-]*"\s*:)',
        replacement=r"\1{\2",
        diagnostic="Inserted missing '{' for object in array",
        context_check=_key_directly_in_array,
    ),
    Rule(
        name="missing_comma_newline",
        pattern=_VALUE_END + r"([ \t]*\n\s*)(?=[\"{\[])",
        replacement=r",\1",
        diagnostic="Inserted missing comma between lines",
    ),
    Rule(
        name="missing_comma_adjacent_structures",
        pattern=r"(?<=[}\]])([ \t]*)(?=[\"{\[])",
        replacement=r",\1",
        diagnostic="Inserted missing comma after closing bracket",
    ),
    Rule(
        name="missing_comma_before_property",
        pattern=_VALUE_END + r'([ \t]+)(?="[^"\n]*"\s*:)',
        replacement=r",\1",
        diagnostic="Inserted missing comma before property",
    ),
    Rule(
        name="leading_comma",
        pattern=r"([\[{]\s*),",
        replacement=r"\1",
        diagnostic="Removed leading comma",
    ),
    Rule(
        name="doubled_comma",
        pattern=r",(\s*),",
        replacement=r",\1",
        diagnostic="Removed doubled comma",
    ),
    TRAILING_COMMA_RULE,
)


class SyntaxRepairer(RuleBasedStrategy):
    """Fixes comments, missing commas and misplaced commas."""

    name = "syntax"
    multi_pass = True

    def rules(self, _config: SanitizerConfig) -> tuple[Rule, ...]:
        return SYNTAX_RULES

    def sanitize(self, text: str, config: SanitizerConfig) -> StrategyResult:
        collector = self.new_collector(config)
        result = self.remove_comments(text, collector)
        repaired = super().sanitize(result, config)
        collector.extend(repaired.diagnostics)
        return self.finish(text, repaired.content, collector)

    @staticmethod
    def _starts_comment(text: str, index: int) -> bool:
        if text[index] != "/" or index + 1 >= len(text) or text[index + 1] not in "/*":
            return False
        # "http://" in an unquoted value is not a comment
        return index == 0 or text[index - 1] != ":"

    @classmethod
    def remove_comments(cls, text: str, collector: DiagnosticCollector) -> str:
        """Remove ``//`` and ``/* */`` comments outside of strings."""
        if "/" not in text:
            return text

        result = []
        removed = 0
        tracker = scanner.StringStateTracker()
        i = 0
        while i < len(text):
            char = text[i]
            if tracker.in_string or not cls._starts_comment(text, i):
                tracker.update_state(char)
                result.append(char)
                i += 1
                continue

            removed += 1
            if text[i + 1] == "/":
                # Keep the newline
                while i < len(text) and text[i] != "\n":
                    i += 1
            else:
                end = text.find("*/", i + 2)
                i = len(text) if end == -1 else end + 2
                if result and not result[-1].isspace() and i < len(text) and not text[i].isspace():
                    result.append(" ")

        if removed:
            collector.add(f"Removed {removed} comment(s)")
        return "".join(result)


class StructureCompleter(SanitizerStrategyBase):
    """Balances mismatched delimiters and closes truncated structures."""

    name = "structure_completion"

    def sanitize(self, text: str, config: SanitizerConfig) -> StrategyResult:
        collector = self.new_collector(config)
        result = self.fix_mismatched_delimiters(text, collector)
        result = self.complete_truncated_structure(result, collector)
        cleaned = execute_rules(result, [TRAILING_COMMA_RULE], config)
        collector.extend(cleaned.diagnostics)
        return self.finish(text, cleaned.content, collector)

    @staticmethod
    def fix_mismatched_delimiters(text: str, collector: DiagnosticCollector) -> str:
        """
        Make every closing delimiter match its opener.

        A closer that matches an outer opener first closes the inner
        structures; a closer matching nothing on the stack is replaced by the
        expected one, and a closer with an empty stack is dropped.
        """
        out: list[str] = []
        stack: list[str] = []
        inserted = replaced = dropped = 0

        for _, char, in_string in scanner.iterate_with_string_tracking(text):
            if in_string or char not in "{}[]":
                out.append(char)
                continue
            if char in OPENERS:
                stack.append(char)
                out.append(char)
                continue

            opener = CLOSERS[char]
            if stack and stack[-1] == opener:
                stack.pop()
                out.append(char)
            elif opener in stack:
                while stack[-1] != opener:
                    out.append(OPENERS[stack.pop()])
                    inserted += 1
                stack.pop()
                out.append(char)
            elif stack:
                out.append(OPENERS[stack.pop()])
                replaced += 1
            else:
                dropped += 1

        if inserted:
            collector.add(f"Inserted {inserted} missing closing delimiter(s)")
        if replaced:
            collector.add(f"Replaced {replaced} mismatched closing delimiter(s)")
        if dropped:
            collector.add(f"Removed {dropped} unmatched closing delimiter(s)")
        return "".join(out)

    @staticmethod
    def _open_structures(text: str) -> list[str]:
        stack: list[str] = []
        for _, char, in_string in scanner.iterate_with_string_tracking(text):
            if in_string:
                continue
            if char in OPENERS:
                stack.append(char)
            elif char in CLOSERS and stack and stack[-1] == CLOSERS[char]:
                stack.pop()
        return stack

    @staticmethod
    def _ends_with_dangling_key(text: str) -> bool:
        match = _DANGLING_KEY.search(text)
        return match is not None and not StringBoundaryChecker(text)(match.start())

    @classmethod
    def complete_truncated_structure(
        cls, text: str, collector: DiagnosticCollector
    ) -> str:
        """Close an unterminated string, then every open object and array."""
        result = text.rstrip()
        closed_string = False
        if StringBoundaryChecker(result).ends_in_string:
            run = len(result) - len(result.rstrip("\\"))
            if run % 2 == 1:
                result = result[:-1]
            result += '"'
            closed_string = True

        stack = cls._open_structures(result)
        if not stack and not closed_string:
            return text

        if closed_string:
            collector.add("Closed unterminated string")
        if stack:
            body = result.rstrip()
            if body.endswith(","):
                body = body[:-1].rstrip()
                collector.add("Removed dangling comma before truncation point")
            elif body.endswith(":"):
                body += " null"
                collector.add("Inserted null for value cut off by truncation")
            elif stack[-1] == "{" and cls._ends_with_dangling_key(body):
                body += ": null"
                collector.add("Inserted null for property cut off by truncation")
            result = body + "".join(OPENERS[opener] for opener in reversed(stack))
            collector.add(f"Closed {len(stack)} unclosed structure(s)")
        return result
