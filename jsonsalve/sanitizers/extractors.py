"""
Structural noise removal.

Model responses wrap JSON in prose, markdown fences, thought markers and
truncation notes. This step strips that wrapper down to the single largest
JSON span without touching anything inside string literals.
"""

import re
from typing import Optional

from ..core.classifiers import looks_like_truncation_marker
from ..core.diagnostics import DiagnosticCollector
from ..core.results import StrategyResult
from ..core.scanner import OPENERS, StringBoundaryChecker, find_json_value_end
from ..utils.config import SanitizerConfig
from .base import SanitizerStrategyBase

_CODE_FENCE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*")
_THOUGHT_MARKER = re.compile(r"<ctrl\d+>(?:\s*thought\b\s*:?)?", re.IGNORECASE)
_LEADING_THOUGHT = re.compile(r"^\s*thought\s*:\s*(?=[{\[])", re.IGNORECASE)
# Truncation note occupying an element slot: "[1, 2, ...]" or "{..., (truncated)}"
_TRUNCATION_SLOT = re.compile(
    r"(?P<lead>[\[{,][ \t]*\n?[ \t]*)"
    r"(?P<marker>\.{3,}|…|\[\s*\.{3}\s*\]|\(\s*truncated\s*\)|_TRUNCATED_)"
    r"(?=\s*(?:[,\]}]|$))"
)
_TRAILING_ELLIPSIS = re.compile(r"(?<=[\"\d\]}])\s*(?:\.{3,}|…)\s*$")


class StructuralNoiseRemover(SanitizerStrategyBase):
    """Removes fences, thought markers, surrounding prose and truncation notes."""

    name = "structural_noise"

    def sanitize(self, text: str, config: SanitizerConfig) -> StrategyResult:
        collector = self.new_collector(config)
        result = self.remove_code_fences(text, collector)
        result = self.remove_thought_markers(result, collector)
        result = self.extract_json_span(result, collector)
        result = self.remove_truncation_markers(result, collector)
        return self.finish(text, result, collector)

    @staticmethod
    def _remove_outside_strings(
        text: str, pattern: "re.Pattern[str]", replacement: str = ""
    ) -> tuple[str, int]:
        in_string = StringBoundaryChecker(text)
        count = 0

        def replace(match: "re.Match[str]") -> str:
            nonlocal count
            if in_string(match.start()):
                return match.group(0)
            count += 1
            return replacement

        return pattern.sub(replace, text), count

    def remove_code_fences(self, text: str, collector: DiagnosticCollector) -> str:
        """Remove markdown code fence markers such as ```` ```json ````."""
        if "```" not in text:
            return text
        result, count = self._remove_outside_strings(text, _CODE_FENCE)
        if count:
            collector.add(f"Removed {count} markdown code fence marker(s)")
        return result

    def remove_thought_markers(self, text: str, collector: DiagnosticCollector) -> str:
        """Remove ``<ctrlN>thought`` control markers and a leading ``thought:``."""
        result, count = self._remove_outside_strings(text, _THOUGHT_MARKER)
        leading = _LEADING_THOUGHT.sub("", result, count=1)
        if leading != result:
            count += 1
            result = leading
        if count:
            collector.add(f"Removed {count} model thought marker(s)")
        return result

    @staticmethod
    def find_json_spans(text: str) -> list[tuple[int, int]]:
        """
        Find top-level candidate JSON spans as ``(start, end)`` pairs.

        An unterminated structure extends to the end of the text.
        """
        in_string = StringBoundaryChecker(text)
        spans: list[tuple[int, int]] = []
        position = 0
        while position < len(text):
            char = text[position]
            if char in OPENERS and not in_string(position):
                end: Optional[int] = find_json_value_end(text, position)
                if end is None:
                    spans.append((position, len(text)))
                    break
                spans.append((position, end))
                position = end
                continue
            position += 1
        return spans

    def extract_json_span(self, text: str, collector: DiagnosticCollector) -> str:
        """Keep only the largest JSON span, dropping prose around it."""
        spans = self.find_json_spans(text)
        if not spans:
            return text

        start, end = max(spans, key=lambda span: span[1] - span[0])
        prefix, body, suffix = text[:start], text[start:end], text[end:]
        if not prefix.strip() and not suffix.strip():
            return text

        if prefix.strip():
            collector.add(f"Removed {len(prefix.strip())} characters of text before JSON")
        if suffix.strip():
            if suffix.strip() == body.strip():
                collector.add("Collapsed duplicated JSON object")
            else:
                collector.add(f"Removed {len(suffix.strip())} characters of text after JSON")
        return body

    @staticmethod
    def remove_truncation_markers(text: str, collector: DiagnosticCollector) -> str:
        """Remove ``...``, ``[...]`` and ``(truncated)`` notes from element slots."""
        in_string = StringBoundaryChecker(text)
        count = 0

        def replace(match: "re.Match[str]") -> str:
            nonlocal count
            if in_string(match.start("marker")) or not looks_like_truncation_marker(
                match.group("marker")
            ):
                return match.group(0)
            count += 1
            return match.group("lead").rstrip()

        result = _TRUNCATION_SLOT.sub(replace, text)
        trimmed = _TRAILING_ELLIPSIS.sub("", result)
        if trimmed != result and not StringBoundaryChecker(result)(len(trimmed)):
            count += 1
            result = trimmed
        if count:
            collector.add(f"Removed {count} truncation marker(s)")
        return result
