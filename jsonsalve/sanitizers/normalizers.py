"""
Character-level normalization.

A single left-to-right pass that tracks which quote character opened the
current string, so typographic quotes act as delimiters only where a JSON
delimiter is expected, and escapes and control characters are repaired only
inside string literals.
"""

from dataclasses import dataclass
from typing import Optional

from ..core.results import StrategyResult
from ..utils.config import SanitizerConfig
from .base import SanitizerStrategyBase

DOUBLE_CURLY_QUOTES = frozenset("\u201c\u201d\u201e\u201f")
SINGLE_CURLY_QUOTES = frozenset("\u2018\u2019\u201a\u201b")

VALID_ESCAPES = frozenset('"\\/bfnrt')
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Removed when found outside strings
INVISIBLE_CHARACTERS = frozenset(
    [chr(c) for c in range(0x00, 0x09)]
    + ["\x0b", "\x0c"]
    + [chr(c) for c in range(0x0E, 0x20)]
    + ["\u200b", "\u200c", "\u200d", "\ufeff"]
)
STRING_SAFE_CONTROLS = frozenset("\t\n\r")
CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}

# Quote kinds that opened the current string
STRAIGHT = '"'
CURLY_DOUBLE = "curly-double"
CURLY_SINGLE = "curly-single"
ASCII_SINGLE = "'"

_VALUE_OPENERS = frozenset("{[,:")
_SINGLE_CLOSE_FOLLOWERS = frozenset(",}]:")


@dataclass
class NormalizationStats:
    """Counts per repair category for one normalization pass."""

    curly_quotes: int = 0
    single_quoted_strings: int = 0
    control_characters: int = 0
    invalid_escapes: int = 0
    over_escapes: int = 0
    removed_characters: int = 0
    non_breaking_spaces: int = 0

    def messages(self) -> list[str]:
        pairs = (
            (self.curly_quotes, "Converted {} curly quote(s) to straight quotes"),
            (self.single_quoted_strings, "Converted {} single-quoted string(s) to double quotes"),
            (self.control_characters, "Escaped {} control character(s) inside strings"),
            (self.invalid_escapes, "Fixed {} invalid escape sequence(s)"),
            (self.over_escapes, "Reduced {} over-escaped sequence(s)"),
            (self.removed_characters, "Removed {} control or zero-width character(s)"),
            (self.non_breaking_spaces, "Replaced {} non-breaking space(s) with spaces"),
        )
        return [template.format(count) for count, template in pairs if count]


def _escape_control(char: str, stats: NormalizationStats) -> str:
    if char < " " and char not in STRING_SAFE_CONTROLS:
        stats.control_characters += 1
        return f"\\u{ord(char):04x}"
    return char


class CharacterNormalizer(SanitizerStrategyBase):
    """Normalizes quotes, escapes and invisible characters."""

    name = "characters"

    def sanitize(self, text: str, config: SanitizerConfig) -> StrategyResult:
        stats = NormalizationStats()
        result = self.normalize(text, stats)
        collector = self.new_collector(config)
        collector.extend(stats.messages())
        return self.finish(text, result, collector)

    @staticmethod
    def _opens_value(out: list[str]) -> bool:
        """Whether the last significant emitted character expects a value or key."""
        for char in reversed(out):
            if not char.isspace():
                return char in _VALUE_OPENERS
        return True

    @staticmethod
    def _closes_single_quoted(text: str, index: int) -> bool:
        """A single quote closes a string only before a delimiter or the end."""
        j = index + 1
        while j < len(text) and text[j] in " \t":
            j += 1
        return j >= len(text) or text[j] in _SINGLE_CLOSE_FOLLOWERS or text[j] == "\n"

    def normalize(self, text: str, stats: Optional[NormalizationStats] = None) -> str:
        """Run the normalization pass and return the rewritten text."""
        stats = stats or NormalizationStats()
        out: list[str] = []
        quote: Optional[str] = None
        i = 0
        length = len(text)

        while i < length:
            char = text[i]

            if quote is None:
                if char == '"':
                    quote = STRAIGHT
                    out.append(char)
                elif char in DOUBLE_CURLY_QUOTES:
                    quote = CURLY_DOUBLE
                    stats.curly_quotes += 1
                    out.append('"')
                elif char in SINGLE_CURLY_QUOTES and self._opens_value(out):
                    quote = CURLY_SINGLE
                    stats.curly_quotes += 1
                    out.append('"')
                elif char == "'" and self._opens_value(out):
                    quote = ASCII_SINGLE
                    stats.single_quoted_strings += 1
                    out.append('"')
                elif char in INVISIBLE_CHARACTERS:
                    stats.removed_characters += 1
                elif char == "\u00a0":
                    stats.non_breaking_spaces += 1
                    out.append(" ")
                else:
                    out.append(char)
                i += 1
                continue

            if char == "\\":
                i = self._normalize_escape(text, i, out, stats)
                continue

            if quote == STRAIGHT:
                if char == '"':
                    quote = None
                out.append(_escape_control(char, stats))
            elif quote == CURLY_DOUBLE:
                if char == '"' or char in DOUBLE_CURLY_QUOTES:
                    if char != '"':
                        stats.curly_quotes += 1
                    quote = None
                    out.append('"')
                else:
                    out.append(_escape_control(char, stats))
            else:
                closers = SINGLE_CURLY_QUOTES if quote == CURLY_SINGLE else {"'"}
                if char in closers and self._closes_single_quoted(text, i):
                    if quote == CURLY_SINGLE:
                        stats.curly_quotes += 1
                    quote = None
                    out.append('"')
                elif char == '"':
                    out.append('\\"')
                else:
                    out.append(_escape_control(char, stats))
            i += 1

        return "".join(out)

    @staticmethod
    def _normalize_escape(
        text: str, index: int, out: list[str], stats: NormalizationStats
    ) -> int:
        """
        Repair the backslash run starting at ``index`` inside a string.

        Returns:
            Index of the first character not consumed
        """
        end = index
        while end < len(text) and text[end] == "\\":
            end += 1
        run = end - index

        if run % 2 == 0:
            out.append("\\" * run)
            return end

        target = text[end] if end < len(text) else ""

        if target == '"' and run >= 5:
            stats.over_escapes += 1
            out.append('\\"')
            return end + 1
        if target == "'" or target in SINGLE_CURLY_QUOTES:
            if run >= 3:
                stats.over_escapes += 1
            else:
                stats.invalid_escapes += 1
            out.append("\\" * (run - 1) + target)
            return end + 1

        out.append("\\" * (run - 1))

        if target in VALID_ESCAPES:
            out.append("\\" + target)
            return end + 1
        if target == "u":
            digits = text[end + 1:end + 5]
            if len(digits) == 4 and all(d in HEX_DIGITS for d in digits):
                out.append("\\u" + digits)
                return end + 5
            stats.invalid_escapes += 1
            out.append("\\\\u")
            return end + 1

        stats.invalid_escapes += 1
        if target == "":
            out.append("\\\\")
            return end
        if target == "0":
            out.append("\\u0000")
        elif target == " ":
            out.append(" ")
        elif target in CONTROL_ESCAPES:
            out.append(CONTROL_ESCAPES[target])
        else:
            out.append("\\\\" + _escape_control(target, stats))
        return end + 1
