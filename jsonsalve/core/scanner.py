"""
Lexical context scanning for partially valid JSON text.

Two views of the same lexical state are provided:

- the windowed functions (``is_in_string``, ``is_in_array``,
  ``is_directly_in_array``) are pure functions of ``(text, offset)`` that
  re-derive state from a bounded window ending at ``offset``
- ``LexicalIndex`` scans the whole text once and answers any number of
  queries exactly; the rule executor uses it through ``lexical_index``

The window starts at the first line break inside it, so short string literals
on earlier lines never invert the quote parity. Known limitation: on a single
line longer than the window, a string opened before the window is
misclassified. Widen ``lookback_window`` in ``ScanSettings`` for such input or
query a ``LexicalIndex``.
"""

import re
from bisect import bisect_left, bisect_right
from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Pattern

DEFAULT_LOOKBACK_WINDOW = 500

OPENERS = {"{": "}", "[": "]"}
CLOSERS = {"}": "{", "]": "["}

_QUOTE_TOKENS = re.compile(r'[\\"]')
_LEXICAL_TOKENS = re.compile(r'[\\"{}\[\]]')


class StringStateTracker:
    """Tracks double-quoted string state one character at a time."""

    def __init__(self) -> None:
        self.in_string = False
        self.escaped = False

    def update_state(self, char: str) -> bool:
        """
        Update string state with the next character.

        A quote toggles the state only when it is preceded by an even number of
        consecutive backslashes.

        Returns:
            True if the position after ``char`` is inside a string
        """
        if self.in_string:
            if self.escaped:
                self.escaped = False
            elif char == "\\":
                self.escaped = True
            elif char == '"':
                self.in_string = False
        elif char == '"':
            self.in_string = True
        return self.in_string

    def reset(self) -> None:
        """Reset string state tracking."""
        self.in_string = False
        self.escaped = False


@dataclass(frozen=True)
class LexicalContext:
    """Lexical context at a single offset."""

    in_string: bool
    in_array: bool
    directly_in_array: bool


def is_quote_boundary(text: str, index: int) -> bool:
    """Return True if the quote at ``index`` is not escaped."""
    backslashes = 0
    i = index - 1
    while i >= 0 and text[i] == "\\":
        backslashes += 1
        i -= 1
    return backslashes % 2 == 0


def _window_start(text: str, offset: int, window: int) -> int:
    """First offset scanned: ``offset - window``, moved past the next line break."""
    start = offset - window
    if start <= 0:
        return 0
    newline = text.find("\n", start, offset)
    return newline + 1 if newline != -1 else start


def is_in_string(text: str, offset: int, window: int = DEFAULT_LOOKBACK_WINDOW) -> bool:
    """Check whether ``offset`` falls inside a string literal."""
    offset = min(offset, len(text))
    tracker = StringStateTracker()
    for char in text[_window_start(text, offset, window):offset]:
        tracker.update_state(char)
    return tracker.in_string


def _structural_chars(text: str, offset: int, window: int) -> list[str]:
    """Brackets and braces before ``offset`` that sit outside strings."""
    offset = min(offset, len(text))
    tracker = StringStateTracker()
    found = []
    for char in text[_window_start(text, offset, window):offset]:
        was_in_string = tracker.in_string
        if not tracker.update_state(char) and not was_in_string and char in "{}[]":
            found.append(char)
    return found


def is_in_array(text: str, offset: int, window: int = DEFAULT_LOOKBACK_WINDOW) -> bool:
    """Check whether any enclosing structure of ``offset`` is an array."""
    depth = 0
    for char in reversed(_structural_chars(text, offset, window)):
        if char == "]":
            depth += 1
        elif char == "[":
            if depth == 0:
                return True
            depth -= 1
    return False


def is_directly_in_array(
    text: str, offset: int, window: int = DEFAULT_LOOKBACK_WINDOW
) -> bool:
    """Check whether the nearest enclosing structure of ``offset`` is an array."""
    brace_depth = 0
    bracket_depth = 0
    for char in reversed(_structural_chars(text, offset, window)):
        if char == "}":
            brace_depth += 1
        elif char == "]":
            bracket_depth += 1
        elif char == "{":
            if brace_depth == 0:
                return False
            brace_depth -= 1
        elif char == "[":
            if bracket_depth > 0:
                bracket_depth -= 1
            elif brace_depth == 0:
                return True
    return False


def context_at(
    text: str, offset: int, window: int = DEFAULT_LOOKBACK_WINDOW
) -> LexicalContext:
    """Compute all lexical context flags for ``offset``."""
    return LexicalContext(
        in_string=is_in_string(text, offset, window),
        in_array=is_in_array(text, offset, window),
        directly_in_array=is_directly_in_array(text, offset, window),
    )


def iterate_with_string_tracking(text: str) -> Iterator[tuple[int, str, bool]]:
    """
    Iterate through text with string state tracking.

    Yields:
        Tuple of (index, character, inside_string) where ``inside_string`` is
        the state before the character is consumed.
    """
    tracker = StringStateTracker()
    for i, char in enumerate(text):
        in_string = tracker.in_string
        tracker.update_state(char)
        yield i, char, in_string


class StringBoundaryChecker:
    """
    Exact whole-text string membership for many queries on one text.

    Unlike the windowed functions this scans the full text once, so it is used
    by strategies that remove whole spans and must never cut a string in half.
    """

    def __init__(self, text: str):
        self.text = text
        self._toggles: list[int] = []
        self._scan(text)

    def _scan(self, text: str) -> None:
        self._toggles.extend(i for i, _, _ in _unescaped_tokens(text, _QUOTE_TOKENS))

    def __call__(self, offset: int) -> bool:
        """Return True if ``offset`` is inside a string literal."""
        return bisect_right(self._toggles, offset - 1) % 2 == 1

    @property
    def ends_in_string(self) -> bool:
        """Whether the text ends inside an unterminated string."""
        return len(self._toggles) % 2 == 1


def _unescaped_tokens(text: str, pattern: Pattern[str]) -> Iterator[tuple[int, str, bool]]:
    """
    Yield ``(index, char, inside_string)`` for each unescaped quote and, when
    ``pattern`` includes them, each bracket or brace.

    Only backslashes and the characters of interest are visited, so the cost
    is proportional to the number of tokens rather than the text length.
    """
    in_string = False
    escaped_at = -1
    for match in pattern.finditer(text):
        i = match.start()
        char = text[i]
        if in_string and i == escaped_at:
            continue
        if char == "\\":
            if in_string:
                escaped_at = i + 1
            continue
        yield i, char, in_string
        if char == '"':
            in_string = not in_string


class LexicalIndex(StringBoundaryChecker):
    """
    Exact lexical context for every offset of one text.

    Built in a single token scan: string toggles plus, for each bracket or
    brace outside strings, the innermost open structure and the number of
    open arrays after it. A closer that does not match the innermost opener
    closes everything up to its matching opener; a closer with no opener at
    all is ignored.
    """

    def _scan(self, text: str) -> None:
        self._positions: list[int] = []
        self._innermost: list[str] = []
        self._open_arrays: list[int] = []

        stack: list[str] = []
        arrays = 0
        for i, char, in_string in _unescaped_tokens(text, _LEXICAL_TOKENS):
            if char == '"':
                self._toggles.append(i)
                continue
            if in_string:
                continue
            if char in OPENERS:
                stack.append(char)
                arrays += char == "["
            elif CLOSERS[char] in stack:
                while True:
                    opener = stack.pop()
                    arrays -= opener == "["
                    if opener == CLOSERS[char]:
                        break
            else:
                continue
            self._positions.append(i)
            self._innermost.append(stack[-1] if stack else "")
            self._open_arrays.append(arrays)

    def _last_event(self, offset: int) -> int:
        return bisect_left(self._positions, offset) - 1

    def innermost(self, offset: int) -> str:
        """``"["``, ``"{"`` or ``""`` for the structure enclosing ``offset``."""
        event = self._last_event(offset)
        return self._innermost[event] if event >= 0 else ""

    def in_string(self, offset: int) -> bool:
        return self(offset)

    def in_array(self, offset: int) -> bool:
        event = self._last_event(offset)
        return event >= 0 and self._open_arrays[event] > 0

    def directly_in_array(self, offset: int) -> bool:
        return self.innermost(offset) == "["

    def directly_in_object(self, offset: int) -> bool:
        return self.innermost(offset) == "{"

    def context(self, offset: int) -> LexicalContext:
        return LexicalContext(
            in_string=self.in_string(offset),
            in_array=self.in_array(offset),
            directly_in_array=self.directly_in_array(offset),
        )


@lru_cache(maxsize=8)
def lexical_index(text: str) -> LexicalIndex:
    """Shared ``LexicalIndex`` for ``text``; repeated calls reuse the scan."""
    return LexicalIndex(text)


def find_closing_quote(text: str, start: int) -> int:
    """
    Find the closing quote for a string opened at ``start``.

    Returns:
        Position of closing quote or -1 if not found
    """
    if start >= len(text) or text[start] != '"':
        return -1
    i = start + 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == '"':
            return i
        i += 1
    return -1


def find_json_value_end(text: str, start: int) -> Optional[int]:
    """
    Find the end (exclusive) of the JSON value beginning at ``start``.

    Leading whitespace is skipped. Strings, objects and arrays are matched
    structurally; scalars end at the next delimiter. Returns None when the
    value is unterminated.
    """
    i = start
    while i < len(text) and text[i].isspace():
        i += 1
    if i >= len(text):
        return None

    char = text[i]
    if char == '"':
        end = find_closing_quote(text, i)
        return end + 1 if end != -1 else None

    if char in OPENERS:
        stack = [char]
        tracker = StringStateTracker()
        j = i + 1
        while j < len(text):
            current = text[j]
            was_in_string = tracker.in_string
            if tracker.update_state(current) or was_in_string:
                j += 1
                continue
            if current in OPENERS:
                stack.append(current)
            elif current in CLOSERS:
                if not stack or stack[-1] != CLOSERS[current]:
                    return None
                stack.pop()
                if not stack:
                    return j + 1
            j += 1
        return None

    j = i
    while j < len(text) and text[j] not in ",}]\n":
        j += 1
    return j if j > i else None
