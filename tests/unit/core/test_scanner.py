"""
Tests for the lexical context scanner.

Tests cover:
- String membership with escapes
- Array and direct-array context
- Lookback window limitation
- Whole-text boundary checker and lexical index
- Value end detection
"""

import unittest

import pytest

from jsonsalve.core import scanner
from jsonsalve.core.scanner import (
    LexicalIndex,
    StringBoundaryChecker,
    StringStateTracker,
    context_at,
    find_closing_quote,
    find_json_value_end,
    is_directly_in_array,
    is_in_array,
    is_in_string,
    iterate_with_string_tracking,
    lexical_index,
)


class TestStringStateTracker(unittest.TestCase):
    """Test character-by-character string tracking."""

    def test_quote_toggles_state(self):
        """Test that unescaped quotes open and close strings."""
        tracker = StringStateTracker()
        self.assertTrue(tracker.update_state('"'))
        self.assertTrue(tracker.update_state("a"))
        self.assertFalse(tracker.update_state('"'))

    def test_escaped_quote_does_not_close(self):
        """Test that a backslash-escaped quote stays inside the string."""
        tracker = StringStateTracker()
        for char in '"a\\"':
            tracker.update_state(char)
        self.assertTrue(tracker.in_string)

    def test_double_backslash_then_quote_closes(self):
        """Test that an even backslash run does not escape the quote."""
        tracker = StringStateTracker()
        for char in '"a\\\\"':
            tracker.update_state(char)
        self.assertFalse(tracker.in_string)

    def test_reset(self):
        """Test reset clears state."""
        tracker = StringStateTracker()
        tracker.update_state('"')
        tracker.update_state("\\")
        tracker.reset()
        self.assertFalse(tracker.in_string)
        self.assertFalse(tracker.escaped)


class TestIsInString(unittest.TestCase):
    """Test windowed string membership."""

    def test_offset_inside_value(self):
        """Test offset inside a string value."""
        text = '{"key": "some value"}'
        self.assertTrue(is_in_string(text, text.index("value")))

    def test_offset_outside_strings(self):
        """Test offsets on structural characters."""
        text = '{"key": "value"}'
        self.assertFalse(is_in_string(text, 0))
        self.assertFalse(is_in_string(text, text.index(":")))

    def test_offset_at_opening_quote_is_outside(self):
        """Test that the opening quote itself is outside the string."""
        text = '{"key": 1}'
        self.assertFalse(is_in_string(text, 1))
        self.assertTrue(is_in_string(text, 2))

    def test_escaped_quote_inside_string(self):
        """Test that an escaped quote does not end the string."""
        text = '{"a": "say \\"hi\\" now"}'
        self.assertTrue(is_in_string(text, text.index("now")))

    def test_offset_past_end_is_clamped(self):
        """Test that an offset beyond the text is treated as the end."""
        self.assertTrue(is_in_string('"open', 100))


class TestArrayContext(unittest.TestCase):
    """Test array context detection."""

    def test_in_array_nested_object(self):
        """Test that an object inside an array is in array context."""
        text = '[{"a": 1}]'
        offset = text.index("a")
        self.assertTrue(is_in_array(text, offset))
        self.assertFalse(is_directly_in_array(text, offset))

    def test_directly_in_array(self):
        """Test that an element position is directly in an array."""
        text = '["alpha", beta]'
        self.assertTrue(is_directly_in_array(text, text.index("beta")))

    def test_closed_array_is_not_enclosing(self):
        """Test that a closed sibling array does not count."""
        text = '{"list": [1, 2], "next": x}'
        offset = text.index("x")
        self.assertFalse(is_in_array(text, offset))
        self.assertFalse(is_directly_in_array(text, offset))

    def test_object_after_closed_object_in_array(self):
        """Test that a position after a closed object is back in the array."""
        text = '[{"a": 1}, value]'
        self.assertTrue(is_directly_in_array(text, text.index("value")))

    def test_brackets_inside_strings_are_ignored(self):
        """Test that brackets in string literals do not affect context."""
        text = '{"a": "[not an array", "b": x}'
        self.assertFalse(is_in_array(text, text.index("x")))

    def test_context_at(self):
        """Test the combined context record."""
        text = '["x", y]'
        context = context_at(text, text.index("y"))
        self.assertFalse(context.in_string)
        self.assertTrue(context.in_array)
        self.assertTrue(context.directly_in_array)


class TestLookbackWindow:
    """Test the bounded lookback window."""

    def test_small_window_misses_distant_opener(self):
        """An opener beyond the window is not seen."""
        text = "[" + " " * 50 + "x"
        offset = len(text) - 1
        assert is_directly_in_array(text, offset, window=100)
        assert not is_directly_in_array(text, offset, window=10)

    def test_long_string_beyond_window_inverts_parity(self):
        """A string opened before the window is misclassified as outside."""
        text = '{"a": "' + "x" * 600 + 'tail'
        offset = len(text) - 2
        assert is_in_string(text, offset, window=1000)
        assert not is_in_string(text, offset, window=500)

    @pytest.mark.parametrize("window", [1, 50, 500])
    def test_exact_boundary(self, window):
        """The character exactly ``window`` positions back is still scanned."""
        text = '"' + "a" * (window - 1)
        assert is_in_string(text, len(text), window=window)

    def test_window_starts_at_line_break(self):
        """Strings on earlier lines never invert the parity of later lines."""
        text = '["abc", "' + "y" * 30 + '",\n' + " " * 480 + "z"
        offset = text.index("z")
        assert offset - 500 > 0
        assert not is_in_string(text, offset)

    def test_window_start_without_line_break(self):
        """A single long line keeps the plain ``offset - window`` start."""
        text = "x" * 600
        assert scanner._window_start(text, 600, 500) == 100
        assert scanner._window_start("ab\ncd" + "x" * 600, 605, 500) == 105
        assert scanner._window_start("x" * 50 + "\n" + "x" * 600, 651, 620) == 51

    def test_default_window(self):
        """The default window is 500 characters."""
        assert scanner.DEFAULT_LOOKBACK_WINDOW == 500


class TestStringBoundaryChecker(unittest.TestCase):
    """Test whole-text string membership."""

    def test_matches_windowed_answer(self):
        """Test that both scanners agree on short text."""
        text = '{"a": "b, c", "d": [1, "e"]}'
        checker = StringBoundaryChecker(text)
        for offset in range(len(text) + 1):
            self.assertEqual(checker(offset), is_in_string(text, offset), offset)

    def test_long_string_is_exact(self):
        """Test that long strings are classified correctly."""
        text = '{"a": "' + "x" * 2000 + '"}'
        checker = StringBoundaryChecker(text)
        self.assertTrue(checker(1500))
        self.assertFalse(checker(len(text) - 1))

    def test_ends_in_string(self):
        """Test unterminated string detection."""
        self.assertTrue(StringBoundaryChecker('{"a": "trunc').ends_in_string)
        self.assertFalse(StringBoundaryChecker('{"a": "done"}').ends_in_string)


class TestLexicalIndex(unittest.TestCase):
    """Test the whole-text lexical index."""

    def test_agrees_with_windowed_scanner_on_short_text(self):
        """Test that both views agree where the window covers everything."""
        text = '{"a": [1, {"b": "c]"}, "d\\"["], "e": {"f": [x, y]}}'
        index = LexicalIndex(text)
        for offset in range(len(text) + 1):
            self.assertEqual(index.context(offset), context_at(text, offset), offset)

    def test_far_opener_is_seen(self):
        """Test array context survives hundreds of short string lines."""
        text = "[" + '"ab",\n' * 200 + "x]"
        index = LexicalIndex(text)
        offset = text.index("x")
        self.assertTrue(index.directly_in_array(offset))
        self.assertFalse(index.in_string(offset))

    def test_innermost_structure(self):
        """Test the innermost open structure is reported per offset."""
        text = '[{"a": [1]}, 2]'
        index = LexicalIndex(text)
        self.assertEqual(index.innermost(0), "")
        self.assertEqual(index.innermost(2), "{")
        self.assertEqual(index.innermost(8), "[")
        self.assertEqual(index.innermost(10), "{")
        self.assertEqual(index.innermost(13), "[")
        self.assertEqual(index.innermost(len(text)), "")

    def test_mismatched_closers(self):
        """Test a closer pops to its opener and an orphan closer is ignored."""
        index = LexicalIndex('{"a": [1, 2} ] x')
        self.assertEqual(index.innermost(13), "")
        self.assertFalse(index.in_array(15))
        self.assertFalse(LexicalIndex("[1]] x").directly_in_array(5))
        self.assertEqual(LexicalIndex("]] [x").innermost(4), "[")

    def test_escaped_backslash_before_quote(self):
        """Test an escaped backslash does not escape the following quote."""
        text = '["a\\\\", [x]]'
        index = LexicalIndex(text)
        self.assertFalse(index.in_string(text.index("x")))
        self.assertEqual(index.innermost(text.index("x")), "[")
        self.assertFalse(index.ends_in_string)

    def test_lexical_index_is_shared(self):
        """Test repeated lookups for the same text reuse one index."""
        text = '[1, "two", {"three": 3}]'
        self.assertIs(lexical_index(text), lexical_index(text))


class TestValueScanning(unittest.TestCase):
    """Test quote and value end helpers."""

    def test_find_closing_quote(self):
        """Test closing quote search skipping escapes."""
        text = '"a\\"b" rest'
        self.assertEqual(find_closing_quote(text, 0), 5)

    def test_find_closing_quote_unterminated(self):
        """Test unterminated strings return -1."""
        self.assertEqual(find_closing_quote('"abc', 0), -1)
        self.assertEqual(find_closing_quote("abc", 0), -1)

    def test_find_json_value_end_object(self):
        """Test nested object end detection."""
        text = ' {"a": [1, "]"]}, "b"'
        end = find_json_value_end(text, 0)
        self.assertEqual(text[:end], ' {"a": [1, "]"]}')

    def test_find_json_value_end_scalar(self):
        """Test scalar values end at the next delimiter."""
        text = "123, 4"
        self.assertEqual(find_json_value_end(text, 0), 3)

    def test_find_json_value_end_unterminated(self):
        """Test unterminated structures return None."""
        self.assertIsNone(find_json_value_end('{"a": 1', 0))
        self.assertIsNone(find_json_value_end("   ", 0))

    def test_iterate_reports_state_before_char(self):
        """Test the iterator yields the state before each character."""
        states = [in_string for _, _, in_string in iterate_with_string_tracking('"a"b')]
        self.assertEqual(states, [False, True, True, False])


if __name__ == "__main__":
    unittest.main()
