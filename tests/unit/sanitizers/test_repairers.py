"""
Tests for syntax repair and structure completion.

Tests cover:
- Comment removal outside strings
- Missing, leading, doubled and trailing commas
- Objects in arrays that lost their opening brace
- Mismatched delimiters and truncated structures
"""

import json
import unittest

import pytest

from jsonsalve.sanitizers.repairers import StructureCompleter, SyntaxRepairer
from jsonsalve.utils.config import SanitizerConfig


class TestSyntaxRepairer(unittest.TestCase):
    """Test delimiter-level repairs."""

    def setUp(self):
        self.repairer = SyntaxRepairer()
        self.config = SanitizerConfig()

    def repair(self, text):
        return self.repairer.sanitize(text, self.config)

    def test_line_comment(self):
        """Test // comments are removed up to the newline."""
        result = self.repair('{"a": 1, // note\n"b": 2}')
        self.assertEqual(json.loads(result.content), {"a": 1, "b": 2})
        self.assertIn("Removed 1 comment(s)", result.diagnostics)

    def test_block_comment(self):
        """Test /* */ comments are removed."""
        result = self.repair('{"a": /* the answer */ 42}')
        self.assertEqual(json.loads(result.content), {"a": 42})

    def test_url_in_string_is_not_a_comment(self):
        """Test // inside a string is content."""
        text = '{"url": "http://example.com"}'
        self.assertFalse(self.repair(text).changed)

    def test_missing_comma_between_lines(self):
        """Test a comma is inserted between values on separate lines."""
        result = self.repair('{"a": 1\n"b": 2}')
        self.assertEqual(result.content, '{"a": 1,\n"b": 2}')
        self.assertEqual(result.diagnostics, ("Inserted missing comma between lines",))

    def test_missing_comma_between_structures(self):
        """Test adjacent objects get a separating comma."""
        result = self.repair('[{"a": 1} {"b": 2}]')
        self.assertEqual(result.content, '[{"a": 1}, {"b": 2}]')

    def test_missing_object_brace_in_array(self):
        """Test a lost '{' is restored for the next object."""
        result = self.repair('[{"a": 1}, "b": 2}]')
        self.assertEqual(json.loads(result.content), [{"a": 1}, {"b": 2}])
        self.assertIn("Inserted missing '{' for object in array", result.diagnostics)

    def test_trailing_comma(self):
        result = self.repair("[1, 2,]")
        self.assertEqual(result.content, "[1, 2]")

    def test_doubled_and_leading_commas(self):
        """Test stray commas are dropped."""
        self.assertEqual(self.repair("[1,, 2]").content, "[1, 2]")
        self.assertEqual(self.repair("[, 1]").content, "[ 1]")

    def test_comma_inside_string_kept(self):
        """Test commas inside strings are never touched."""
        text = '{"a": "x,]"}'
        self.assertFalse(self.repair(text).changed)


class TestStructureCompleter:
    """Test delimiter balancing and truncation completion."""

    @pytest.mark.parametrize(
        "text,expected,diagnostic",
        [
            ('{"a": [1, 2', {"a": [1, 2]}, "Closed 2 unclosed structure(s)"),
            ('{"a": "hel', {"a": "hel"}, "Closed unterminated string"),
            ('{"a":', {"a": None}, "Inserted null for value cut off by truncation"),
            ('{"a": 1, "b"', {"a": 1, "b": None}, "Inserted null for property cut off by truncation"),
            ("[1, 2,", [1, 2], "Removed dangling comma before truncation point"),
            ('{"a": [1, 2}', {"a": [1, 2]}, "Inserted 1 missing closing delimiter(s)"),
            ("[1, 2}", [1, 2], "Replaced 1 mismatched closing delimiter(s)"),
            ('{"a": 1}}', {"a": 1}, "Removed 1 unmatched closing delimiter(s)"),
        ],
    )
    def test_completion(self, text, expected, diagnostic):
        """Truncated or unbalanced text is closed into valid JSON."""
        result = StructureCompleter().sanitize(text, SanitizerConfig())
        assert result.changed
        assert json.loads(result.content) == expected
        assert diagnostic in result.diagnostics

    def test_trailing_backslash_dropped(self):
        """An escape cut off by truncation does not escape the closing quote."""
        result = StructureCompleter().sanitize('{"a": "x\\', SanitizerConfig())
        assert json.loads(result.content) == {"a": "x"}

    def test_balanced_text_unchanged(self):
        """Balanced text with brackets inside strings is left alone."""
        text = '{"a": "[{", "b": [1]}'
        result = StructureCompleter().sanitize(text, SanitizerConfig())
        assert not result.changed
        assert result.content == text


if __name__ == "__main__":
    unittest.main()
