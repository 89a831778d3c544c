"""
Tests for stray content removal.

Tests cover:
- Commentary lines and stray words between tokens
- Binary corruption markers and junk after string values
- YAML-style lines and artifact properties
"""

import json
import unittest

from jsonsalve.sanitizers.stray_content import StrayContentRemover
from jsonsalve.utils.config import SanitizerConfig


class TestStrayContentRemover(unittest.TestCase):
    """Test removal of content that is not JSON."""

    def setUp(self):
        self.remover = StrayContentRemover()

    def clean(self, text, config=None):
        return self.remover.sanitize(text, config or SanitizerConfig())

    def test_commentary_line(self):
        result = self.clean('{\n"a": 1,\nI think this is right\n"b": 2\n}')
        self.assertEqual(json.loads(result.content), {"a": 1, "b": 2})
        self.assertIn('Removed commentary line "I think this is right"', result.diagnostics)

    def test_stray_word_before_property(self):
        result = self.clean('{"a": 1, note "b": 2}')
        self.assertEqual(result.content, '{"a": 1, "b": 2}')
        self.assertIn('Removed stray text "note" before property', result.diagnostics)

    def test_binary_marker(self):
        result = self.clean('{"a": 1<b_bin_42>}')
        self.assertEqual(result.content, '{"a": 1}')

    def test_suffix_after_string_value(self):
        result = self.clean('{"a": "value" (required), "b": 1}')
        self.assertEqual(json.loads(result.content), {"a": "value", "b": 1})
        self.assertIn('Removed stray text "(required)" after string value', result.diagnostics)

    def test_yaml_line(self):
        result = self.clean('{\n"a": 1,\nsome-key: value\n"b": 2\n}')
        self.assertEqual(json.loads(result.content), {"a": 1, "b": 2})

    def test_artifact_property(self):
        """Test model metadata keys are dropped with their values."""
        result = self.clean('{"name": "x", "llm_notes": {"t": [1, 2]}}')
        self.assertEqual(result.content, '{"name": "x"}')
        self.assertIn('Removed artifact property "llm_notes"', result.diagnostics)

    def test_leading_artifact_property(self):
        """Test the comma after a first-position artifact is removed."""
        result = self.clean('{"model_reasoning": "because", "name": "x"}')
        self.assertEqual(json.loads(result.content), {"name": "x"})

    def test_known_property_is_not_artifact(self):
        config = SanitizerConfig.from_properties(["llm_notes"])
        text = '{"llm_notes": "keep"}'
        self.assertFalse(self.clean(text, config).changed)

    def test_prose_inside_strings_kept(self):
        text = '{"a": "I think this is right", "b": "note"}'
        self.assertFalse(self.clean(text).changed)


if __name__ == "__main__":
    unittest.main()
