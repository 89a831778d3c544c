"""
Test cases for production model-output scenarios.

These tests run realistic near-JSON responses through the full processing
flow: curly quotes, concatenated keys, bare array elements, truncated arrays,
echoed schema definitions and unrecoverable input.
"""

import json
import unittest

from pydantic import BaseModel

import jsonsalve
from jsonsalve.security.exceptions import InputValidationError, ParseError


class Widget(BaseModel):
    name: str


class TestRecoverableResponses(unittest.TestCase):
    """Test responses the pipeline recovers."""

    def test_curly_quotes(self):
        """Test typographic quotes around keys and values."""
        raw = "{“name”: ‘Widget’}"
        with self.assertRaises(json.JSONDecodeError):
            json.loads(raw)

        sanitized = jsonsalve.sanitize(raw)
        self.assertTrue(sanitized.changed)
        self.assertEqual(sanitized.content, '{"name": "Widget"}')

        result = jsonsalve.process(raw, target_schema=Widget)
        self.assertTrue(result.success)
        self.assertEqual(result.data, Widget(name="Widget"))
        self.assertTrue(result.was_repaired)

    def test_concatenated_key(self):
        """Test a key split into concatenated string fragments."""
        result = jsonsalve.process('{"na" + "me": "Widget"}')
        self.assertTrue(result.success)
        self.assertEqual(result.data, {"name": "Widget"})

    def test_bare_array_element(self):
        """Test an unquoted identifier between quoted array elements."""
        result = jsonsalve.process('["alpha", beta, "gamma"]')
        self.assertTrue(result.success)
        self.assertEqual(result.data, ["alpha", "beta", "gamma"])

    def test_truncated_trailing_item(self):
        """Test an obviously incomplete last object is dropped."""
        raw = (
            '[{"name":"a","value":1,"note":"x"},'
            '{"name":"b","value":2,"note":"y"},'
            '{"name":"c"}]'
        )
        result = jsonsalve.process(raw)
        self.assertTrue(result.success)
        self.assertEqual([item["name"] for item in result.data], ["a", "b"])
        self.assertEqual(result.mutation_steps, ("Removed incomplete trailing array item",))

    def test_schema_wrapper_echo(self):
        """Test the model echoing the schema with values in descriptions."""
        raw = (
            '{"type":"object","properties":'
            '{"purpose":{"type":"string","description":"Parses input"}}}'
        )
        result = jsonsalve.process(raw)
        self.assertTrue(result.success)
        self.assertEqual(result.data, {"purpose": "Parses input"})
        self.assertEqual(
            result.mutation_steps, ("Unwrapped JSON Schema definition into data",)
        )

    def test_long_response_with_bare_elements(self):
        """Test array elements stay elements in a long multi-line response."""
        item = '{"name": "x", "type": "y", "values": [a, b, c], note: \'hi\'},\n'
        raw = "[" + item * 10 + "]"
        sanitized = jsonsalve.sanitize(raw)
        self.assertNotIn(": null", sanitized.content)

        result = jsonsalve.process(raw)
        self.assertTrue(result.success)
        self.assertEqual(len(result.data), 10)
        for entry in result.data:
            self.assertEqual(entry["values"], ["a", "b", "c"])
            self.assertEqual(entry["note"], "hi")

    def test_markdown_wrapped_response(self):
        """Test a fenced response with several kinds of damage."""
        raw = "```json\n{name: 'x', 'count': 3,}\n```"
        result = jsonsalve.process(raw)
        self.assertTrue(result.success)
        self.assertEqual(result.data, {"name": "x", "count": 3})
        self.assertEqual(result.mutation_steps[0], "Removed 2 markdown code fence marker(s)")


class TestUnrecoverableResponses(unittest.TestCase):
    """Test failures are returned, not raised."""

    def test_binary_garbage(self):
        result = jsonsalve.process("\x00\x01\x02\x7f\xfe\xff garbage")
        self.assertFalse(result.success)
        self.assertIsInstance(result.error, ParseError)
        self.assertIsInstance(result.error, InputValidationError)
        self.assertTrue(result.mutation_steps)

    def test_schema_mismatch(self):
        result = jsonsalve.process('{"title": "no name here"}', target_schema=Widget)
        self.assertFalse(result.success)
        self.assertIsInstance(result.error, jsonsalve.SchemaValidationError)


class TestPipelineProperties(unittest.TestCase):
    """Test properties that hold for any input."""

    def test_valid_json_is_untouched(self):
        text = '{"a": [1, 2, {"b": null}], "c": "x, y"}'
        sanitized = jsonsalve.sanitize(text)
        self.assertFalse(sanitized.changed)
        self.assertEqual(sanitized.content, text)
        self.assertEqual(sanitized.diagnostics, ())

    def test_idempotence(self):
        raws = [
            "{“name”: ‘Widget’}",
            '["alpha", beta, "gamma"]',
            "```json\n{name: 'x', 'count': 3,}\n```",
        ]
        for raw in raws:
            with self.subTest(raw=raw):
                first = jsonsalve.sanitize(raw)
                second = jsonsalve.sanitize(first.content)
                self.assertEqual(second.content, first.content)
                self.assertFalse(second.changed)

    def test_diagnostics_are_capped(self):
        """Test 1200 identical repairs yield at most 20 descriptions."""
        raw = "[" + ", ".join(["[1,]"] * 1200) + "]"
        result = jsonsalve.process(raw)
        self.assertTrue(result.success)
        self.assertEqual(len(result.data), 1200)
        self.assertLessEqual(len(result.mutation_steps), 20)


if __name__ == "__main__":
    unittest.main()
