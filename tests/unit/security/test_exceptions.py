"""
Test cases for the exception hierarchy.

Tests cover:
- Base error message and mutation steps
- Parse error locations and causes
- Schema validation issues
- Regex timeout details
"""

import json
import unittest

from jsonsalve.security.exceptions import (
    ConfigurationError,
    ErrorLocation,
    InputValidationError,
    JsonSalveError,
    ParseError,
    RegexTimeoutError,
    SchemaValidationError,
)


class TestJsonSalveError(unittest.TestCase):
    """Test the base exception."""

    def test_message_and_steps(self):
        error = JsonSalveError("failed", ["step one", "step two"])
        self.assertEqual(str(error), "failed")
        self.assertEqual(error.message, "failed")
        self.assertEqual(error.mutation_steps, ("step one", "step two"))

    def test_hierarchy(self):
        """Test every error derives from JsonSalveError."""
        for cls in (ParseError, InputValidationError, SchemaValidationError, ConfigurationError):
            self.assertTrue(issubclass(cls, JsonSalveError))
        self.assertTrue(issubclass(InputValidationError, ParseError))


class TestParseError(unittest.TestCase):
    """Test parse error formatting."""

    def test_location_in_message(self):
        location = ErrorLocation(position=7, line=2, column=3, excerpt='  "a" 1 ')
        error = ParseError("Bad JSON", location=location)
        self.assertEqual(str(error), 'Bad JSON at line 2, column 3: "a" 1')

    def test_without_excerpt(self):
        error = ParseError("Bad JSON", location=ErrorLocation(0, 1, 1))
        self.assertEqual(str(error), "Bad JSON at line 1, column 1")

    def test_cause_is_chained(self):
        try:
            json.loads("{")
        except json.JSONDecodeError as exc:
            error = ParseError("Bad JSON", cause=exc)
        self.assertIs(error.__cause__, error.cause)
        self.assertIsInstance(error.cause, json.JSONDecodeError)


class TestOtherErrors(unittest.TestCase):
    """Test schema and regex errors."""

    def test_schema_validation_issues(self):
        error = SchemaValidationError("invalid", issues=[{"path": "a"}], mutation_steps=["x"])
        self.assertEqual(error.issues, [{"path": "a"}])
        self.assertEqual(error.mutation_steps, ("x",))

    def test_regex_timeout_details(self):
        error = RegexTimeoutError("a" * 150, 42, 0.5, "regex_module", "sub")
        self.assertEqual(error.operation, "sub")
        self.assertEqual(error.input_length, 42)
        self.assertIn("Regex sub timed out after 0.5s", str(error))
        self.assertIn("...", str(error))


if __name__ == "__main__":
    unittest.main()
