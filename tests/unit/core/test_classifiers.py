"""
Tests for the shape classifiers used by repair rules.

Tests cover:
- Token shapes (numbers, identifiers, constants, library names)
- Commentary shapes (sentences, first-person text, truncation markers)
- Stray suffixes and corruption markers
- Artifact and non-JSON property names
"""

import pytest

from jsonsalve.core import classifiers


class TestTokenShapes:
    """Token level predicates."""

    @pytest.mark.parametrize("token,expected", [("1", True), ("-1.5e3", True), ("1.", False), ("0x1", False)])
    def test_number(self, token, expected):
        """JSON number literals only."""
        assert classifiers.looks_like_number(token) is expected

    def test_identifier(self):
        """Identifiers may start with a letter, underscore or dollar."""
        assert classifiers.looks_like_identifier("$ref")
        assert classifiers.looks_like_identifier("_private")
        assert not classifiers.looks_like_identifier("9lives")

    @pytest.mark.parametrize("token,expected", [("MAX_SIZE", True), ("HTTP", True), ("Http", False), ("A", False)])
    def test_constant(self, token, expected):
        """All-caps constants."""
        assert classifiers.looks_like_constant(token) is expected

    def test_library_name(self):
        """Upper-case artifact names need a separator or length."""
        assert classifiers.looks_like_library_name("JACKSON-CORE-2.12.0.JAR")
        assert not classifiers.looks_like_library_name("ABC")

    def test_stray_word(self):
        """Short lowercase words other than JSON literals."""
        assert classifiers.looks_like_stray_word("abc")
        assert not classifiers.looks_like_stray_word("true")
        assert not classifiers.looks_like_stray_word("abcdefg")

    def test_json_keyword(self):
        assert classifiers.is_json_keyword("null")
        assert not classifiers.is_json_keyword("None")


class TestCommentaryShapes:
    """Prose that does not belong between JSON tokens."""

    def test_sentence(self):
        """Three or more words of mostly letters."""
        assert classifiers.looks_like_sentence("This is a sentence.")
        assert not classifiers.looks_like_sentence("two words")
        assert not classifiers.looks_like_sentence('"quoted": 1')

    def test_first_person(self):
        assert classifiers.looks_like_first_person_statement("Here is the JSON you asked for")
        assert classifiers.looks_like_first_person_statement("I have analyzed the code")
        assert not classifiers.looks_like_first_person_statement("name")

    @pytest.mark.parametrize(
        "text", ["...", "[...]", "(truncated)", "to be continued", "etc.", "…"]
    )
    def test_truncation_markers(self, text):
        """Common ways a model marks omitted content."""
        assert classifiers.looks_like_truncation_marker(text)

    def test_not_truncation_marker(self):
        assert not classifiers.looks_like_truncation_marker("value")

    def test_ai_disclaimer(self):
        assert classifiers.looks_like_ai_disclaimer(
            "AI-generated content. Review and use carefully."
        )
        assert not classifiers.looks_like_ai_disclaimer("Parses configuration files")

    def test_unquoted_key_value(self):
        assert classifiers.looks_like_unquoted_key_value("name: value")
        assert classifiers.looks_like_unquoted_key_value("retries = 3")
        assert not classifiers.looks_like_unquoted_key_value('"name": "value"')

    def test_stray_text(self):
        """Any commentary shape counts as stray text."""
        assert classifiers.looks_like_stray_text("Let me know if you need more")
        assert not classifiers.looks_like_stray_text("   ")


class TestSuffixesAndMarkers:
    """Junk glued to values."""

    @pytest.mark.parametrize("text", [">", "(required)", "-> see below", "JACKSON-CORE-2.12.JAR"])
    def test_stray_suffix(self, text):
        assert classifiers.looks_like_stray_suffix(text)

    @pytest.mark.parametrize("text", ["", "key:", "  "])
    def test_not_stray_suffix(self, text):
        assert not classifiers.looks_like_stray_suffix(text)

    def test_corruption_marker(self):
        """Retry words must stand alone or be followed by a separator."""
        assert classifiers.looks_like_corruption_marker("extra")
        assert classifiers.looks_like_corruption_marker("duplicate_value")
        assert not classifiers.looks_like_corruption_marker("extraordinary")


class TestPropertyNames:
    """Artifact and non-JSON key detection."""

    @pytest.mark.parametrize("name", ["llm_notes", "model_reasoning", "analysis_thoughts"])
    def test_artifact_shapes(self, name):
        assert classifiers.looks_like_artifact_property(name)

    def test_known_properties_are_never_artifacts(self):
        assert not classifiers.looks_like_artifact_property("llm_notes", ["llm_notes"])

    def test_private_keys_need_schema(self):
        """Underscore keys only count when a schema is known."""
        assert not classifiers.looks_like_artifact_property("_meta")
        assert classifiers.looks_like_artifact_property("_meta", ["name"])

    def test_non_json_key(self):
        assert classifiers.looks_like_non_json_key("some-key")
        assert not classifiers.looks_like_non_json_key("name")
