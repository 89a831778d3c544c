"""
Named shape classifiers for text that does not belong in JSON.

Repair rules decide what to remove or quote by asking these predicates rather
than embedding ad hoc checks, so the heuristics can be tuned in one place.
Classification is shape based (length bounds, casing, separators) instead of
fixed word lists wherever possible.
"""

import re
from collections.abc import Sequence

JSON_KEYWORDS = frozenset({"true", "false", "null"})
# Tokens that are never quoted as strings even though they are not JSON
NON_STRING_KEYWORDS = JSON_KEYWORDS | {"undefined", "NaN", "Infinity"}

_NUMBER = re.compile(r"^-?\d+(\.\d+)?([eE][+-]?\d+)?$")
_IDENTIFIER = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$]*$")
_CONSTANT = re.compile(r"^[A-Z][A-Z0-9]*(?:_[A-Z0-9]+)+$|^[A-Z]{2,}[0-9]*$")
_LIBRARY_NAME = re.compile(r"^[A-Z][A-Z0-9_.-]+$")
_SHORT_WORD = re.compile(r"^[a-z]{1,5}$")
_SENTENCE = re.compile(r"^[A-Za-z][A-Za-z0-9 ,.'!?;:()-]*$")
_KEY_VALUE_UNQUOTED = re.compile(r"^[A-Za-z_][\w.-]*\s*[:=]\s*[^\s\"{\[]")
_FIRST_PERSON = re.compile(
    r"^(?:i|i'm|i've|i'll|i\s+am|i\s+have|we|we've|we're|let\s+me|let's|here\s+is|"
    r"here's|here\s+are|note|okay|ok|sure)\b",
    re.IGNORECASE,
)
_TRUNCATION_MARKER = re.compile(
    r"^(?:\.{3,}|…|\[\s*\.{3}\s*\]|\(\s*truncated\s*\)|_TRUNCATED_|"
    r"(?:\(|\[)?\s*(?:to\s+be\s+continued|continued|truncated|rest\s+omitted|"
    r"remaining\s+items?\s+omitted|and\s+so\s+on|etc\.?)\s*(?:\.{3})?\s*(?:\)|\])?)$",
    re.IGNORECASE,
)
_AI_DISCLAIMER = re.compile(
    r"(?:AI[- ]generated|as\s+an\s+AI|language\s+model|review\s+and\s+use\s+carefully|"
    r"may\s+contain\s+(?:errors|inaccuracies)|generated\s+by\s+(?:an?\s+)?(?:AI|LLM))",
    re.IGNORECASE,
)
_ARTIFACT_PREFIX = re.compile(r"^(?:extra|llm|ai|model|gpt|claude|gemini)_[a-z0-9_]+$", re.IGNORECASE)
_ARTIFACT_SUFFIX = re.compile(
    r"_(?:thoughts?|thinking|reasoning|scratchpad|chain_of_thought)$",
    re.IGNORECASE,
)
_PRIVATE_KEY = re.compile(r"^_[a-z_]+$", re.IGNORECASE)
_YAML_KEY = re.compile(r"^[a-z][a-z0-9_]*(?:-[a-z][a-z0-9_]+)+$", re.IGNORECASE)
_STRAY_SYMBOLS = re.compile(r"^[>\]}<)|\\/#@!$%^&*~`+=]+$")
_PARENTHETICAL = re.compile(r"^\([^)]{1,30}\)$")
_ARROW_NOTE = re.compile(r"^(?:<--|-->|<-|->)\s*[^,}\]]*$")
_DASH_NOTE = re.compile(r"^-\s+[a-z]{2,15}$")
_CORRUPTION_MARKER = re.compile(
    r"^(?:extra|duplicate|dup|repeat|copy|corrupted|corrupt|retry)(?=[._\s-]|$)",
    re.IGNORECASE,
)


def is_json_keyword(token: str) -> bool:
    """``true``, ``false`` or ``null``."""
    return token in JSON_KEYWORDS


def looks_like_number(token: str) -> bool:
    """JSON-compatible number literal."""
    return _NUMBER.match(token) is not None


def looks_like_identifier(token: str) -> bool:
    return _IDENTIFIER.match(token) is not None


def looks_like_constant(token: str) -> bool:
    """ALL_CAPS constant-looking token such as ``MAX_SIZE`` or ``HTTP``."""
    return _CONSTANT.match(token) is not None


def looks_like_library_name(token: str) -> bool:
    """Upper-case artifact name such as ``JACKSON-CORE-2.12.0.JAR``."""
    return _LIBRARY_NAME.match(token) is not None and (
        "." in token or "-" in token or len(token) > 10
    )


def looks_like_stray_word(token: str) -> bool:
    """A short lowercase word that is not a JSON literal."""
    return _SHORT_WORD.match(token) is not None and token not in JSON_KEYWORDS


def looks_like_sentence(text: str, min_words: int = 3) -> bool:
    """Prose-like text: several space separated words of mostly letters."""
    stripped = text.strip()
    if not stripped or _SENTENCE.match(stripped) is None:
        return False
    words = stripped.split()
    if len(words) < min_words:
        return False
    letters = sum(ch.isalpha() for ch in stripped)
    return letters >= len(stripped.replace(" ", "")) * 0.7


def looks_like_first_person_statement(text: str) -> bool:
    """Commentary such as "I have analyzed..." or "Here is the JSON"."""
    return _FIRST_PERSON.match(text.strip()) is not None


def looks_like_truncation_marker(text: str) -> bool:
    """``...``, ``[...]``, ``(truncated)``, "to be continued" and similar."""
    return _TRUNCATION_MARKER.match(text.strip()) is not None


def looks_like_ai_disclaimer(text: str) -> bool:
    """Boilerplate such as "AI-generated content. Review and use carefully"."""
    return _AI_DISCLAIMER.search(text) is not None


def looks_like_unquoted_key_value(text: str) -> bool:
    """``key: value`` or ``key = value`` written without JSON quoting."""
    return _KEY_VALUE_UNQUOTED.match(text.strip()) is not None


def looks_like_stray_text(text: str) -> bool:
    """Any of the commentary shapes that never belong between JSON tokens."""
    stripped = text.strip()
    if not stripped:
        return False
    return (
        looks_like_stray_word(stripped)
        or looks_like_sentence(stripped)
        or looks_like_first_person_statement(stripped)
        or looks_like_truncation_marker(stripped)
        or looks_like_ai_disclaimer(stripped)
    )


def looks_like_stray_suffix(text: str) -> bool:
    """Junk glued after a closing quote, e.g. ``"value" >`` or ``"v" (required)``."""
    stripped = text.strip()
    if not stripped or stripped.endswith(":"):
        return False
    return bool(
        _STRAY_SYMBOLS.match(stripped)
        or looks_like_library_name(stripped)
        or ("_" in stripped and not looks_like_identifier(stripped))
        or looks_like_stray_word(stripped)
        or _PARENTHETICAL.match(stripped)
        or _ARROW_NOTE.match(stripped)
        or _DASH_NOTE.match(stripped)
    )


def looks_like_corruption_marker(text: str) -> bool:
    """Words a model uses when it re-attempts a value it got wrong."""
    return _CORRUPTION_MARKER.match(text.strip()) is not None


def _is_known(name: str, known_properties: Sequence[str]) -> bool:
    lowered = name.lower()
    return any(prop.lower() == lowered for prop in known_properties)


def looks_like_artifact_property(
    name: str, known_properties: Sequence[str] = ()
) -> bool:
    """
    Metadata-looking property a model adds on its own.

    Known schema properties are never artifacts. Underscore-prefixed keys only
    count when a schema says which keys are expected.
    """
    if known_properties and _is_known(name, known_properties):
        return False
    if _ARTIFACT_PREFIX.match(name) or _ARTIFACT_SUFFIX.search(name):
        return True
    return bool(known_properties) and _PRIVATE_KEY.match(name) is not None


def looks_like_non_json_key(name: str, known_properties: Sequence[str] = ()) -> bool:
    """Artifact keys plus YAML-style hyphenated keys."""
    if known_properties and _is_known(name, known_properties):
        return False
    return looks_like_artifact_property(name, known_properties) or _YAML_KEY.match(name) is not None
