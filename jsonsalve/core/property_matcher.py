"""
Resolution of corrupted property name fragments against known names.

A fragment is tried against a cascade of strategies, first success wins:
exact, prefix, suffix, normalized identifier, contains and edit-distance
fuzzy matching. One and two character fragments skip the cascade and use a
small table of common truncations instead.
"""

import logging
import re
from collections.abc import Sequence
from typing import Optional

from ..utils.config import MatchSettings
from .results import MatchType, PropertyMatchResult

logger = logging.getLogger(__name__)

# Used when the caller supplies no known properties
DEFAULT_COMMON_PROPERTIES: tuple[str, ...] = (
    "name",
    "type",
    "value",
    "description",
    "purpose",
    "id",
    "values",
    "types",
    "names",
    "parameters",
    "returnType",
)

COMMON_SHORT_FRAGMENTS: dict[str, tuple[str, ...]] = {
    "n": ("name",),
    "na": ("name",),
    "ty": ("type",),
    "va": ("value",),
    "id": ("id",),
    # Truncated endings
    "es": ("values", "types", "names", "codeSmells"),
    "ue": ("value", "true"),
    "pe": ("type", "scope"),
}

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_SEPARATORS = re.compile(r"[-_]")
_PROPERTY_NAME = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$.-]*$")
_IDENTIFIER_SEGMENT = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$]*$")


def normalize_identifier(identifier: str) -> str:
    """
    Strip naming-convention separators and lowercase.

    ``userName``, ``user_name``, ``user-name`` and ``UserName`` all normalise
    to ``username``.
    """
    if not identifier:
        return ""
    with_separators = _CAMEL_BOUNDARY.sub(r"\1_\2", identifier)
    return _SEPARATORS.sub("", with_separators).lower()


def levenshtein_distance(first: str, second: str) -> int:
    """Edit distance between two strings using a rolling row."""
    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)
    if len(first) < len(second):
        first, second = second, first

    previous = list(range(len(second) + 1))
    for i, char_a in enumerate(first, start=1):
        current = [i]
        for j, char_b in enumerate(second, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
            )
        previous = current
    return previous[-1]


def fuzzy_threshold(length: int, settings: MatchSettings) -> int:
    """Maximum edit distance allowed for a fragment of ``length``."""
    if length < 6:
        return settings.base_fuzzy_threshold
    if length <= 10:
        return 2
    return min(settings.max_fuzzy_threshold, max(2, round(length * 0.2)))


def looks_like_property_name(value: str) -> bool:
    """Check if a string looks like a JSON property identifier."""
    return bool(value) and _PROPERTY_NAME.match(value) is not None


def looks_like_dot_separated_identifier(value: str) -> bool:
    """Check if a string looks like ``package.name.Style`` identifier."""
    if not value or len(value) < 3 or "." not in value:
        return False
    segments = value.split(".")
    return len(segments) >= 2 and all(
        _IDENTIFIER_SEGMENT.match(segment) for segment in segments
    )


def infer_from_short_fragment(
    fragment: str, known_properties: Sequence[str] = ()
) -> Optional[str]:
    """
    Look up a one or two character fragment in the common truncation table.

    With known properties the table candidates are filtered against them and
    the known casing is returned; without, the first candidate is used.
    """
    candidates = COMMON_SHORT_FRAGMENTS.get(fragment.lower())
    if not candidates:
        return None
    if not known_properties:
        return candidates[0]
    by_lower = {prop.lower(): prop for prop in known_properties}
    for candidate in candidates:
        if candidate.lower() in by_lower:
            return by_lower[candidate.lower()]
    return None


class PropertyNameMatcher:
    """Runs the matching cascade with a fixed set of thresholds."""

    def __init__(self, settings: Optional[MatchSettings] = None):
        self.settings = settings or MatchSettings()

    def match(
        self, fragment: str, known_properties: Sequence[str]
    ) -> PropertyMatchResult:
        """Find the best known property for ``fragment``."""
        if not fragment:
            return PropertyMatchResult.no_match()
        if not known_properties:
            logger.debug(
                "No known properties supplied, matching %r against common names",
                fragment,
            )
            known_properties = DEFAULT_COMMON_PROPERTIES

        lowered = fragment.lower()
        for prop in known_properties:
            if prop.lower() == lowered:
                return PropertyMatchResult(prop, MatchType.EXACT, 1.0)

        if len(fragment) <= 2:
            return self._match_short(fragment, known_properties)

        for step in (
            self._match_prefix,
            self._match_suffix,
            self._match_normalized,
            self._match_contains,
            self._match_fuzzy,
        ):
            result = step(fragment, known_properties)
            if result:
                return result
        return PropertyMatchResult.no_match()

    @staticmethod
    def _match_short(
        fragment: str, known_properties: Sequence[str]
    ) -> PropertyMatchResult:
        inferred = infer_from_short_fragment(fragment, known_properties)
        if inferred is None:
            return PropertyMatchResult.no_match()
        match_type = (
            MatchType.PREFIX
            if inferred.lower().startswith(fragment.lower())
            else MatchType.SUFFIX
        )
        return PropertyMatchResult(inferred, match_type, 0.5)

    def _match_prefix(
        self, fragment: str, known_properties: Sequence[str]
    ) -> PropertyMatchResult:
        if len(fragment) < self.settings.min_prefix_length:
            return PropertyMatchResult.no_match()
        lowered = fragment.lower()
        candidates = [p for p in known_properties if p.lower().startswith(lowered)]
        if not candidates:
            return PropertyMatchResult.no_match()
        best = min(candidates, key=len)
        confidence = min(0.9, len(fragment) / len(best) + 0.3)
        return PropertyMatchResult(best, MatchType.PREFIX, confidence)

    def _match_suffix(
        self, fragment: str, known_properties: Sequence[str]
    ) -> PropertyMatchResult:
        if len(fragment) < self.settings.min_prefix_length:
            return PropertyMatchResult.no_match()
        lowered = fragment.lower()
        candidates = [p for p in known_properties if p.lower().endswith(lowered)]
        if not candidates:
            return PropertyMatchResult.no_match()
        best = min(candidates, key=len)
        confidence = min(0.85, len(fragment) / len(best) + 0.2)
        return PropertyMatchResult(best, MatchType.SUFFIX, confidence)

    def _match_normalized(
        self, fragment: str, known_properties: Sequence[str]
    ) -> PropertyMatchResult:
        normalized = normalize_identifier(fragment)
        if len(normalized) < self.settings.min_prefix_length:
            return PropertyMatchResult.no_match()

        for prop in known_properties:
            if normalize_identifier(prop) == normalized:
                return PropertyMatchResult(prop, MatchType.FUZZY, 0.9)

        candidates = [
            p for p in known_properties if normalize_identifier(p).startswith(normalized)
        ]
        if not candidates:
            return PropertyMatchResult.no_match()
        best = min(candidates, key=len)
        confidence = min(0.85, len(normalized) / len(normalize_identifier(best)) + 0.2)
        return PropertyMatchResult(best, MatchType.PREFIX, confidence)

    def _match_contains(
        self, fragment: str, known_properties: Sequence[str]
    ) -> PropertyMatchResult:
        if len(fragment) < self.settings.min_contains_length:
            return PropertyMatchResult.no_match()
        lowered = fragment.lower()
        candidates: list[tuple[int, int, str]] = []
        for prop in known_properties:
            prop_lower = prop.lower()
            position = prop_lower.find(lowered, 1)
            # Strictly interior: neither at the start nor touching the end
            if position > 0 and position + len(lowered) < len(prop_lower):
                candidates.append((len(prop), position, prop))
        if not candidates:
            return PropertyMatchResult.no_match()
        length, _, best = min(candidates)
        confidence = min(0.75, len(fragment) / length + 0.1)
        return PropertyMatchResult(best, MatchType.CONTAINS, confidence)

    def _match_fuzzy(
        self, fragment: str, known_properties: Sequence[str]
    ) -> PropertyMatchResult:
        if len(fragment) < self.settings.min_fuzzy_length:
            return PropertyMatchResult.no_match()
        lowered = fragment.lower()
        threshold = fuzzy_threshold(len(fragment), self.settings)

        best: Optional[tuple[int, str]] = None
        for prop in known_properties:
            if abs(len(prop) - len(fragment)) > threshold:
                continue
            distance = levenshtein_distance(lowered, prop.lower())
            if distance <= threshold and (best is None or distance < best[0]):
                best = (distance, prop)

        if best is None:
            return PropertyMatchResult.no_match()
        distance, prop = best
        confidence = max(0.5, 1 - distance / max(len(fragment), len(prop)))
        return PropertyMatchResult(prop, MatchType.FUZZY, confidence)


def match_property_name(
    fragment: str,
    known_properties: Sequence[str],
    settings: Optional[MatchSettings] = None,
) -> PropertyMatchResult:
    """Match ``fragment`` against ``known_properties`` with default thresholds."""
    return PropertyNameMatcher(settings).match(fragment, known_properties)
