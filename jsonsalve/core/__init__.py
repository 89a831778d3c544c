"""
jsonsalve core building blocks.

This package provides the lexical scanner, the property name matcher, the
rule executor and the result types shared by every repair strategy.
"""

from .diagnostics import DiagnosticCollector
from .property_matcher import PropertyNameMatcher, match_property_name
from .results import (
    Failure,
    MatchType,
    ProcessingResult,
    PropertyMatchResult,
    StrategyResult,
    Success,
)
from .rules import Rule, RuleContext, execute_rules
from .scanner import (
    LexicalIndex,
    StringBoundaryChecker,
    is_directly_in_array,
    is_in_array,
    is_in_string,
    lexical_index,
)

__all__ = [
    "DiagnosticCollector",
    "Failure",
    "LexicalIndex",
    "MatchType",
    "ProcessingResult",
    "PropertyMatchResult",
    "PropertyNameMatcher",
    "Rule",
    "RuleContext",
    "StrategyResult",
    "StringBoundaryChecker",
    "Success",
    "execute_rules",
    "is_directly_in_array",
    "is_in_array",
    "is_in_string",
    "lexical_index",
    "match_property_name",
]
