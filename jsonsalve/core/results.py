"""
Result value types shared across jsonsalve.

``StrategyResult`` is returned by every repair strategy, ``PropertyMatchResult``
by the property name matcher and ``ProcessingResult`` (``Success`` or
``Failure``) by the processing orchestrator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

from ..security.exceptions import JsonSalveError

T = TypeVar("T")


@dataclass(frozen=True)
class StrategyResult:
    """Output of a single repair strategy."""

    content: str
    changed: bool
    diagnostics: tuple[str, ...] = ()

    @classmethod
    def unchanged(cls, content: str) -> "StrategyResult":
        """Result for a strategy that found nothing to repair."""
        return cls(content=content, changed=False)


class MatchType(str, Enum):
    """How a property name fragment was resolved."""

    EXACT = "exact"
    PREFIX = "prefix"
    SUFFIX = "suffix"
    CONTAINS = "contains"
    FUZZY = "fuzzy"
    NONE = "none"


@dataclass(frozen=True)
class PropertyMatchResult:
    """Best known property for a fragment, with an informational confidence."""

    matched: Optional[str]
    match_type: MatchType
    confidence: float

    @classmethod
    def no_match(cls) -> "PropertyMatchResult":
        """The empty match."""
        return cls(matched=None, match_type=MatchType.NONE, confidence=0.0)

    def __bool__(self) -> bool:
        return self.matched is not None


@dataclass(frozen=True)
class Success(Generic[T]):
    """Data recovered and validated successfully."""

    data: T
    mutation_steps: tuple[str, ...] = field(default_factory=tuple)

    success = True

    @property
    def was_repaired(self) -> bool:
        """Whether any repair or transform touched the response."""
        return bool(self.mutation_steps)


@dataclass(frozen=True)
class Failure:
    """Processing stopped at a terminal stage."""

    error: JsonSalveError
    mutation_steps: tuple[str, ...] = field(default_factory=tuple)

    success = False

    @property
    def was_repaired(self) -> bool:
        """Whether repairs were attempted before the failure."""
        return bool(self.mutation_steps)


ProcessingResult = Union[Success[Any], Failure]
