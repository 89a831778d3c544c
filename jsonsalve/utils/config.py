"""
Configuration for jsonsalve sanitization and processing.

This module defines the immutable sanitizer configuration that is built once per
target schema and shared by every repair strategy, plus the tuning settings for
the scanner, the property name matcher and the repair limits.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..core.rules import Rule


def _as_tuple(values: Optional[Iterable[str]]) -> tuple[str, ...]:
    """Normalise an iterable of names to an ordered, de-duplicated tuple."""
    if not values:
        return ()
    seen: dict[str, None] = {}
    for value in values:
        if value not in seen:
            seen[value] = None
    return tuple(seen)


def _as_mapping(values: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class ScanSettings:
    """Lexical scanner settings."""
    lookback_window: int = 500


@dataclass(frozen=True)
class MatchSettings:
    """Property name matcher thresholds."""
    min_prefix_length: int = 2
    min_contains_length: int = 4
    min_fuzzy_length: int = 4
    base_fuzzy_threshold: int = 2
    max_fuzzy_threshold: int = 5


@dataclass(frozen=True)
class RepairLimits:
    """Bounds on diagnostics and fixed-point iteration."""
    max_diagnostics_per_strategy: int = 20
    max_total_diagnostics: int = 500
    max_rule_passes: int = 10
    max_fixed_point_iterations: int = 25
    max_pipeline_passes: int = 5


@dataclass(frozen=True)
class SanitizerConfig:
    """
    Immutable schema-derived configuration passed to every repair strategy.

    Sequences are stored as tuples and lookup tables as read-only mappings, so a
    single instance can be shared between concurrent processing calls.
    """

    known_properties: tuple[str, ...] = ()
    numeric_properties: tuple[str, ...] = ()
    array_property_names: tuple[str, ...] = ()

    # Legacy exact-match fallbacks
    property_name_mappings: Mapping[str, str] = field(default_factory=dict)
    property_typo_corrections: Mapping[str, str] = field(default_factory=dict)
    package_name_prefix_replacements: Mapping[str, str] = field(default_factory=dict)

    custom_rules: tuple["Rule", ...] = ()

    scan: ScanSettings = field(default_factory=ScanSettings)
    matching: MatchSettings = field(default_factory=MatchSettings)
    limits: RepairLimits = field(default_factory=RepairLimits)

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "known_properties", _as_tuple(self.known_properties))
        object.__setattr__(
            self, "numeric_properties", _as_tuple(self.numeric_properties)
        )
        object.__setattr__(
            self, "array_property_names", _as_tuple(self.array_property_names)
        )
        for name in (
            "property_name_mappings",
            "property_typo_corrections",
            "package_name_prefix_replacements",
        ):
            object.__setattr__(self, name, _as_mapping(getattr(self, name)))
        object.__setattr__(self, "custom_rules", tuple(self.custom_rules or ()))

        if self.scan.lookback_window <= 0:
            raise ValueError("lookback_window must be positive")
        if self.limits.max_diagnostics_per_strategy < 0:
            raise ValueError("max_diagnostics_per_strategy must not be negative")

    # Convenience properties
    @property
    def lookback_window(self) -> int:
        """Characters of preceding text handed to rule context checks."""
        return self.scan.lookback_window

    @property
    def max_diagnostics(self) -> int:
        """Diagnostics kept per strategy."""
        return self.limits.max_diagnostics_per_strategy

    @property
    def has_known_properties(self) -> bool:
        """Whether schema metadata is available for property matching."""
        return bool(self.known_properties)

    def is_numeric_property(self, name: str) -> bool:
        """Case-insensitive membership test against numeric_properties."""
        lowered = name.lower()
        return any(prop.lower() == lowered for prop in self.numeric_properties)

    def is_array_property(self, name: str) -> bool:
        """Case-insensitive membership test against array_property_names."""
        lowered = name.lower()
        return any(prop.lower() == lowered for prop in self.array_property_names)

    def merged_with(self, override: Optional["SanitizerConfig"]) -> "SanitizerConfig":
        """
        Combine this (usually schema-derived) config with an explicit one.

        Property lists are unioned with this config's entries first; lookup
        tables and settings from the override take precedence.
        """
        if override is None:
            return self
        return replace(
            self,
            known_properties=self.known_properties + override.known_properties,
            numeric_properties=self.numeric_properties + override.numeric_properties,
            array_property_names=(
                self.array_property_names + override.array_property_names
            ),
            property_name_mappings={
                **self.property_name_mappings,
                **override.property_name_mappings,
            },
            property_typo_corrections={
                **self.property_typo_corrections,
                **override.property_typo_corrections,
            },
            package_name_prefix_replacements={
                **self.package_name_prefix_replacements,
                **override.package_name_prefix_replacements,
            },
            custom_rules=self.custom_rules + override.custom_rules,
            scan=override.scan,
            matching=override.matching,
            limits=override.limits,
        )

    @classmethod
    def from_properties(
        cls,
        known_properties: Iterable[str],
        *,
        numeric_properties: Iterable[str] = (),
        array_property_names: Iterable[str] = (),
        **options: Any,
    ) -> "SanitizerConfig":
        """Create a config from plain property name lists."""
        return cls(
            known_properties=tuple(known_properties),
            numeric_properties=tuple(numeric_properties),
            array_property_names=tuple(array_property_names),
            **options,
        )

    @classmethod
    def conservative(cls) -> "SanitizerConfig":
        """Create a config with a tight repair budget and short lookback."""
        return cls(
            scan=ScanSettings(lookback_window=200),
            limits=RepairLimits(
                max_rule_passes=3,
                max_fixed_point_iterations=5,
                max_pipeline_passes=1,
            ),
        )


@dataclass(frozen=True)
class ProcessingConfig:
    """Configuration for the processing orchestrator."""

    sanitizer: SanitizerConfig = field(default_factory=SanitizerConfig)
    max_input_size: int = 10 * 1024 * 1024
    apply_transforms: bool = True
    stop_when_parseable: bool = True
    log_repairs: bool = True

    def __post_init__(self) -> None:
        if self.max_input_size <= 0:
            raise ValueError("max_input_size must be positive")

    def with_sanitizer(self, sanitizer: SanitizerConfig) -> "ProcessingConfig":
        """Return a copy using a different sanitizer config."""
        return replace(self, sanitizer=sanitizer)

    @classmethod
    def conservative(cls) -> "ProcessingConfig":
        """Create a conservative processing configuration."""
        return cls(sanitizer=SanitizerConfig.conservative(), apply_transforms=False)

    @classmethod
    def from_options(cls, **options: Any) -> "ProcessingConfig":
        """Create a config from flat keyword options, ignoring unknown names."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in options.items() if k in names})
