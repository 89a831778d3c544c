"""
Test cases for sanitizer and processing configuration.

Tests focus on normalisation of property lists, merging schema-derived and
explicit configs, and the conservative presets.
"""

import dataclasses
import unittest

from jsonsalve.core.rules import Rule
from jsonsalve.utils.config import (
    ProcessingConfig,
    RepairLimits,
    SanitizerConfig,
    ScanSettings,
)


class TestSanitizerConfig(unittest.TestCase):
    """Test the immutable sanitizer configuration."""

    def test_lists_become_deduplicated_tuples(self):
        config = SanitizerConfig(known_properties=["a", "b", "a"])
        self.assertEqual(config.known_properties, ("a", "b"))

    def test_is_frozen(self):
        config = SanitizerConfig()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.known_properties = ("x",)
        with self.assertRaises(TypeError):
            config.property_name_mappings["a"] = "b"

    def test_case_insensitive_membership(self):
        config = SanitizerConfig.from_properties(
            ["count", "tags"], numeric_properties=["count"], array_property_names=["tags"]
        )
        self.assertTrue(config.is_numeric_property("Count"))
        self.assertFalse(config.is_numeric_property("tags"))
        self.assertTrue(config.is_array_property("TAGS"))
        self.assertTrue(config.has_known_properties)

    def test_invalid_settings(self):
        with self.assertRaises(ValueError):
            SanitizerConfig(scan=ScanSettings(lookback_window=0))
        with self.assertRaises(ValueError):
            SanitizerConfig(limits=RepairLimits(max_diagnostics_per_strategy=-1))

    def test_merged_with(self):
        """Test property lists union and explicit settings win."""
        rule = Rule(name="r", pattern="x", replacement="y", diagnostic="r")
        derived = SanitizerConfig.from_properties(["name"], property_name_mappings={"n": "name"})
        explicit = SanitizerConfig(
            known_properties=("extra", "name"),
            property_name_mappings={"n": "nickname"},
            custom_rules=(rule,),
            limits=RepairLimits(max_diagnostics_per_strategy=5),
        )
        merged = derived.merged_with(explicit)
        self.assertEqual(merged.known_properties, ("name", "extra"))
        self.assertEqual(merged.property_name_mappings["n"], "nickname")
        self.assertEqual(merged.custom_rules, (rule,))
        self.assertEqual(merged.max_diagnostics, 5)
        self.assertIs(derived.merged_with(None), derived)

    def test_conservative_preset(self):
        config = SanitizerConfig.conservative()
        self.assertEqual(config.lookback_window, 200)
        self.assertEqual(config.limits.max_pipeline_passes, 1)


class TestProcessingConfig(unittest.TestCase):
    """Test orchestrator configuration."""

    def test_defaults(self):
        config = ProcessingConfig()
        self.assertTrue(config.apply_transforms)
        self.assertTrue(config.stop_when_parseable)
        self.assertEqual(config.max_input_size, 10 * 1024 * 1024)

    def test_rejects_non_positive_size(self):
        with self.assertRaises(ValueError):
            ProcessingConfig(max_input_size=0)

    def test_from_options_ignores_unknown(self):
        config = ProcessingConfig.from_options(apply_transforms=False, colour="blue")
        self.assertFalse(config.apply_transforms)

    def test_with_sanitizer(self):
        sanitizer = SanitizerConfig.from_properties(["a"])
        config = ProcessingConfig().with_sanitizer(sanitizer)
        self.assertIs(config.sanitizer, sanitizer)

    def test_conservative(self):
        config = ProcessingConfig.conservative()
        self.assertFalse(config.apply_transforms)
        self.assertEqual(config.sanitizer.lookback_window, 200)


if __name__ == "__main__":
    unittest.main()
