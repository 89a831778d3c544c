"""Tests for the bounded diagnostic collector."""

import unittest

from jsonsalve.core.diagnostics import DEFAULT_MAX_DIAGNOSTICS, DiagnosticCollector


class TestDiagnosticCollector(unittest.TestCase):
    """Test capacity, ordering and merging."""

    def test_records_in_order(self):
        """Test diagnostics keep insertion order."""
        collector = DiagnosticCollector()
        collector.add("first")
        collector.extend(["second", "third"])
        self.assertEqual(collector.messages, ("first", "second", "third"))
        self.assertEqual(len(collector), 3)
        self.assertTrue(collector)

    def test_cap_drops_descriptions(self):
        """Test messages past the cap are counted but not stored."""
        collector = DiagnosticCollector(max_diagnostics=20)
        collector.extend(f"fix {i}" for i in range(1500))
        self.assertEqual(len(collector.messages), 20)
        self.assertEqual(collector.stats.recorded, 20)
        self.assertEqual(collector.stats.dropped, 1480)
        self.assertEqual(collector.stats.total, 1500)
        self.assertTrue(collector.is_full)

    def test_merge_keeps_drop_count(self):
        """Test merging carries over the other collector's drops."""
        inner = DiagnosticCollector(max_diagnostics=1)
        inner.extend(["a", "b", "c"])
        outer = DiagnosticCollector(max_diagnostics=10)
        outer.merge(inner)
        self.assertEqual(outer.messages, ("a",))
        self.assertEqual(outer.stats.dropped, 2)

    def test_messages_is_snapshot(self):
        """Test the returned tuple does not change with later adds."""
        collector = DiagnosticCollector()
        snapshot = collector.messages
        collector.add("later")
        self.assertEqual(snapshot, ())

    def test_clear(self):
        """Test clear resets messages and stats."""
        collector = DiagnosticCollector()
        collector.add("x")
        collector.clear()
        self.assertFalse(collector)
        self.assertEqual(collector.stats.total, 0)

    def test_default_cap(self):
        """Test the default capacity."""
        self.assertEqual(DiagnosticCollector().max_diagnostics, DEFAULT_MAX_DIAGNOSTICS)


if __name__ == "__main__":
    unittest.main()
