"""
Base classes for repair strategies.

Strategies either declare a rule table (``RuleBasedStrategy``) or implement
``sanitize`` directly and report repairs through a ``DiagnosticCollector``.
"""

from collections.abc import Sequence

from ..core.diagnostics import DiagnosticCollector
from ..core.results import StrategyResult
from ..core.rules import Rule, execute_rules
from ..utils.config import SanitizerConfig


class SanitizerStrategyBase:
    """Base class for repair strategies with common functionality."""

    name = "strategy"

    def should_apply(self, _config: SanitizerConfig) -> bool:
        """Default implementation - always apply. Override in subclasses."""
        return True

    def sanitize(self, text: str, config: SanitizerConfig) -> StrategyResult:
        """Repair the text. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement sanitize()")

    @staticmethod
    def new_collector(config: SanitizerConfig) -> DiagnosticCollector:
        return DiagnosticCollector(config.max_diagnostics)

    @staticmethod
    def finish(
        original: str, text: str, collector: DiagnosticCollector
    ) -> StrategyResult:
        """Build the result, reporting ``changed`` only for real differences."""
        if text == original:
            return StrategyResult.unchanged(original)
        return StrategyResult(content=text, changed=True, diagnostics=collector.messages)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class RuleBasedStrategy(SanitizerStrategyBase):
    """Strategy defined by an ordered rule table."""

    multi_pass = False

    def rules(self, _config: SanitizerConfig) -> Sequence[Rule]:
        """Rule table for this config."""
        raise NotImplementedError("Subclasses must implement rules()")

    def sanitize(self, text: str, config: SanitizerConfig) -> StrategyResult:
        return execute_rules(
            text,
            self.rules(config),
            config,
            multi_pass=self.multi_pass,
            max_passes=config.limits.max_rule_passes,
        )
