"""Caller-supplied repair rules run as the last strategy."""

from ..core.results import StrategyResult
from ..core.rules import execute_rules
from ..utils.config import SanitizerConfig
from .base import SanitizerStrategyBase


class CustomRuleStrategy(SanitizerStrategyBase):
    """Applies ``SanitizerConfig.custom_rules`` in declared order."""

    name = "custom_rules"

    def should_apply(self, config: SanitizerConfig) -> bool:
        return bool(config.custom_rules)

    def sanitize(self, text: str, config: SanitizerConfig) -> StrategyResult:
        return execute_rules(
            text,
            config.custom_rules,
            config,
            multi_pass=True,
            max_passes=config.limits.max_rule_passes,
        )
