"""
Sanitizer pipeline for composable repair strategies.

The default pipeline runs its strategies in one fixed, total order. Each
strategy receives the previous one's output and states what it expects:

1. ``structural_noise``: any text. Leaves at most one JSON span, without
   fences, thought markers or truncation notes.
2. ``characters``: expects the JSON span. Leaves straight quotes only and
   valid escapes inside strings.
3. ``syntax``: expects straight quotes. Leaves no comments and no missing,
   leading or trailing commas between complete values.
4. ``assignment``: expects commas fixed. Leaves ``"key": value`` separators
   and quoted string values.
5. ``property_names``: expects ``:`` separators. Leaves quoted keys resolved
   against the known properties.
6. ``array_elements``: expects quoted keys, so a bareword directly inside an
   array is an element. Leaves quoted elements separated by commas.
7. ``stray_content``: expects quoted keys and elements, so anything
   unquoted between tokens is commentary.
8. ``duplicate_entries``: expects commentary removed. Leaves one entry per
   array slot.
9. ``post_processing``: expects clean content. Leaves no dangling keys or
   glued tokens.
10. ``structure_completion``: expects every remaining problem to be
    structural. Leaves balanced delimiters and closed strings.
11. ``custom_rules``: caller-supplied rules see the repaired text.

A later stage may expose something an earlier stage repairs, so the whole
order is re-run until a pass changes nothing, bounded by
``limits.max_pipeline_passes``. A run that ends on an unchanged pass is a fixed
point: running the pipeline again on its output returns that output. With
``stop_when_parseable`` the run also ends as soon as the text parses.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Optional

from ..core.diagnostics import DiagnosticCollector
from ..core.interfaces import SanitizerStrategy
from ..core.parsing import is_parseable
from ..utils.config import SanitizerConfig
from .array_elements import ArrayElementRepairer
from .assignment import AssignmentRepairer
from .custom import CustomRuleStrategy
from .duplicates import DuplicateEntryRemover
from .extractors import StructuralNoiseRemover
from .normalizers import CharacterNormalizer
from .post_processing import StructuralPostProcessor
from .property_names import PropertyNameRepairer
from .repairers import StructureCompleter, SyntaxRepairer
from .stray_content import StrayContentRemover

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Final text of a pipeline run and the repairs that produced it."""

    content: str
    changed: bool
    diagnostics: tuple[str, ...] = ()
    applied_steps: tuple[str, ...] = ()
    converged: bool = True


class SanitizerPipeline:
    """Manages a sequence of repair strategies applied to model output."""

    def __init__(
        self,
        steps: Optional[list[SanitizerStrategy]] = None,
        *,
        stop_when_parseable: bool = True,
    ):
        self.steps = steps or []
        self.stop_when_parseable = stop_when_parseable

    def add_step(self, step: SanitizerStrategy) -> None:
        """Add a repair strategy to the end of the pipeline."""
        self.steps.append(step)

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(step.name for step in self.steps)

    def run(self, raw_text: str, config: Optional[SanitizerConfig] = None) -> PipelineResult:
        """Apply all applicable strategies to the text."""
        if config is None:
            config = SanitizerConfig()

        if self.stop_when_parseable and is_parseable(raw_text):
            return PipelineResult(content=raw_text, changed=False)

        collector = DiagnosticCollector(config.limits.max_total_diagnostics)
        per_step: Counter[str] = Counter()
        applied: list[str] = []
        text = raw_text

        for pass_number in range(1, config.limits.max_pipeline_passes + 1):
            pass_changed = False
            for step in self.steps:
                if not step.should_apply(config):
                    continue
                result = step.sanitize(text, config)
                if not result.changed:
                    continue

                text = result.content
                pass_changed = True
                if step.name not in applied:
                    applied.append(step.name)
                self._record(step.name, result.diagnostics, config, collector, per_step)
                logger.debug(
                    "Pass %d: %s applied %d repair(s)",
                    pass_number,
                    step.name,
                    len(result.diagnostics),
                )
                if self.stop_when_parseable and is_parseable(text):
                    return self._result(raw_text, text, collector, applied)

            if not pass_changed:
                break
        else:
            logger.debug(
                "Pipeline stopped after %d passes without reaching a fixed point",
                config.limits.max_pipeline_passes,
            )
            return self._result(raw_text, text, collector, applied, converged=False)

        return self._result(raw_text, text, collector, applied)

    @staticmethod
    def _record(
        name: str,
        diagnostics: tuple[str, ...],
        config: SanitizerConfig,
        collector: DiagnosticCollector,
        per_step: Counter[str],
    ) -> None:
        """Add a step's diagnostics, keeping its cap across repeated passes."""
        remaining = max(config.max_diagnostics - per_step[name], 0)
        kept = diagnostics[:remaining]
        per_step[name] += len(kept)
        collector.extend(kept)
        collector.stats.dropped += len(diagnostics) - len(kept)

    @staticmethod
    def _result(
        raw_text: str,
        text: str,
        collector: DiagnosticCollector,
        applied: list[str],
        converged: bool = True,
    ) -> PipelineResult:
        return PipelineResult(
            content=text,
            changed=text != raw_text,
            diagnostics=collector.messages,
            applied_steps=tuple(applied),
            converged=converged,
        )

    @classmethod
    def create_default_pipeline(cls, *, stop_when_parseable: bool = True) -> "SanitizerPipeline":
        """Create the default pipeline with every repair strategy."""
        pipeline = cls(stop_when_parseable=stop_when_parseable)

        # Wrapper and character level
        pipeline.add_step(StructuralNoiseRemover())
        pipeline.add_step(CharacterNormalizer())

        # Syntax and content repairs
        pipeline.add_step(SyntaxRepairer())
        pipeline.add_step(AssignmentRepairer())
        pipeline.add_step(PropertyNameRepairer())
        pipeline.add_step(ArrayElementRepairer())

        # Removal of content that does not belong
        pipeline.add_step(StrayContentRemover())
        pipeline.add_step(DuplicateEntryRemover())

        # Final structure
        pipeline.add_step(StructuralPostProcessor())
        pipeline.add_step(StructureCompleter())
        pipeline.add_step(CustomRuleStrategy())

        return pipeline

    @classmethod
    def create_conservative_pipeline(cls, *, stop_when_parseable: bool = True) -> "SanitizerPipeline":
        """Create a pipeline limited to wrapper, character and delimiter repairs."""
        pipeline = cls(stop_when_parseable=stop_when_parseable)
        pipeline.add_step(StructuralNoiseRemover())
        pipeline.add_step(CharacterNormalizer())
        pipeline.add_step(SyntaxRepairer())
        pipeline.add_step(StructureCompleter())
        pipeline.add_step(CustomRuleStrategy())

        return pipeline
