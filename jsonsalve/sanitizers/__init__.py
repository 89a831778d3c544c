"""Repair strategies and the pipeline that runs them in declared order."""

from .array_elements import ArrayElementRepairer
from .assignment import AssignmentRepairer
from .base import RuleBasedStrategy, SanitizerStrategyBase
from .custom import CustomRuleStrategy
from .duplicates import DuplicateEntryRemover
from .extractors import StructuralNoiseRemover
from .normalizers import CharacterNormalizer
from .pipeline import PipelineResult, SanitizerPipeline
from .post_processing import StructuralPostProcessor
from .property_names import PropertyNameRepairer, resolve_property_name
from .repairers import StructureCompleter, SyntaxRepairer
from .stray_content import StrayContentRemover

__all__ = [
    "ArrayElementRepairer",
    "AssignmentRepairer",
    "CharacterNormalizer",
    "CustomRuleStrategy",
    "DuplicateEntryRemover",
    "PipelineResult",
    "PropertyNameRepairer",
    "RuleBasedStrategy",
    "SanitizerPipeline",
    "SanitizerStrategyBase",
    "StrayContentRemover",
    "StructuralNoiseRemover",
    "StructuralPostProcessor",
    "StructureCompleter",
    "SyntaxRepairer",
    "resolve_property_name",
]
