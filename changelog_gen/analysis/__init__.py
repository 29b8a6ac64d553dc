"""Change Analysis Package"""

from changelog_gen.analysis.classifier import (
    SemanticAnalysis,
    analyze_functional_impact,
    analyze_semantic_changes,
    assess_business_relevance,
    assess_change_complexity,
    assess_file_importance,
    assess_risk,
    categorize_file,
    classify_file_change,
    detect_language,
)
from changelog_gen.analysis.diff_processor import DiffProcessor, ProcessedDiff, ProcessorConfig, Priority
from changelog_gen.analysis.merge_digest import MERGE_DIGEST_THRESHOLD, build_merge_digest, select_key_files
from changelog_gen.analysis.tagger import CommitTagger, TaggingResult

__all__ = [
    "SemanticAnalysis",
    "analyze_functional_impact",
    "analyze_semantic_changes",
    "assess_business_relevance",
    "assess_change_complexity",
    "assess_file_importance",
    "assess_risk",
    "categorize_file",
    "classify_file_change",
    "detect_language",
    "DiffProcessor",
    "ProcessedDiff",
    "ProcessorConfig",
    "Priority",
    "MERGE_DIGEST_THRESHOLD",
    "build_merge_digest",
    "select_key_files",
    "CommitTagger",
    "TaggingResult",
]
