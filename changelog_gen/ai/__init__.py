"""AI Summarization Package"""

from changelog_gen.ai.response_parser import (
    extract_category_from_text,
    extract_json_object,
    parse_ai_response,
    validate_commit_category,
    validate_impact_assessment,
)
from changelog_gen.ai.summarizer import ChangelogSummarizer

__all__ = [
    "extract_category_from_text",
    "extract_json_object",
    "parse_ai_response",
    "validate_commit_category",
    "validate_impact_assessment",
    "ChangelogSummarizer",
]
