"""Changelog Summarizer - One AI attempt per commit, rule-based summary otherwise."""

import logging

from changelog_gen.analysis.tagger import CommitTagger
from changelog_gen.ai.response_parser import (
    parse_ai_response,
    validate_commit_category,
    validate_impact_assessment,
)
from changelog_gen.llm.base import DEFAULT_TEMPERATURE, ChatCompletionProvider, describe_provider_error
from changelog_gen.metrics import Metrics
from changelog_gen.models import AISummary, CommitAnalysis
from changelog_gen.prompts import PromptBuilder, PromptConfig

logger = logging.getLogger(__name__)

MODE_MAX_TOKENS = {
    "standard": 2000,
    "detailed": 3000,
    "enterprise": 4000,
}
LARGE_COMMIT_FILES = 50
LARGE_COMMIT_LINES = 10000
LARGE_COMMIT_BONUS_TOKENS = 2000
MAX_TOKENS_CAP = 8000


class ChangelogSummarizer:
    """Turns a CommitAnalysis into an AISummary.

    The provider is optional. Without one, or when it fails, every commit still
    gets a complete rule-based summary.
    """

    def __init__(
        self,
        provider: ChatCompletionProvider | None,
        metrics: Metrics,
        analysis_mode: str = "standard",
        model_override: str | None = None,
        prompt_builder: PromptBuilder | None = None,
        tagger: CommitTagger | None = None,
    ):
        self.provider = provider
        self.metrics = metrics
        self.analysis_mode = analysis_mode if analysis_mode in MODE_MAX_TOKENS else "standard"
        self.model_override = model_override
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.tagger = tagger or CommitTagger()
        self._available: bool | None = None

    @property
    def ai_available(self) -> bool:
        if self.provider is None:
            return False
        if self._available is None:
            try:
                self._available = bool(self.provider.is_available())
            except Exception as e:
                context = describe_provider_error(e)
                logger.warning("Availability check failed (%s): %s", context.kind, context.message)
                self._available = False
        return self._available

    def set_model_override(self, model: str | None) -> None:
        self.model_override = model

    def select_model(self, commit: CommitAnalysis) -> str:
        if self.model_override:
            return self.model_override
        selection = self.provider.select_optimal_model(commit.file_count, commit.total_changes)
        logger.debug("Model for %s: %s (%s)", commit.short_hash, selection.model, selection.reason)
        return selection.model

    def max_tokens_for(self, commit: CommitAnalysis) -> int:
        tokens = MODE_MAX_TOKENS[self.analysis_mode]
        if commit.file_count > LARGE_COMMIT_FILES or commit.total_changes > LARGE_COMMIT_LINES:
            tokens += LARGE_COMMIT_BONUS_TOKENS
        return min(tokens, MAX_TOKENS_CAP)

    def summarize(self, commit: CommitAnalysis) -> AISummary:
        """Summarize one commit. Never raises for provider or parsing problems."""
        self.metrics.commits_processed += 1

        if not self.ai_available:
            self.metrics.rule_based_summaries += 1
            return self.generate_rule_based_summary(commit)

        try:
            messages = self.prompt_builder.build_messages(commit, PromptConfig(analysis_mode=self.analysis_mode))
            model = self.select_model(commit)
            response = self.provider.generate_completion(
                messages,
                model=model,
                max_tokens=self.max_tokens_for(commit),
                temperature=DEFAULT_TEMPERATURE,
            )
            self.metrics.record_completion(response.usage.prompt_tokens, response.usage.completion_tokens)
            return parse_ai_response(response.content, commit, model=response.model or model)
        except Exception as e:
            context = describe_provider_error(e)
            logger.warning("AI analysis failed for %s (%s): %s", commit.short_hash, context.kind, context.message)
            logger.debug("Provider error detail: %s", e)
            self.metrics.record_fallback()
            return self.generate_rule_based_summary(commit)

    def generate_rule_based_summary(self, commit: CommitAnalysis) -> AISummary:
        """Deterministic summary from the commit's own signals."""
        tagging = self.tagger.analyze_commit(
            commit.subject,
            commit.body,
            commit.files,
            commit.diff_stats,
            commit.is_merge,
        )
        category = tagging.categories[0] if tagging.categories else (
            commit.categories[0] if commit.categories else 'chore'
        )
        tags = commit.tags or tagging.tags
        breaking = bool(commit.breaking_changes or tagging.breaking_changes)
        migration = any(
            f.classification.functional_impact.migration_required
            for f in commit.files if f.classification
        )

        return AISummary(
            summary=f"{commit.subject} ({commit.file_count} files changed)",
            category=validate_commit_category(category, commit),
            impact=validate_impact_assessment(commit.importance, commit),
            description=commit.body.strip(),
            breaking_changes=breaking,
            migration_required=migration,
            source='rule-based',
            user_facing='ui' in tags or 'feature' in tags,
        )
