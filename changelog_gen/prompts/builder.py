"""Prompt Builder - Construct LLM prompts for per-commit changelog analysis."""

from dataclasses import dataclass

from changelog_gen import CHANGELOG_CATEGORIES, IMPACT_LEVELS
from changelog_gen.analysis import DiffProcessor, ProcessedDiff, ProcessorConfig
from changelog_gen.analysis.classifier import ChangeSignals, change_signals
from changelog_gen.analysis.merge_digest import MERGE_DIGEST_THRESHOLD
from changelog_gen.models import CommitAnalysis

SYSTEM_PROMPT = """You are an expert software analyst specializing in code change analysis and changelog generation.

Your standards:
- Describe what changed and why it matters, grounded only in the diff you are shown
- Prefer precise verbs and component names over vague summaries
- Never invent files, functions, or behavior that the changes do not show
- Follow the categorization rules exactly; they override your own judgment"""

MODE_INSTRUCTIONS = {
    "standard": "Provide a concise, accurate analysis focused on what changed and who it affects.",
    "detailed": (
        "Provide a thorough analysis: cover the technical approach, the affected components, "
        "and any risks or follow-up work."
    ),
    "enterprise": (
        "Provide an enterprise-grade analysis: business value, risk assessment, deployment and "
        "migration guidance, and operational impact for release managers."
    ),
}

OUTPUT_SCHEMA = """{
  "summary": "one line in imperative mood, under 100 characters",
  "category": "one of the categories above",
  "impact": "critical|high|medium|low|minimal",
  "description": "2-3 sentences on what changed and why",
  "technicalDetails": "the key implementation details",
  "businessValue": "why this matters to users or the business",
  "riskFactors": ["specific risks, empty if none"],
  "recommendations": ["follow-up actions, empty if none"],
  "highlights": ["notable individual changes"],
  "breakingChanges": false,
  "migrationRequired": false,
  "migrationNotes": "what users must do, empty if nothing",
  "confidence": 0.85
}"""


@dataclass
class PromptConfig:
    """Settings that shape the prompt."""
    analysis_mode: str = "standard"


class PromptBuilder:
    """Constructs prompts for analyzing one commit."""

    def effective_mode(self, commit: CommitAnalysis, mode: str) -> str:
        """Large merges get the detailed treatment even in standard mode."""
        if mode == "standard" and commit.is_merge and commit.file_count > MERGE_DIGEST_THRESHOLD:
            return "detailed"
        return mode if mode in MODE_INSTRUCTIONS else "standard"

    def build_messages(self, commit: CommitAnalysis, config: PromptConfig | None = None) -> list[dict]:
        config = config or PromptConfig()
        mode = self.effective_mode(commit, config.analysis_mode)
        return [
            {"role": "system", "content": f"{SYSTEM_PROMPT}\n\n{MODE_INSTRUCTIONS[mode]}"},
            {"role": "user", "content": self.build(commit, PromptConfig(analysis_mode=mode))},
        ]

    def build(self, commit: CommitAnalysis, config: PromptConfig | None = None) -> str:
        config = config or PromptConfig()
        processed = None
        if not commit.merge_summary:
            processor = DiffProcessor(ProcessorConfig.for_mode(config.analysis_mode))
            processed = processor.process(commit.files)

        signals = change_signals(commit)
        sections = [
            self._build_commit_section(commit),
            self._build_patterns_section(processed),
            self._build_changes_section(commit, processed),
            self._build_rules_section(),
            self._build_facts_section(commit, signals),
            self._build_output_section(),
        ]
        return "\n\n".join(filter(None, sections))

    def _build_commit_section(self, commit: CommitAnalysis) -> str:
        stats = commit.diff_stats
        lines = [
            "<commit>",
            f"Subject: {commit.subject}",
            f"Hash: {commit.short_hash}",
        ]
        if commit.author:
            lines.append(f"Author: {commit.author}")
        if commit.date:
            lines.append(f"Date: {commit.date}")
        lines.append(f"Files changed: {commit.file_count} (+{stats.insertions} -{stats.deletions})")
        if commit.body:
            lines.extend(["", "Message body:", commit.body])
        if commit.categories:
            lines.append(f"Heuristic categories: {', '.join(commit.categories)}")
        if commit.tags:
            lines.append(f"Heuristic tags: {', '.join(commit.tags)}")
        lines.append("</commit>")
        return "\n".join(lines)

    def _build_patterns_section(self, processed: ProcessedDiff | None) -> str:
        if not processed or not processed.patterns:
            return ""
        bullets = "\n".join(f"- {p}" for p in processed.patterns)
        return f"<bulk-patterns>\nTreat these as single changes, not one change per file:\n{bullets}\n</bulk-patterns>"

    def _build_changes_section(self, commit: CommitAnalysis, processed: ProcessedDiff | None) -> str:
        if commit.merge_summary:
            return (
                "<merge-summary>\n"
                "ENHANCED MERGE SUMMARY. Base your analysis on this summary; per-file diffs are omitted.\n\n"
                f"{commit.merge_summary}\n"
                "</merge-summary>"
            )

        parts = ["<changes>", processed.summary]
        if processed.detailed_diff:
            parts.extend(["", "DIFF DETAILS:", processed.detailed_diff])
        if processed.remaining_summary:
            parts.extend(["", processed.remaining_summary])
        if processed.truncated:
            parts.append("\n[Note: Diff was truncated due to size. Use the file summary above for scope.]")
        parts.append("</changes>")
        return "\n".join(parts)

    def _build_rules_section(self) -> str:
        categories = "\n".join(f"  - {name}: {desc}" for name, desc in CHANGELOG_CATEGORIES.items())
        return f"""<categorization-rules>
Choose exactly one category:
{categories}

Rules you MUST follow:
- A commit whose subject contains "merge" is ALWAYS category "merge".
- A commit that adds multiple files totalling more than 1000 inserted lines is NEVER "fix".
- "fix" is only valid for focused changes: at most 10 files and at most 5 new files.
- Adding new source modules is "feature", not "fix".
- If every changed file is documentation (markdown, README, CHANGELOG), use "docs".
- If every changed file is a test, use "test".

Impact levels: {', '.join(IMPACT_LEVELS)}
- More than 50 files or 5000 changed lines is at least "high".
- Small changes (3 files or fewer, 100 lines or fewer) are at most "medium" unless explicitly breaking.
- Documentation-only changes are "low".
</categorization-rules>"""

    def _build_facts_section(self, commit: CommitAnalysis, signals: ChangeSignals) -> str:
        def yes_no(flag: bool) -> str:
            return "yes" if flag else "no"

        return f"""<validation>
Computed facts about this commit (authoritative):
- Files changed: {signals.file_count}, new files: {signals.added_files}, new source modules: {signals.new_source_modules}
- Insertions: {signals.insertions}, deletions: {signals.deletions}
- Documentation only: {yes_no(signals.docs_only)}
- Tests only: {yes_no(signals.tests_only)}
- Merge commit: {yes_no(commit.is_merge)}
- Breaking-change markup in subject: {yes_no(signals.breaking_markup)}
</validation>"""

    def _build_output_section(self) -> str:
        return f"""<output-format>
Respond with ONLY a JSON object, no markdown fences and no commentary:
{OUTPUT_SCHEMA}
</output-format>"""
