"""Changelog Service - Runs the ingest, summarize and render pipeline."""

import logging
from dataclasses import dataclass, field

from changelog_gen.ai.summarizer import ChangelogSummarizer
from changelog_gen.changelog.insights import ChangelogEntry, ReleaseInsights, generate_release_insights
from changelog_gen.changelog.renderer import render_json, render_markdown
from changelog_gen.git.analyzer import GitAnalyzer
from changelog_gen.metrics import Metrics

logger = logging.getLogger(__name__)

RENDERERS = {
    "markdown": render_markdown,
    "json": render_json,
}


@dataclass
class ChangelogResult:
    document: str
    entries: list[ChangelogEntry] = field(default_factory=list)
    insights: ReleaseInsights = field(default_factory=ReleaseInsights)
    skipped: list[str] = field(default_factory=list)


class ChangelogService:
    """Sequential pipeline: one commit at a time, one provider call in flight."""

    def __init__(self, analyzer: GitAnalyzer, summarizer: ChangelogSummarizer, metrics: Metrics):
        self.analyzer = analyzer
        self.summarizer = summarizer
        self.metrics = metrics

    def collect_entries(self, hashes: list[str], skipped: list[str] | None = None) -> list[ChangelogEntry]:
        """Analyze and summarize commits in the given order, skipping unresolvable ones."""
        entries = []
        for commit_hash in hashes:
            commit = self.analyzer.get_commit_analysis(commit_hash)
            if commit is None:
                if skipped is not None:
                    skipped.append(commit_hash)
                continue
            entries.append(ChangelogEntry(commit=commit, summary=self.summarizer.summarize(commit)))
        return entries

    def generate(
        self,
        since: str | None = None,
        revision_range: str | None = None,
        limit: int | None = None,
        version: str | None = None,
        include_working_tree: bool = False,
        output_format: str = "markdown",
        release_date: str | None = None,
        include_metrics: bool = True,
        include_attribution: bool = True,
        working_tree_only: bool = False,
    ) -> ChangelogResult:
        """Build the whole document. Raises GitError when the commit range is invalid."""
        skipped: list[str] = []
        entries: list[ChangelogEntry] = []

        if not working_tree_only:
            hashes = self.analyzer.get_commits(since=since, revision_range=revision_range, limit=limit)
            logger.debug("Found %d commits", len(hashes))
            entries = self.collect_entries(hashes, skipped)

        if include_working_tree or working_tree_only:
            working = self.analyzer.get_working_tree_analysis()
            if working is not None:
                entries.append(ChangelogEntry(commit=working, summary=self.summarizer.summarize(working)))

        if skipped:
            logger.warning("Skipped %d unresolvable commits", len(skipped))

        self.metrics.finish()
        insights = generate_release_insights(entries, version)
        render = RENDERERS.get(output_format, render_markdown)
        document = render(
            entries,
            insights,
            version=version,
            release_date=release_date,
            metrics=self.metrics if include_metrics else None,
            include_attribution=include_attribution,
        )
        return ChangelogResult(document=document, entries=entries, insights=insights, skipped=skipped)
