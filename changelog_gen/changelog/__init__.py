"""Changelog Assembly Package"""

from changelog_gen.changelog.insights import ChangelogEntry, ReleaseInsights, generate_release_insights
from changelog_gen.changelog.renderer import render_json, render_markdown, sort_entries
from changelog_gen.changelog.service import ChangelogResult, ChangelogService

__all__ = [
    "ChangelogEntry",
    "ReleaseInsights",
    "generate_release_insights",
    "render_json",
    "render_markdown",
    "sort_entries",
    "ChangelogResult",
    "ChangelogService",
]
