"""Changelog Renderer - Ordering and Markdown/JSON output."""

import json
from datetime import date

from changelog_gen import __version__
from changelog_gen.changelog.insights import ChangelogEntry, ReleaseInsights
from changelog_gen.metrics import Metrics

DEFAULT_CONFIDENCE = "85%"
HIGH_IMPACT_MARK = " 🔥"
BREAKING_MARK = " ⚠️ BREAKING"
ATTRIBUTION = "*Generated with changelog-gen - AI-assisted changelogs from git history*"


def sort_entries(entries: list[ChangelogEntry]) -> list[ChangelogEntry]:
    """Breaking first, then by impact rank; ties keep their discovery order."""
    return sorted(entries, key=lambda entry: (not entry.is_breaking, entry.impact_rank))


def format_confidence(confidence: float | None) -> str:
    if not confidence:
        return DEFAULT_CONFIDENCE
    return f"{round(confidence * 100)}%"


def format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs}s"


def _entry_details(entry: ChangelogEntry) -> str:
    summary = entry.summary
    if summary.technical_details:
        return summary.technical_details
    if summary.description and summary.description != summary.summary:
        return summary.description
    return ""


def render_entry(entry: ChangelogEntry) -> list[str]:
    """The bullet line for one commit plus its sub-bullets."""
    summary = entry.summary
    line = f"- ({entry.entry_type}) {summary.summary or entry.commit.subject}"
    if entry.is_breaking:
        line += BREAKING_MARK
    if summary.impact in ('critical', 'high'):
        line += HIGH_IMPACT_MARK

    details = _entry_details(entry)
    if details:
        line += f" - {' '.join(details.split())}"
    line += f" ({entry.commit.short_hash}) ({format_confidence(summary.confidence)})"

    lines = [line]
    for highlight in summary.highlights[1:]:
        lines.append(f"  - {highlight}")
    if summary.migration_notes:
        lines.append(f"  - **Migration**: {summary.migration_notes}")
    elif summary.migration_required:
        lines.append("  - **Migration**: required")
    return lines


def render_markdown(
    entries: list[ChangelogEntry],
    insights: ReleaseInsights,
    version: str | None = None,
    release_date: str | None = None,
    metrics: Metrics | None = None,
    include_attribution: bool = True,
) -> str:
    release_date = release_date or date.today().isoformat()
    out = ["# Changelog", "", f"## [{version or 'Unreleased'}] - {release_date}", ""]

    if insights.summary:
        out.extend([
            "### Release Summary",
            insights.summary,
            "",
            f"**Business Impact**: {insights.business_impact}",
            f"**Complexity**: {insights.complexity}",
        ])
        if insights.deployment_requirements:
            out.append(f"**Deployment Requirements**: {', '.join(insights.deployment_requirements)}")
        out.append("")

    out.extend(["## Changes", ""])
    if not entries:
        out.extend(["_No changes found._", ""])
    for entry in sort_entries(entries):
        out.extend(render_entry(entry))
        out.append("")

    if insights.risk_level != 'low' or insights.breaking:
        out.extend(["### Risk Assessment", f"**Risk Level:** {insights.risk_level.upper()}", ""])
        if insights.breaking:
            out.extend([
                "**Breaking Changes**: This release contains breaking changes. "
                "Please review migration notes above.",
                "",
            ])
        if insights.deployment_requirements:
            out.append("**Deployment Requirements**:")
            out.extend(f"- {req}" for req in insights.deployment_requirements)
            out.append("")

    if metrics is not None:
        out.extend([
            "### Generation Metrics",
            f"- **Total Commits**: {len(entries)}",
            f"- **Processing Time**: {format_duration(metrics.duration)}",
            f"- **AI Calls**: {metrics.api_calls}",
        ])
        if metrics.total_tokens:
            out.append(f"- **Tokens Used**: {metrics.total_tokens:,}")
        if metrics.rule_based_fallbacks:
            out.append(f"- **Rule-based Fallbacks**: {metrics.rule_based_fallbacks}")
        if metrics.errors:
            out.append(f"- **Errors**: {metrics.errors}")
        out.append("")

    if include_attribution:
        out.extend(["---", "", ATTRIBUTION])

    return "\n".join(out).rstrip("\n") + "\n"


def render_json(
    entries: list[ChangelogEntry],
    insights: ReleaseInsights,
    version: str | None = None,
    release_date: str | None = None,
    metrics: Metrics | None = None,
    include_attribution: bool = True,
) -> str:
    document = {
        "version": version or "Unreleased",
        "date": release_date or date.today().isoformat(),
        "insights": insights.to_dict(),
        "changes": [
            {
                "type": entry.entry_type,
                "hash": entry.commit.hash,
                "subject": entry.commit.subject,
                "author": entry.commit.author,
                "date": entry.commit.date,
                "breaking": entry.is_breaking,
                **entry.summary.to_dict(),
            }
            for entry in sort_entries(entries)
        ],
    }
    if metrics is not None:
        document["metrics"] = metrics.to_dict()
    if include_attribution:
        document["generator"] = f"changelog-gen {__version__}"
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
