"""Release Insights - Aggregate view over every entry in a release."""

from collections import Counter
from dataclasses import dataclass, field

from changelog_gen import IMPACT_RANK, UNKNOWN_IMPACT_RANK
from changelog_gen.analysis.classifier import RISK_ORDER, categorize_file, is_manifest
from changelog_gen.models import AISummary, CommitAnalysis

DATABASE_REQUIREMENT = "Database migration required"
DEPENDENCY_REQUIREMENT = "Dependency updates - reinstall packages before deploying"
BREAKING_REQUIREMENT = "Breaking changes - review migration notes above"

HIGH_COMPLEXITY_AVG_FILES = 20
MEDIUM_COMPLEXITY_AVG_FILES = 10
DOMINANT_TYPE_COUNT = 3


@dataclass
class ChangelogEntry:
    """One commit paired with its summary."""
    commit: CommitAnalysis
    summary: AISummary

    @property
    def is_breaking(self) -> bool:
        return self.summary.breaking_changes or bool(self.commit.breaking_changes)

    @property
    def entry_type(self) -> str:
        return 'breaking' if self.is_breaking else (self.summary.category or 'chore')

    @property
    def impact(self) -> str:
        return self.summary.impact

    @property
    def impact_rank(self) -> int:
        return IMPACT_RANK.get(self.summary.impact, UNKNOWN_IMPACT_RANK)


@dataclass
class ReleaseInsights:
    total_commits: int = 0
    commit_types: dict[str, int] = field(default_factory=dict)
    dominant_types: list[str] = field(default_factory=list)
    risk_level: str = 'low'
    complexity: str = 'low'
    business_impact: str = 'minor'
    breaking_count: int = 0
    affected_areas: list[str] = field(default_factory=list)
    deployment_requirements: list[str] = field(default_factory=list)
    summary: str = ''

    @property
    def breaking(self) -> bool:
        return self.breaking_count > 0

    def to_dict(self) -> dict:
        return {
            'totalCommits': self.total_commits,
            'commitTypes': dict(self.commit_types),
            'dominantTypes': list(self.dominant_types),
            'riskLevel': self.risk_level,
            'complexity': self.complexity,
            'businessImpact': self.business_impact,
            'breakingCount': self.breaking_count,
            'affectedAreas': list(self.affected_areas),
            'deploymentRequirements': list(self.deployment_requirements),
            'summary': self.summary,
        }


def _business_impact(entries: list[ChangelogEntry]) -> str:
    ranks = [entry.impact_rank for entry in entries]
    if any(entry.is_breaking for entry in entries) or IMPACT_RANK['critical'] in ranks:
        return 'major'
    if IMPACT_RANK['high'] in ranks:
        return 'moderate'
    return 'minor'


def _summarize(insights: ReleaseInsights, version: str | None) -> str:
    text = f"Release {version or 'latest'} includes {insights.total_commits} commits"
    if insights.breaking:
        text += " with breaking changes"
    if insights.commit_types:
        counts = Counter(insights.commit_types).most_common()
        text += " (" + ", ".join(f"{count} {kind}" for kind, count in counts) + ")"
    text += f". Complexity: {insights.complexity}."
    if insights.affected_areas:
        text += f" Affected areas: {', '.join(insights.affected_areas)}."
    return text


def generate_release_insights(entries: list[ChangelogEntry], version: str | None = None) -> ReleaseInsights:
    """Counts, risk, complexity and deployment notes for a set of entries."""
    insights = ReleaseInsights(total_commits=len(entries))
    if not entries:
        insights.summary = _summarize(insights, version)
        return insights

    type_counts: Counter[str] = Counter()
    areas: dict[str, None] = {}
    requirements: dict[str, None] = {}

    for entry in entries:
        type_counts[entry.entry_type] += 1
        commit = entry.commit
        if commit.risk_level in RISK_ORDER and RISK_ORDER.index(commit.risk_level) > RISK_ORDER.index(insights.risk_level):
            insights.risk_level = commit.risk_level
        if entry.is_breaking:
            insights.breaking_count += 1

        for f in commit.files:
            category = f.classification.category if f.classification else categorize_file(f.path)
            areas.setdefault(category, None)

        if 'database-changes' in commit.tags or entry.summary.migration_required:
            requirements.setdefault(DATABASE_REQUIREMENT, None)
        if any(is_manifest(f.path) for f in commit.files):
            requirements.setdefault(DEPENDENCY_REQUIREMENT, None)
        if entry.is_breaking:
            requirements.setdefault(BREAKING_REQUIREMENT, None)

    insights.commit_types = dict(type_counts)
    insights.dominant_types = [kind for kind, _ in type_counts.most_common(DOMINANT_TYPE_COUNT)]
    insights.affected_areas = list(areas)
    insights.deployment_requirements = list(requirements)
    insights.business_impact = _business_impact(entries)

    avg_files = sum(len(entry.commit.files) for entry in entries) / len(entries)
    if avg_files > HIGH_COMPLEXITY_AVG_FILES or insights.breaking:
        insights.complexity = 'high'
    elif avg_files > MEDIUM_COMPLEXITY_AVG_FILES:
        insights.complexity = 'medium'

    insights.summary = _summarize(insights, version)
    return insights
