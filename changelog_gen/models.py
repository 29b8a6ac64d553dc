"""Shared data model for ingestion and classification."""

from dataclasses import dataclass, field
from enum import Enum


class FileStatus(Enum):
    """Coarse change status of a single file."""
    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"
    UNKNOWN = "?"

    @classmethod
    def from_code(cls, code: str) -> 'FileStatus':
        """Map a git name-status letter or porcelain XY code to a status."""
        code = (code or "").strip()
        if code == '??':
            return cls.ADDED
        for letter, status in (('D', cls.DELETED), ('R', cls.RENAMED),
                               ('A', cls.ADDED), ('M', cls.MODIFIED)):
            if letter in code:
                return status
        return cls.UNKNOWN


@dataclass(frozen=True)
class ChangeComplexity:
    """Size-based complexity of one diff."""
    score: int
    level: str
    additions: int = 0
    deletions: int = 0

    @property
    def total(self) -> int:
        return self.additions + self.deletions


@dataclass(frozen=True)
class FunctionalImpact:
    """How far a change reaches beyond the file itself."""
    scope: str = "local"
    severity: str = "low"
    affected_systems: frozenset[str] = frozenset()
    backward_compatible: bool = True
    migration_required: bool = False


@dataclass(frozen=True)
class ClassificationResult:
    """Labels derived from a file's path, diff and status."""
    category: str
    language: str
    importance: str
    complexity: ChangeComplexity
    semantic_patterns: frozenset[str] = frozenset()
    functional_impact: FunctionalImpact = FunctionalImpact()


@dataclass(frozen=True)
class FileChange:
    """One touched file in a commit or in the working tree."""
    status: FileStatus
    path: str
    diff: str = ""
    before_content: str | None = None
    after_content: str | None = None
    additions: int = 0
    deletions: int = 0
    old_path: str | None = None
    classification: ClassificationResult | None = None
    enhanced_merge_summary: str | None = None

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions


@dataclass(frozen=True)
class DiffStats:
    """Totals from `git show --shortstat`."""
    files: int = 0
    insertions: int = 0
    deletions: int = 0

    @property
    def total_changes(self) -> int:
        return self.insertions + self.deletions


@dataclass
class CommitAnalysis:
    """Everything ingestion knows about one commit or change set."""
    hash: str
    subject: str
    author: str = ""
    date: str = ""
    body: str = ""
    files: list[FileChange] = field(default_factory=list)
    diff_stats: DiffStats = field(default_factory=DiffStats)
    breaking_changes: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    importance: str = "medium"
    tags: list[str] = field(default_factory=list)
    is_merge: bool = False
    parents: list[str] = field(default_factory=list)
    risk_level: str = "low"
    business_relevance: str = "low"

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    @property
    def file_count(self) -> int:
        return self.diff_stats.files or len(self.files)

    @property
    def total_changes(self) -> int:
        if self.diff_stats.total_changes:
            return self.diff_stats.total_changes
        return sum(f.total_changes for f in self.files)

    @property
    def merge_summary(self) -> str | None:
        """Digest attached to the first file of a large merge, if any."""
        if self.files and self.files[0].enhanced_merge_summary:
            return self.files[0].enhanced_merge_summary
        return None


@dataclass
class AISummary:
    """Changelog-ready summary of one commit, from the AI or the rule-based path."""
    summary: str
    category: str
    impact: str
    description: str = ""
    technical_details: str = ""
    business_value: str = ""
    risk_factors: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    breaking_changes: bool = False
    migration_required: bool = False
    source: str = "ai"
    confidence: float | None = None
    highlights: list[str] = field(default_factory=list)
    migration_notes: str = ""
    user_facing: bool = False
    model: str | None = None

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "category": self.category,
            "impact": self.impact,
            "description": self.description,
            "technicalDetails": self.technical_details,
            "businessValue": self.business_value,
            "riskFactors": list(self.risk_factors),
            "recommendations": list(self.recommendations),
            "breakingChanges": self.breaking_changes,
            "migrationRequired": self.migration_required,
            "source": self.source,
            "confidence": self.confidence,
            "highlights": list(self.highlights),
            "migrationNotes": self.migration_notes,
            "userFacing": self.user_facing,
            "model": self.model,
        }
