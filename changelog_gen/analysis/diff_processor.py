"""Diff Processor - Fit a commit's file diffs into a prompt-sized budget."""

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import IntEnum

from changelog_gen.analysis.classifier import IMPORTANCE_ORDER, categorize_file, is_manifest
from changelog_gen.models import FileChange, FileStatus


class Priority(IntEnum):
    """File priority for inclusion in LLM context."""
    SOURCE = 1
    TEST = 2
    CONFIG = 3
    DOCS = 4
    NOISE = 99


# Modified files carry the most signal per character, deletions the least
STATUS_ORDER = {
    FileStatus.MODIFIED: 0,
    FileStatus.RENAMED: 1,
    FileStatus.ADDED: 2,
    FileStatus.DELETED: 3,
    FileStatus.UNKNOWN: 4,
}

MASS_RENAME_THRESHOLD = 3
FORMATTING_THRESHOLD = 5


@dataclass
class ProcessedDiff:
    """Prompt-ready view of a commit's file diffs."""
    summary: str
    detailed_diff: str
    total_files: int = 0
    included_files: int = 0
    filtered_files: int = 0
    truncated: bool = False
    patterns: list[str] = field(default_factory=list)
    remaining_summary: str = ""

    @property
    def estimated_tokens(self) -> int:
        """Rough token estimate (~4 chars per token)."""
        return (len(self.summary) + len(self.detailed_diff)) // 4


@dataclass
class ProcessorConfig:
    """Budget for one analysis mode."""
    max_chars: int = 12000
    max_files: int = 15
    max_lines_per_file: int = 150

    @classmethod
    def for_mode(cls, mode: str) -> 'ProcessorConfig':
        return MODE_BUDGETS.get(mode, MODE_BUDGETS['standard'])


MODE_BUDGETS = {
    'standard': ProcessorConfig(max_chars=12000, max_files=15, max_lines_per_file=150),
    'detailed': ProcessorConfig(max_chars=20000, max_files=25, max_lines_per_file=250),
    'enterprise': ProcessorConfig(max_chars=30000, max_files=40, max_lines_per_file=400),
}


class DiffProcessor:
    """Orders, filters and truncates file diffs for the prompt."""

    NOISE_PATTERNS: list[str] = [
        r'package-lock\.json$', r'yarn\.lock$', r'pnpm-lock\.yaml$',
        r'poetry\.lock$', r'Cargo\.lock$', r'Gemfile\.lock$', r'composer\.lock$', r'go\.sum$',
        r'\.min\.js$', r'\.min\.css$', r'\.map$', r'\.pyc$', r'__pycache__',
        r'(?:^|/)dist/', r'(?:^|/)build/', r'\.egg-info/', r'\.snap$',
        r'node_modules/', r'vendor/', r'\.venv/',
    ]

    TEST_PATTERNS: list[str] = [
        r'tests?/', r'specs?/', r'__tests__/',
        r'\.test\.', r'\.spec\.', r'(?:^|/)test_', r'_test\.',
    ]

    CONFIG_PATTERNS: list[str] = [
        r'\.json$', r'\.ya?ml$', r'\.toml$', r'\.ini$', r'\.cfg$', r'\.env',
        r'config/', r'Makefile$', r'Dockerfile$', r'docker-compose', r'\.gitignore$',
    ]

    DOCS_PATTERNS: list[str] = [
        r'\.md$', r'\.rst$', r'docs/', r'README', r'CHANGELOG', r'LICENSE',
    ]

    def __init__(self, config: ProcessorConfig | None = None):
        self.config = config or ProcessorConfig()
        self._any_file_truncated = False
        self._noise_re = [re.compile(p, re.IGNORECASE) for p in self.NOISE_PATTERNS]
        self._test_re = [re.compile(p, re.IGNORECASE) for p in self.TEST_PATTERNS]
        self._config_re = [re.compile(p, re.IGNORECASE) for p in self.CONFIG_PATTERNS]
        self._docs_re = [re.compile(p, re.IGNORECASE) for p in self.DOCS_PATTERNS]

    def process(self, files: list[FileChange]) -> ProcessedDiff:
        """Main entry point: ingested files -> prompt-ready context."""
        classified = [(f, self._get_priority(f.path)) for f in files]
        kept = [(f, p) for f, p in classified if p != Priority.NOISE]
        noise_count = len(classified) - len(kept)

        kept.sort(key=lambda item: self._sort_key(item[0]))

        candidates = [f for f, _ in kept[:self.config.max_files]]
        detailed_diff, included, budget_skipped = self._build_detailed_diff(candidates)
        remaining = budget_skipped + [f for f, _ in kept[self.config.max_files:]]

        return ProcessedDiff(
            summary=self._build_summary(kept, noise_count),
            detailed_diff=detailed_diff,
            total_files=len(files),
            included_files=included,
            filtered_files=noise_count,
            truncated=bool(remaining) or self._any_file_truncated,
            patterns=self.detect_bulk_patterns(files),
            remaining_summary=self._build_remaining_summary(remaining),
        )

    def _get_priority(self, path: str) -> Priority:
        if any(p.search(path) for p in self._noise_re):
            return Priority.NOISE
        if any(p.search(path) for p in self._test_re):
            return Priority.TEST
        if any(p.search(path) for p in self._docs_re):
            return Priority.DOCS
        if any(p.search(path) for p in self._config_re):
            return Priority.CONFIG
        return Priority.SOURCE

    @staticmethod
    def _sort_key(f: FileChange) -> tuple[int, int, int]:
        importance = f.classification.importance if f.classification else 'medium'
        return (
            STATUS_ORDER.get(f.status, len(STATUS_ORDER)),
            -IMPORTANCE_ORDER.index(importance),
            -len(f.diff),
        )

    def _build_summary(self, files: list[tuple[FileChange, Priority]], noise_count: int) -> str:
        lines = ["FILES CHANGED:"]
        for priority in sorted({p for _, p in files}):
            label = {
                Priority.SOURCE: "Source",
                Priority.TEST: "Tests",
                Priority.CONFIG: "Config",
                Priority.DOCS: "Docs",
            }[priority]
            lines.append(f"\n[{label}]")
            for f, p in files:
                if p == priority:
                    lines.append(f"  {f.status.name.lower()} {f.path} (+{f.additions} -{f.deletions})")

        if noise_count > 0:
            lines.append(f"\n[Filtered: {noise_count} files (lock files, generated code)]")

        return "\n".join(lines)

    def _build_detailed_diff(self, files: list[FileChange]) -> tuple[str, int, list[FileChange]]:
        self._any_file_truncated = False
        parts = []
        used = 0
        skipped: list[FileChange] = []

        for f in files:
            if skipped:
                skipped.append(f)
                continue

            section = f"=== {f.path} ({f.status.name.lower()}) ===\n{self._truncate_file_diff(f.diff, f.path)}"
            room = self.config.max_chars - used
            if len(section) > room:
                # Keep a partial section when a useful amount of budget is left
                if room > 500:
                    parts.append(section[:room] + f"\n... [diff for {f.path} cut to fit budget]")
                    used = self.config.max_chars
                    self._any_file_truncated = True
                else:
                    skipped.append(f)
                continue

            parts.append(section)
            used += len(section)

        return "\n\n".join(parts), len(parts), skipped

    def _truncate_file_diff(self, diff: str, path: str) -> str:
        lines = diff.split('\n')
        if len(lines) <= self.config.max_lines_per_file:
            return diff

        self._any_file_truncated = True
        kept = lines[:self.config.max_lines_per_file]
        kept.append(f"... [{len(lines) - self.config.max_lines_per_file} more lines truncated from {path}]")
        return '\n'.join(kept)

    def _build_remaining_summary(self, remaining: list[FileChange]) -> str:
        if not remaining:
            return ""
        counts = Counter(categorize_file(f.path) for f in remaining)
        breakdown = ", ".join(f"{category} {count}" for category, count in counts.most_common())
        return f"{len(remaining)} more files not shown ({breakdown})"

    def detect_bulk_patterns(self, files: list[FileChange]) -> list[str]:
        """Describe repetitive change shapes so the model doesn't count them one by one."""
        patterns = []

        renamed = [f for f in files if f.status is FileStatus.RENAMED]
        if len(renamed) >= MASS_RENAME_THRESHOLD:
            patterns.append(f"Mass rename: {len(renamed)} files renamed or moved")

        formatting = [f for f in files if is_formatting_only(f.diff)]
        if len(formatting) >= FORMATTING_THRESHOLD:
            patterns.append(f"Formatting: {len(formatting)} files with whitespace-only changes")

        dependency_files = [f.path for f in files if is_manifest(f.path)]
        if dependency_files:
            patterns.append(f"Dependency updates: {', '.join(dependency_files[:5])}")

        return patterns


def is_formatting_only(diff: str) -> bool:
    """True when added and removed lines differ only in whitespace."""
    added, removed = [], []
    for line in diff.splitlines():
        if line.startswith(('+++', '---')):
            continue
        if line.startswith('+'):
            added.append(''.join(line[1:].split()))
        elif line.startswith('-'):
            removed.append(''.join(line[1:].split()))
    if not added and not removed:
        return False
    return sorted(a for a in added if a) == sorted(r for r in removed if r)
