"""Commit Tagger - Heuristic categories, tags and breaking-change evidence."""

import re
from collections import Counter
from dataclasses import dataclass, field

from changelog_gen.analysis.classifier import categorize_file, max_importance
from changelog_gen.models import DiffStats, FileChange, FileStatus

CONVENTIONAL_PATTERN = re.compile(r'^(\w+)(?:\(([^)]+)\))?(!)?:\s*(.+)$')

# Conventional commit type -> changelog category
TYPE_TO_CATEGORY = {
    'feat': 'feature',
    'feature': 'feature',
    'fix': 'fix',
    'bugfix': 'fix',
    'hotfix': 'fix',
    'docs': 'docs',
    'doc': 'docs',
    'style': 'style',
    'refactor': 'refactor',
    'perf': 'perf',
    'test': 'test',
    'tests': 'test',
    'build': 'build',
    'ci': 'ci',
    'chore': 'chore',
    'revert': 'revert',
    'security': 'security',
}

# File category -> changelog category for change sets dominated by one kind of file
FILE_CATEGORY_TO_CATEGORY = {
    'documentation': 'docs',
    'tests': 'test',
    'configuration': 'chore',
    'build': 'build',
    'source': 'feature',
    'frontend': 'feature',
    'assets': 'chore',
}

# Keyword table for non-conventional subjects, checked in order
MESSAGE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ('revert', ('revert',)),
    ('security', ('security', 'vulnerab', 'cve-', 'xss', 'csrf', 'injection')),
    ('fix', ('fix', 'bug', 'issue', 'error', 'crash', 'patch', 'resolve')),
    ('perf', ('perf', 'optimiz', 'speed', 'faster', 'performance')),
    ('refactor', ('refactor', 'restructur', 'cleanup', 'clean up', 'reorganiz', 'simplif')),
    ('docs', ('docs', 'documentation', 'readme', 'typo')),
    ('test', ('test', 'spec', 'coverage')),
    ('style', ('format', 'style', 'lint', 'whitespace')),
    ('build', ('build', 'bump', 'depend', 'upgrade')),
    ('ci', ('pipeline', 'workflow', 'github action')),
    ('feature', ('add', 'implement', 'introduce', 'create', 'new', 'support', 'feature')),
]

BREAKING_PATTERNS = [
    re.compile(r'BREAKING[\s_-]*CHANGE', re.IGNORECASE),
    re.compile(r'^\w+(?:\([^)]*\))?!:'),
    re.compile(r'\bbreaking\b', re.IGNORECASE),
    re.compile(r'\bincompatible\b', re.IGNORECASE),
    re.compile(r'\bremov\w*\b.*\bapi\b', re.IGNORECASE),
    re.compile(r'\bdrop\w*\b.*\bsupport\b', re.IGNORECASE),
    re.compile(r'\bmajor\b.*\bchange', re.IGNORECASE),
]

CRITICAL_FILE_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r'(?:^|/)package\.json$', r'(?:^|/)pyproject\.toml$', r'(?:^|/)requirements[\w.-]*\.txt$',
        r'(?:^|/)cargo\.toml$', r'(?:^|/)go\.mod$', r'(?:^|/)dockerfile$', r'(?:^|/)docker-compose',
        r'(?:^|/)\.env', r'(?:^|/)migrations?/', r'(?:^|/)schema\.',
    )
]

ACTION_WORDS = ('add', 'remove', 'update', 'fix', 'refactor', 'rename', 'move', 'replace',
                'deprecate', 'upgrade', 'optimize', 'implement')
TECH_WORDS = ('api', 'database', 'auth', 'ui', 'cli', 'docker', 'ci', 'cache',
              'config', 'security', 'performance', 'test')
UI_MARKERS = ('ui', 'frontend', 'component', 'page', 'view', 'button', 'layout', 'css')

LARGE_CHANGE_LINES = 500
LARGE_CHANGE_FILES = 20


@dataclass
class TaggingResult:
    """Output of the tagging heuristic for one commit."""
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    importance: str = "medium"
    breaking_changes: list[str] = field(default_factory=list)
    conventional_type: str | None = None
    scope: str | None = None

    @property
    def primary_category(self) -> str:
        return self.categories[0] if self.categories else 'other'

    @property
    def user_facing(self) -> bool:
        return 'ui' in self.tags or 'feature' in self.tags


class CommitTagger:
    """Derives categories and tags from a commit's message and touched files."""

    def __init__(self):
        self._word_re = {
            word: re.compile(rf'\b{re.escape(word)}\w*\b', re.IGNORECASE)
            for word in set(ACTION_WORDS) | set(TECH_WORDS) | set(UI_MARKERS)
        }

    def analyze_commit(
        self,
        subject: str,
        body: str = "",
        files: list[FileChange] | None = None,
        diff_stats: DiffStats | None = None,
        is_merge: bool = False,
    ) -> TaggingResult:
        files = files or []
        diff_stats = diff_stats or DiffStats(files=len(files))
        message = f"{subject}\n{body}".strip()
        result = TaggingResult()

        match = CONVENTIONAL_PATTERN.match(subject.strip())
        if match:
            result.conventional_type = match.group(1).lower()
            result.scope = match.group(2)

        result.breaking_changes = self._detect_breaking_changes(subject, body, files)
        result.categories = self._categorize(subject, files, result, is_merge)
        result.importance = max_importance(
            [f.classification.importance for f in files if f.classification]
        )
        result.tags = self._build_tags(message, files, diff_stats, result)
        return result

    def _detect_breaking_changes(self, subject: str, body: str, files: list[FileChange]) -> list[str]:
        evidence = []
        for pattern in BREAKING_PATTERNS:
            if pattern.search(subject) or pattern.search(body):
                evidence.append(subject.strip())
                break
        for line in body.splitlines():
            if re.match(r'^\s*BREAKING[\s_-]*CHANGE:?\s*(.+)$', line, re.IGNORECASE):
                evidence.append(line.strip())
        for f in files:
            if f.status is FileStatus.DELETED and self._is_critical_file(f.path):
                evidence.append(f"Removed critical file {f.path}")
        return list(dict.fromkeys(evidence))

    def _categorize(self, subject: str, files: list[FileChange], result: TaggingResult, is_merge: bool) -> list[str]:
        categories = []
        if is_merge or subject.lower().startswith('merge'):
            categories.append('merge')
        if result.conventional_type in TYPE_TO_CATEGORY:
            categories.append(TYPE_TO_CATEGORY[result.conventional_type])
        elif not categories:
            inferred = self.infer_category_from_message(subject)
            if inferred:
                categories.append(inferred)
        if result.breaking_changes and 'breaking' not in categories:
            categories.append('breaking')

        file_counts = Counter(categorize_file(f.path) for f in files)
        for file_category, _ in file_counts.most_common(2):
            mapped = FILE_CATEGORY_TO_CATEGORY.get(file_category)
            if mapped and mapped not in categories:
                categories.append(mapped)
        return categories

    def infer_category_from_message(self, message: str) -> str | None:
        lowered = message.lower()
        for category, keywords in MESSAGE_KEYWORDS:
            for keyword in keywords:
                if re.search(rf'\b{re.escape(keyword)}', lowered):
                    return category
        return None

    def _build_tags(self, message: str, files: list[FileChange], diff_stats: DiffStats, result: TaggingResult) -> list[str]:
        tags: list[str] = []
        file_categories = {categorize_file(f.path) for f in files}
        paths = ' '.join(f.path.lower() for f in files)

        if any(re.search(r'(?:^|/)(?:database|migrations?|db)/|\.sql$', f.path.lower()) for f in files):
            tags.append('database-changes')
        if 'configuration' in file_categories:
            tags.append('configuration')
        if 'tests' in file_categories:
            tags.append('tests')
        if 'documentation' in file_categories:
            tags.append('documentation')
        if any(self._is_critical_file(f.path) for f in files):
            tags.append('critical-files')
        if result.breaking_changes:
            tags.append('breaking')

        for word in ACTION_WORDS:
            if self._word_re[word].search(message):
                tags.append(word)
        for word in TECH_WORDS:
            if word not in tags and self._word_re[word].search(message):
                tags.append(word)

        if 'frontend' in file_categories or any(self._word_re[m].search(paths) for m in UI_MARKERS):
            if 'ui' not in tags:
                tags.append('ui')
        if 'feature' in result.categories:
            tags.append('feature')

        total_lines = diff_stats.total_changes or sum(f.total_changes for f in files)
        file_count = diff_stats.files or len(files)
        if total_lines > LARGE_CHANGE_LINES or file_count > LARGE_CHANGE_FILES:
            tags.append('large-change')
        return list(dict.fromkeys(tags))

    @staticmethod
    def _is_critical_file(path: str) -> bool:
        return any(p.search(path) for p in CRITICAL_FILE_PATTERNS)
