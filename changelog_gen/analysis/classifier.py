"""Classification Engine - Label files and change sets from path and diff text."""

import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import PurePosixPath

from changelog_gen.models import (
    ChangeComplexity,
    ClassificationResult,
    CommitAnalysis,
    FileStatus,
    FunctionalImpact,
)

IMPORTANCE_ORDER = ['low', 'medium', 'high', 'critical']
RISK_ORDER = ['low', 'medium', 'high']
SCOPE_ORDER = ['local', 'system', 'global']
SEVERITY_ORDER = ['low', 'medium', 'high']

# Dependency manifests and build descriptors
MANIFEST_FILES = {
    'package.json', 'pyproject.toml', 'requirements.txt', 'setup.py', 'setup.cfg',
    'cargo.toml', 'go.mod', 'pom.xml', 'build.gradle', 'gemfile', 'composer.json',
}

LOCK_FILES = {
    'package-lock.json', 'yarn.lock', 'pnpm-lock.yaml', 'poetry.lock',
    'cargo.lock', 'go.sum', 'gemfile.lock', 'composer.lock',
}

CRITICAL_FILES = MANIFEST_FILES | {'dockerfile', 'makefile', 'cmakelists.txt'}

CONFIG_NAMES = LOCK_FILES | MANIFEST_FILES | {
    '.gitignore', '.gitattributes', '.npmrc', '.nvmrc', '.editorconfig', '.dockerignore',
}
CONFIG_EXTENSIONS = {'.toml', '.yaml', '.yml', '.ini', '.cfg', '.conf', '.json', '.env'}

DOC_EXTENSIONS = {'.md', '.rst', '.txt', '.adoc'}
DOC_NAME_PREFIXES = ('readme', 'changelog', 'license', 'contributing', 'authors')
DOC_PATH_MARKERS = ('/docs/', '/doc/')

TEST_PATH_MARKERS = ('/test/', '/tests/', '/__tests__/', '/spec/')
TEST_NAME_MARKERS = ('.test.', '.spec.')

SOURCE_EXTENSIONS = {
    '.js', '.ts', '.jsx', '.tsx', '.mjs', '.cjs', '.py', '.java', '.cpp', '.cc', '.c',
    '.h', '.hpp', '.cs', '.go', '.rs', '.php', '.rb', '.swift', '.kt', '.scala',
}
FRONTEND_EXTENSIONS = {'.html', '.css', '.scss', '.sass', '.less', '.vue', '.svelte'}
ASSET_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.gif', '.svg', '.ico', '.webp', '.woff', '.woff2', '.ttf'}
BUILD_MARKERS = ('webpack', 'rollup', 'vite', 'babel', 'eslint', 'prettier', 'gulpfile',
                 'gruntfile', 'makefile', '/build/', '/dist/')

ENTRY_POINT_PREFIXES = ('index.', 'main.', 'app.', 'server.')
NEW_MODULE_EXTENSIONS = {'.js', '.ts', '.py'}

LANGUAGES = {
    '.js': 'JavaScript', '.jsx': 'React JSX', '.mjs': 'JavaScript', '.cjs': 'JavaScript',
    '.ts': 'TypeScript', '.tsx': 'React TSX',
    '.py': 'Python', '.java': 'Java', '.cpp': 'C++', '.cc': 'C++', '.c': 'C', '.h': 'C',
    '.hpp': 'C++', '.cs': 'C#', '.go': 'Go', '.rs': 'Rust', '.php': 'PHP', '.rb': 'Ruby',
    '.swift': 'Swift', '.kt': 'Kotlin', '.scala': 'Scala',
    '.html': 'HTML', '.css': 'CSS', '.scss': 'SCSS', '.sass': 'Sass', '.less': 'Less',
    '.vue': 'Vue', '.svelte': 'Svelte',
    '.json': 'JSON', '.xml': 'XML', '.yaml': 'YAML', '.yml': 'YAML', '.toml': 'TOML',
    '.md': 'Markdown', '.rst': 'reStructuredText', '.sql': 'SQL', '.sh': 'Shell',
}

# Complexity score thresholds: (min_changed_lines, score)
COMPLEXITY_THRESHOLDS = [
    (200, 5),
    (100, 4),
    (50, 3),
    (10, 2),
    (0, 1),
]

CODE_ELEMENT_PATTERNS: list[tuple[str, str]] = [
    ('function_definition', r'^[+-]\s*(?:export\s+)?(?:async\s+)?(?:function\s+\w+|def\s+\w+|func\s+\w+|fn\s+\w+)'),
    ('component_definition', r'^[+-]\s*(?:export\s+)?(?:default\s+)?(?:function|const)\s+[A-Z]\w*\s*[=(]'),
    ('hook_definition', r'^[+-]\s*(?:export\s+)?(?:function|const)\s+use[A-Z]\w*'),
    ('type_definition', r'^[+-]\s*(?:export\s+)?(?:interface|type|enum)\s+\w+'),
    ('class_definition', r'^[+-]\s*(?:export\s+)?(?:abstract\s+)?class\s+\w+'),
    ('constant_definition', r'^[+-]\s*(?:export\s+)?(?:const\s+)?[A-Z][A-Z0-9_]{2,}\s*[:=]'),
]

IDIOM_PATTERNS: list[tuple[str, str]] = [
    ('error_handling', r'\btry\s*[:{]|\bcatch\s*\(|\bexcept\b|\.catch\(|\bthrow\s+new\b|\braise\s+\w+'),
    ('async_operations', r'\basync\s+|\bawait\s+|\bPromise\.|\basyncio\b'),
    ('data_validation', r'\bvalidat\w*|\bzod\b|\byup\.|\bjoi\.|\bpydantic\b|\bschema\.parse'),
    ('authentication', r'\bauthenticat\w*|\blog(?:in|out)\b|\bjwt\b|\bsession\b|\bpassword\b'),
    ('authorization', r'\bpermissions?\b|\broles?\b|\bauthori[sz]\w*|\bacl\b'),
    ('caching', r'\bcache\w*|\bmemoiz\w*|\bredis\b|\blru_cache\b'),
    ('testing', r'\bdescribe\(|\bit\(|\btest\(|\bexpect\(|\bassert\b|\bpytest\b'),
    ('styling', r'\bclassName=|\bstyled\.|\bcss`|\btailwind\b|\bstyle=\{'),
    ('state_management', r'\buseReducer\b|\bredux\b|\bzustand\b|\bcreateStore\b|\bsetState\b|\bcreateSlice\b'),
    ('routing', r'\buseRouter\b|<Route\b|\brouter\.(?:push|replace|use)\b|@app\.route\b|\bnavigate\('),
    ('data_fetching', r'\bfetch\(|\baxios\b|\buseQuery\b|\buseSWR\b|\brequests\.(?:get|post|put|delete)\b|\bhttpx\b'),
]

API_HANDLER_PATTERN = re.compile(
    r'export\s+(?:async\s+)?function\s+(GET|POST|PUT|PATCH|DELETE)\b'
    r'|\b(?:app|router)\.(get|post|put|patch|delete)\s*\('
    r'|@(?:app|router)\.(get|post|put|patch|delete)\b',
    re.IGNORECASE,
)

_CODE_ELEMENT_RE = [(tag, re.compile(p, re.MULTILINE)) for tag, p in CODE_ELEMENT_PATTERNS]
_IDIOM_RE = [(tag, re.compile(p, re.IGNORECASE if tag in ('authentication', 'authorization', 'caching') else 0))
             for tag, p in IDIOM_PATTERNS]
_SCHEMA_RE = re.compile(r'\b(?:CREATE|ALTER)\s+TABLE\b', re.IGNORECASE)
_POLICY_RE = re.compile(r'\b(?:CREATE|ALTER)\s+POLICY\b', re.IGNORECASE)
_REACT_HOOKS_RE = re.compile(r'\buse(?:State|Effect)\b')
_REACT_PERF_RE = re.compile(r'\buse(?:Callback|Memo)\b')
_ASYNC_RE = re.compile(r'\basync\b|\bawait\b|\bPromise\b')
_SECURITY_RE = re.compile(r'auth|permission|security', re.IGNORECASE)
_EXPORT_RE = re.compile(r'\bexport\b|endpoint|route', re.IGNORECASE)
_DEFINITION_RE = re.compile(
    r'^([+-])\s*(?:export\s+)?(?:async\s+)?(?:def|function|class|func|fn)\s+([A-Za-z]\w*)',
    re.MULTILINE,
)

HIGH_RISK_KEYWORDS = re.compile(
    r'\b(?:breaking|remov\w*|delet\w*|deprecat\w*|migrat\w*|drop(?:s|ped)?|incompatible)\b',
    re.IGNORECASE,
)
INFRA_PATH_PATTERN = re.compile(
    r'(?:^|/)(?:package(?:-lock)?\.json|yarn\.lock|pnpm-lock\.yaml|pyproject\.toml'
    r'|requirements[\w.-]*\.txt|cargo\.(?:toml|lock)|go\.(?:mod|sum)|dockerfile'
    r'|docker-compose[\w.-]*|\.env[\w.]*)(?=\s|$)'
    r'|(?:^|/)(?:database|migrations?|terraform|k8s|helm|infra(?:structure)?|deploy)/',
    re.IGNORECASE | re.MULTILINE,
)
LARGE_CHANGE_FILES = 15
LARGE_CHANGE_CHARS = 10000

BUSINESS_KEYWORDS = re.compile(
    r'\b(?:feature|users?|customers?|clients?|business|revenue|payments?|billing'
    r'|subscriptions?|auth\w*|login|security)\b',
    re.IGNORECASE,
)
BUSINESS_PATH_SEGMENTS = (
    '/api/', '/service/', '/services/', '/controller/', '/controllers/', '/model/',
    '/models/', '/auth/', '/payment/', '/payments/', '/billing/', '/user/', '/users/',
)


@dataclass(frozen=True)
class SemanticAnalysis:
    """Evidence found in a diff by the pattern library."""
    change_type: str = "code_change"
    patterns: frozenset[str] = frozenset()
    frameworks: frozenset[str] = frozenset()
    code_elements: frozenset[str] = frozenset()


def normalize_path(path: str) -> str:
    """Lowercase, forward slashes, leading slash so root dirs match '/src/'."""
    normalized = path.replace('\\', '/').lower()
    return normalized if normalized.startswith('/') else '/' + normalized


def _name_and_suffix(path: str) -> tuple[str, str]:
    pure = PurePosixPath(normalize_path(path))
    return pure.name, pure.suffix


def _escalate(current: str, candidate: str, order: list[str]) -> str:
    return candidate if order.index(candidate) > order.index(current) else current


# ---------------------------------------------------------------------------
# Path predicates shared with the response validators
# ---------------------------------------------------------------------------

def is_documentation_file(path: str) -> bool:
    """Markdown, README or CHANGELOG file."""
    name, suffix = _name_and_suffix(path)
    return suffix == '.md' or name.startswith('readme') or name.startswith('changelog')


def is_test_file(path: str) -> bool:
    p = normalize_path(path)
    name = PurePosixPath(p).name
    return (
        any(marker in p for marker in TEST_PATH_MARKERS)
        or any(marker in name for marker in TEST_NAME_MARKERS)
        or name.startswith('test_')
        or re.search(r'_test\.\w+$', name) is not None
    )


def is_new_module_candidate(path: str) -> bool:
    _, suffix = _name_and_suffix(path)
    return suffix in NEW_MODULE_EXTENSIONS


def is_manifest(path: str) -> bool:
    name, _ = _name_and_suffix(path)
    return name in MANIFEST_FILES or name in LOCK_FILES or re.match(r'requirements[\w.-]*\.txt$', name) is not None


# ---------------------------------------------------------------------------
# Per-file classification
# ---------------------------------------------------------------------------

@lru_cache(maxsize=4096)
def categorize_file(path: str) -> str:
    """Assign a file category; precedence runs configuration first, other last."""
    p = normalize_path(path)
    name, suffix = _name_and_suffix(path)

    if (name in CONFIG_NAMES or suffix in CONFIG_EXTENSIONS or name.startswith('.env')
            or name.startswith('dockerfile') or name.startswith('docker-compose')):
        return 'configuration'
    if (suffix in DOC_EXTENSIONS or name.startswith(DOC_NAME_PREFIXES)
            or any(marker in p for marker in DOC_PATH_MARKERS)):
        return 'documentation'
    if is_test_file(path):
        return 'tests'
    if suffix in SOURCE_EXTENSIONS:
        return 'source'
    if suffix in FRONTEND_EXTENSIONS:
        return 'frontend'
    if suffix in ASSET_EXTENSIONS:
        return 'assets'
    if any(marker in p for marker in BUILD_MARKERS):
        return 'build'
    return 'other'


@lru_cache(maxsize=4096)
def detect_language(path: str) -> str:
    _, suffix = _name_and_suffix(path)
    return LANGUAGES.get(suffix, 'Unknown')


def assess_file_importance(path: str, status: FileStatus) -> str:
    """critical / high / medium / low; a deleted file is at least high."""
    p = normalize_path(path)
    name, _ = _name_and_suffix(path)
    category = categorize_file(path)

    if name in CRITICAL_FILES or name.startswith('docker-compose'):
        importance = 'critical'
    elif '/src/' in p or '/lib/' in p:
        importance = 'critical' if name.startswith(ENTRY_POINT_PREFIXES) else 'high'
    elif category == 'configuration':
        importance = 'high'
    elif category == 'tests':
        importance = 'medium'
    elif category == 'documentation':
        importance = 'low'
    else:
        importance = 'medium'

    if status is FileStatus.DELETED:
        importance = _escalate(importance, 'high', IMPORTANCE_ORDER)
    return importance


def count_changed_lines(diff: str) -> tuple[int, int]:
    """Return (additions, deletions) from +/- lines, ignoring file headers."""
    additions = deletions = 0
    for line in diff.splitlines():
        if line.startswith('+') and not line.startswith('+++'):
            additions += 1
        elif line.startswith('-') and not line.startswith('---'):
            deletions += 1
    return additions, deletions


def assess_change_complexity(diff: str) -> ChangeComplexity:
    additions, deletions = count_changed_lines(diff or "")
    return complexity_from_counts(additions, deletions)


def complexity_from_counts(additions: int, deletions: int) -> ChangeComplexity:
    total = additions + deletions
    score = next(s for threshold, s in COMPLEXITY_THRESHOLDS if total >= threshold)
    if score <= 2:
        level = 'low'
    elif score == 3:
        level = 'medium'
    else:
        level = 'high'
    return ChangeComplexity(score=score, level=level, additions=additions, deletions=deletions)


def analyze_semantic_changes(diff: str, path: str) -> SemanticAnalysis:
    """Collect framework and idiom tags from a diff. Evidence only."""
    diff = diff or ""
    p = normalize_path(path)
    name, suffix = _name_and_suffix(path)
    change_type = 'code_change'
    patterns: set[str] = set()
    frameworks: set[str] = set()
    elements: set[str] = set()

    if any(marker in p for marker in ('/database/', '/sql/', '/migrations/')) or suffix == '.sql':
        frameworks.add('database')
        if _SCHEMA_RE.search(diff):
            patterns.add('database_schema')
            change_type = 'schema_change'
        if _POLICY_RE.search(diff):
            patterns.add('security_policy')

    if suffix in ('.tsx', '.jsx'):
        frameworks.add('react')
        if _REACT_HOOKS_RE.search(diff):
            patterns.add('react_hooks')
        if _REACT_PERF_RE.search(diff):
            patterns.add('performance_optimization')

    if '/api/' in p or name.startswith('route.') or name.startswith('routes.'):
        frameworks.add('api')
        change_type = 'api_change' if change_type == 'code_change' else change_type
        for match in API_HANDLER_PATTERN.finditer(diff):
            verb = next(g for g in match.groups() if g).lower()
            patterns.add('api_endpoint')
            patterns.add(f'api_{verb}')

    for tag, regex in _CODE_ELEMENT_RE:
        if regex.search(diff):
            elements.add(tag)
    for tag, regex in _IDIOM_RE:
        if regex.search(diff):
            patterns.add(tag)

    return SemanticAnalysis(
        change_type=change_type,
        patterns=frozenset(patterns | elements),
        frameworks=frozenset(frameworks),
        code_elements=frozenset(elements),
    )


def _removed_public_definitions(diff: str) -> set[str]:
    added, removed = set(), set()
    for sign, name in _DEFINITION_RE.findall(diff):
        if name.startswith('_'):
            continue
        (added if sign == '+' else removed).add(name)
    return removed - added


def analyze_functional_impact(diff: str, path: str, status: FileStatus) -> FunctionalImpact:
    if status is FileStatus.DELETED:
        return FunctionalImpact(scope='global', severity='high',
                                affected_systems=frozenset({'removed_functionality'}),
                                backward_compatible=False)

    diff = diff or ""
    if not diff.strip():
        return FunctionalImpact()

    p = normalize_path(path)
    scope, severity = 'local', 'low'
    systems: set[str] = set()
    backward_compatible, migration_required = True, False

    if any(marker in p for marker in ('/api/', '/server/', '/backend/')):
        scope = _escalate(scope, 'system', SCOPE_ORDER)
        systems.add('backend')
        if _EXPORT_RE.search(diff):
            scope = 'global'
            severity = _escalate(severity, 'medium', SEVERITY_ORDER)

    if is_manifest(path):
        scope, severity = 'global', 'high'
        systems.add('dependencies')
        migration_required = True

    if any(marker in p for marker in ('/database/', '/migrations/', '/migration/')):
        scope, severity = 'global', 'high'
        systems.add('database')
        migration_required = True
        backward_compatible = False

    if _ASYNC_RE.search(diff):
        systems.add('performance')

    if _SECURITY_RE.search(diff):
        systems.add('security')
        severity = 'high'

    if _removed_public_definitions(diff):
        systems.add('public_api')
        backward_compatible = False
        severity = _escalate(severity, 'medium', SEVERITY_ORDER)

    return FunctionalImpact(
        scope=scope,
        severity=severity,
        affected_systems=frozenset(systems),
        backward_compatible=backward_compatible,
        migration_required=migration_required,
    )


def classify_file_change(path: str, diff: str, status: FileStatus) -> ClassificationResult:
    """Bundle every per-file label into one result."""
    return ClassificationResult(
        category=categorize_file(path),
        language=detect_language(path),
        importance=assess_file_importance(path, status),
        complexity=assess_change_complexity(diff),
        semantic_patterns=analyze_semantic_changes(diff, path).patterns,
        functional_impact=analyze_functional_impact(diff, path, status),
    )


# ---------------------------------------------------------------------------
# Change-set classification
# ---------------------------------------------------------------------------

def assess_risk(diff: str, file_count: int, commit_message: str | None) -> str:
    """low / medium / high. Each independent signal raises the level by one."""
    diff = diff or ""
    level = 0
    if HIGH_RISK_KEYWORDS.search(commit_message or ""):
        level += 1
    if INFRA_PATH_PATTERN.search(diff):
        level += 1
    if file_count > LARGE_CHANGE_FILES or len(diff) > LARGE_CHANGE_CHARS:
        level += 1
    return RISK_ORDER[min(level, len(RISK_ORDER) - 1)]


def assess_business_relevance(message: str | None, paths: list[str]) -> str:
    has_keyword = BUSINESS_KEYWORDS.search(message or "") is not None
    has_path = any(
        segment in normalize_path(path) for path in paths for segment in BUSINESS_PATH_SEGMENTS
    )
    if has_keyword and has_path:
        return 'high'
    if has_keyword or has_path:
        return 'medium'
    return 'low'


@dataclass(frozen=True)
class ChangeSignals:
    """Raw counts used to check an AI classification against the commit."""
    file_count: int
    added_files: int
    insertions: int
    deletions: int
    docs_only: bool
    tests_only: bool
    new_source_modules: int
    breaking_markup: bool

    @property
    def total_changes(self) -> int:
        return self.insertions + self.deletions


_BREAKING_MARKUP_RE = re.compile(r'^\w+(?:\([^)]*\))?!|^\w+!')


def has_breaking_markup(subject: str) -> bool:
    return bool(_BREAKING_MARKUP_RE.match(subject.strip())) or 'breaking' in subject.lower()


def change_signals(commit: CommitAnalysis) -> ChangeSignals:
    files = commit.files
    paths = [f.path for f in files]
    added = [f for f in files if f.status is FileStatus.ADDED]
    insertions = commit.diff_stats.insertions or sum(f.additions for f in files)
    deletions = commit.diff_stats.deletions or sum(f.deletions for f in files)
    return ChangeSignals(
        file_count=commit.file_count,
        added_files=len(added),
        insertions=insertions,
        deletions=deletions,
        docs_only=bool(paths) and all(is_documentation_file(p) for p in paths),
        tests_only=bool(paths) and all(is_test_file(p) for p in paths),
        new_source_modules=sum(
            1 for f in added if is_new_module_candidate(f.path) and not is_test_file(f.path)
        ),
        breaking_markup=has_breaking_markup(commit.subject),
    )


def max_importance(levels: list[str]) -> str:
    """Highest importance in the list, or medium when empty."""
    known = [level for level in levels if level in IMPORTANCE_ORDER]
    if not known:
        return 'medium'
    return max(known, key=IMPORTANCE_ORDER.index)
