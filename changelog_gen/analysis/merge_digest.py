"""Merge Digest - Compress a high fan-out merge into a bounded summary."""

import re
from pathlib import PurePosixPath

from changelog_gen.analysis.classifier import is_manifest
from changelog_gen.models import FileChange

MERGE_DIGEST_THRESHOLD = 10
MAX_KEY_FILES = 5
MAX_EXAMPLES = 3
MAX_DETAIL_ITEMS = 5
LARGE_FILE_LINES = 100

# (bucket, label, path substrings); first match wins in this order
BUCKETS: list[tuple[str, str, tuple[str, ...]]] = [
    ('tests', 'Tests', ('test/', 'tests/', '__tests__', '.test.', '.spec.', 'test_', '_test.')),
    ('docs', 'Documentation', ('.md', '.rst', 'docs/', 'readme', 'changelog')),
    ('config', 'Configuration', ('.json', '.yml', '.yaml', '.toml', '.ini', '.cfg', '.env',
                                 '.gitignore', 'requirements', '.lock', 'config')),
    ('core-domain', 'Core domain', ('domain', 'core/', 'models/', 'services/', 'entities/', 'lib/')),
    ('infrastructure', 'Infrastructure', ('docker', '.github/', 'ci/', 'deploy', 'terraform',
                                          'k8s/', 'helm/', 'infra', 'providers/', 'scripts/')),
    ('cli', 'CLI', ('cli', 'bin/', 'commands/')),
]
OTHER_BUCKET = ('other', 'Other')
BUCKET_LABELS = dict([(name, label) for name, label, _ in BUCKETS] + [OTHER_BUCKET])

IGNORED_MANIFEST_KEYS = {
    'name', 'version', 'description', 'main', 'module', 'types', 'license', 'author', 'type',
    'private', 'homepage', 'repository', 'readme', 'packagemanager',
    'requires-python', 'python_requires', 'python', 'node',
    # npm scripts
    'build', 'test', 'start', 'dev', 'lint', 'format', 'prepare', 'preview', 'watch',
    'clean', 'typecheck', 'postinstall', 'prepublishonly',
}

_JSON_DEP_RE = re.compile(r'^([+-])\s*"([@\w./-]+)"\s*:\s*"([^"]+)"')
_PY_DEP_RE = re.compile(r'^([+-])\s*"?([A-Za-z0-9][\w.\-\[\]]*)\s*(?:==|>=|<=|~=|\^|=|>|<)\s*"?([^",\s]+)')
_NEW_SYMBOL_RE = re.compile(
    r'^\+\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?(?:def|function|class|func|fn|interface)\s+([A-Za-z_]\w*)'
    r'|^\+\s*(?:export\s+)?const\s+([A-Za-z_]\w*)\s*=\s*(?:async\s*)?\(',
    re.MULTILINE,
)


def bucket_for_path(path: str) -> str:
    lowered = path.replace('\\', '/').lower()
    for name, _, markers in BUCKETS:
        if any(marker in lowered for marker in markers):
            return name
    return OTHER_BUCKET[0]


def bucket_files(files: list[FileChange]) -> dict[str, list[FileChange]]:
    """Group files by bucket, keeping bucket priority order and empty buckets out."""
    grouped: dict[str, list[FileChange]] = {name: [] for name, _, _ in BUCKETS}
    grouped[OTHER_BUCKET[0]] = []
    for f in files:
        grouped[bucket_for_path(f.path)].append(f)
    return {name: members for name, members in grouped.items() if members}


def select_key_files(files: list[FileChange], limit: int = MAX_KEY_FILES) -> list[FileChange]:
    """Pick the files worth fetching a full diff for."""
    manifests = [f for f in files if is_manifest(f.path)]
    ignores = [f for f in files if PurePosixPath(f.path).name == '.gitignore']
    configs = [f for f in files if bucket_for_path(f.path) == 'config']
    large = sorted(
        (f for f in files if f.total_changes > LARGE_FILE_LINES),
        key=lambda f: -f.total_changes,
    )
    selected: dict[str, FileChange] = {}
    for f in [*manifests, *ignores, *configs, *large]:
        selected.setdefault(f.path, f)
        if len(selected) >= limit:
            break
    return list(selected.values())


def _dependency_deltas(diff: str) -> list[str]:
    removed: dict[str, str] = {}
    added: dict[str, str] = {}
    for line in diff.splitlines():
        if line.startswith(('+++', '---')):
            continue
        match = _JSON_DEP_RE.match(line) or _PY_DEP_RE.match(line)
        if not match:
            continue
        sign, name, version = match.groups()
        if name.lower() in IGNORED_MANIFEST_KEYS:
            continue
        (added if sign == '+' else removed)[name] = version

    deltas = []
    for name, version in added.items():
        if name in removed and removed[name] != version:
            deltas.append(f"{name} {removed[name]} → {version}")
        elif name not in removed:
            deltas.append(f"+{name} {version}")
    deltas.extend(f"-{name}" for name in removed if name not in added)
    return deltas


def _ignore_pattern_changes(diff: str) -> list[str]:
    changes = []
    for line in diff.splitlines():
        if line.startswith(('+++', '---')):
            continue
        if line[:1] in '+-' and line[1:].strip() and not line[1:].strip().startswith('#'):
            changes.append(f"{line[0]}{line[1:].strip()}")
    return changes


def _new_symbols(diff: str) -> list[str]:
    names = [a or b for a, b in _NEW_SYMBOL_RE.findall(diff)]
    return list(dict.fromkeys(names))


def extract_technical_detail(path: str, diff: str) -> str | None:
    """Targeted one-line detail for a sampled key file."""
    if not diff:
        return None
    if is_manifest(path):
        items, label = _dependency_deltas(diff), "dependencies"
    elif PurePosixPath(path).name == '.gitignore':
        items, label = _ignore_pattern_changes(diff), "ignore patterns"
    else:
        items, label = _new_symbols(diff), "new symbols"
    if not items:
        return None
    shown = ', '.join(items[:MAX_DETAIL_ITEMS])
    more = f" (+{len(items) - MAX_DETAIL_ITEMS} more)" if len(items) > MAX_DETAIL_ITEMS else ""
    return f"{label} in {PurePosixPath(path).name}: {shown}{more}"


def build_merge_digest(files: list[FileChange], sampled_diffs: dict[str, str] | None = None) -> str:
    """Render one bullet per non-empty bucket."""
    sampled_diffs = sampled_diffs or {}
    additions = sum(f.additions for f in files)
    deletions = sum(f.deletions for f in files)
    lines = [f"Merge summary ({len(files)} files changed, +{additions} -{deletions} lines):"]

    for bucket, members in bucket_files(files).items():
        examples = ', '.join(PurePosixPath(f.path).name for f in members[:MAX_EXAMPLES])
        changed = sum(f.total_changes for f in members)
        noun = "file" if len(members) == 1 else "files"
        bullet = f"- {BUCKET_LABELS[bucket]}: {len(members)} {noun} (e.g. {examples}), {changed} lines changed"

        details = []
        for f in members:
            if f.path in sampled_diffs:
                detail = extract_technical_detail(f.path, sampled_diffs[f.path])
                if detail:
                    details.append(detail)
        if details:
            bullet += "; " + "; ".join(details)
        lines.append(bullet)

    return "\n".join(lines)
