"""Git Analyzer - Turn commits and working-tree state into FileChange lists."""

import logging
import re
from dataclasses import replace
from datetime import date
from pathlib import Path

from changelog_gen.analysis.classifier import (
    assess_business_relevance,
    assess_risk,
    classify_file_change,
    complexity_from_counts,
    count_changed_lines,
)
from changelog_gen.analysis.merge_digest import MERGE_DIGEST_THRESHOLD, build_merge_digest, select_key_files
from changelog_gen.analysis.tagger import CommitTagger
from changelog_gen.git.runner import GitRunner, Outcome
from changelog_gen.models import CommitAnalysis, DiffStats, FileChange, FileStatus

logger = logging.getLogger(__name__)

HASH_PATTERN = re.compile(r'^[0-9a-f]{4,40}$', re.IGNORECASE)
FIELD_SEP = '\x1f'
METADATA_FORMAT = FIELD_SEP.join(['%H', '%s', '%an', '%ad', '%P', '%b'])

DIFF_CONTEXT_LINES = 5
PREVIEW_CHARS = 1000
NEW_FILE_PREVIEW_LINES = 50
DELETED_PREVIEW_LINES = 30
STAT_WIDTH = '--stat=1000,900'

DELETED_PLACEHOLDER = "File deleted in this commit"
UNAVAILABLE_PLACEHOLDER = "File content unavailable (git show failed)"
NEW_FILE_UNAVAILABLE = "New file created (content unavailable)"
NO_CHANGES_PLACEHOLDER = "No changes detected (binary or empty file)"
NO_WORKING_DIFF = "No diff available (binary or identical)"

SHORTSTAT_PATTERN = re.compile(
    r'(\d+) files? changed(?:, (\d+) insertions?\(\+\))?(?:, (\d+) deletions?\(-\))?'
)
STAT_LINE_PATTERN = re.compile(r'^\s*(.+?)\s+\|\s+(.*)$')
STAT_COUNT_PATTERN = re.compile(r'^(\d+)\s*([+-]*)')
RENAME_BRACES = re.compile(r'\{([^{}]*?) => ([^{}]*?)\}')


def parse_shortstat(text: str) -> DiffStats:
    match = SHORTSTAT_PATTERN.search(text or "")
    if not match:
        return DiffStats()
    files, insertions, deletions = (int(g) if g else 0 for g in match.groups())
    return DiffStats(files=files, insertions=insertions, deletions=deletions)


def resolve_rename_path(path: str) -> str:
    """Reduce `a => b` and `dir/{a => b}/f` stat notation to the new path."""
    if '{' in path and ' => ' in path:
        path = RENAME_BRACES.sub(lambda m: m.group(2), path)
        return re.sub(r'/{2,}', '/', path).lstrip('/')
    if ' => ' in path:
        return path.split(' => ', 1)[1]
    return path


def parse_stat_output(text: str) -> list[FileChange]:
    """Parse `path | N ++--` lines into approximate FileChange entries."""
    files = []
    for line in (text or "").splitlines():
        match = STAT_LINE_PATTERN.match(line)
        if not match:
            continue
        path = resolve_rename_path(match.group(1).strip())
        rest = match.group(2).strip()

        additions = deletions = 0
        status = FileStatus.MODIFIED
        count_match = STAT_COUNT_PATTERN.match(rest)
        if count_match and not rest.startswith('Bin'):
            total = int(count_match.group(1))
            plus = count_match.group(2).count('+')
            minus = count_match.group(2).count('-')
            if plus + minus:
                additions = round(total * plus / (plus + minus))
                deletions = total - additions
            if plus and not minus:
                status = FileStatus.ADDED
            elif minus and not plus:
                status = FileStatus.DELETED

        diff = f"Merge change: +{additions} -{deletions} lines (approximate)"
        classification = replace(
            classify_file_change(path, diff, status),
            complexity=complexity_from_counts(additions, deletions),
        )
        files.append(FileChange(
            status=status,
            path=path,
            diff=diff,
            additions=additions,
            deletions=deletions,
            classification=classification,
        ))
    return files


def _preview_lines(content: str, limit: int) -> tuple[str, int, bool]:
    lines = content.splitlines()
    return '\n'.join(lines[:limit]), len(lines), len(lines) > limit


class GitAnalyzer:
    """Builds CommitAnalysis objects from a repository."""

    def __init__(self, runner: GitRunner | None = None, tagger: CommitTagger | None = None,
                 include_content: bool = True):
        self.runner = runner or GitRunner()
        self.tagger = tagger or CommitTagger()
        self.include_content = include_content

    # ------------------------------------------------------------------
    # Commit selection
    # ------------------------------------------------------------------

    def get_commits(self, since: str | None = None, revision_range: str | None = None,
                    limit: int | None = None) -> list[str]:
        """Commit hashes in git log order. Raises GitError on a bad range."""
        args = ['log', '--format=%H']
        if since:
            args.append(f'--since={since}')
        if limit:
            args.append(f'-n{limit}')
        if revision_range:
            args.append(revision_range)
        output = self.runner.run(*args)
        return [line.strip() for line in output.splitlines() if line.strip()]

    def get_repository_root(self) -> str | None:
        return self.runner.run_safe('rev-parse', '--show-toplevel').strip() or None

    def get_current_branch(self) -> str:
        return self.runner.run_safe('rev-parse', '--abbrev-ref', 'HEAD').strip()

    # ------------------------------------------------------------------
    # Committed changes
    # ------------------------------------------------------------------

    def get_commit_analysis(self, commit_hash: str) -> CommitAnalysis | None:
        """Analyze one commit, or return None when it cannot be resolved."""
        commit_hash = (commit_hash or "").strip()
        if not HASH_PATTERN.match(commit_hash):
            logger.warning("Invalid commit hash: %r", commit_hash)
            return None
        if self.runner.execute('cat-file', '-e', f'{commit_hash}^{{commit}}').failed:
            logger.warning("Commit %s not found", commit_hash)
            return None

        meta = self.runner.execute('show', '--no-patch', f'--format={METADATA_FORMAT}', '--date=short', commit_hash)
        fields = meta.output.strip('\n').split(FIELD_SEP, 5) if meta.ok else []
        if len(fields) < 6:
            logger.warning("Could not read metadata for commit %s", commit_hash)
            return None
        full_hash, subject, author, commit_date, parent_field, body = fields
        parents = parent_field.split()

        is_merge = 'merge' in subject.lower() or len(parents) > 1
        base = self._diff_base(full_hash, parents, is_merge)
        if is_merge:
            files = self._get_merge_files(base)
        else:
            files = self._get_commit_files(full_hash)

        diff_stats = parse_shortstat(self.runner.run_safe(*base, '--shortstat'))
        if not diff_stats.files and files:
            diff_stats = DiffStats(
                files=len(files),
                insertions=sum(f.additions for f in files),
                deletions=sum(f.deletions for f in files),
            )

        return self._build_analysis(
            commit_hash=full_hash,
            subject=subject,
            author=author,
            commit_date=commit_date,
            body=body.strip(),
            files=files,
            diff_stats=diff_stats,
            is_merge=is_merge,
            parents=parents,
        )

    def _diff_base(self, commit_hash: str, parents: list[str], is_merge: bool) -> list[str]:
        if is_merge and len(parents) > 1:
            return ['diff', parents[0], commit_hash]
        return ['show', '--format=', commit_hash]

    def _get_commit_files(self, commit_hash: str) -> list[FileChange]:
        result = self.runner.execute('show', '--name-status', '--format=', '-M', commit_hash)
        if result.failed:
            logger.warning("Could not list files for commit %s", commit_hash)
            return []

        files = []
        for line in result.output.splitlines():
            parts = line.split('\t')
            if len(parts) < 2:
                continue
            status = FileStatus.from_code(parts[0])
            old_path = parts[1] if len(parts) > 2 else None
            files.append(self.analyze_commit_file(commit_hash, status, parts[-1], old_path))
        return files

    def analyze_commit_file(self, commit_hash: str, status: FileStatus, path: str,
                            old_path: str | None = None) -> FileChange:
        """Ingest one file of a commit. Never raises."""
        result = self.runner.execute('show', '--format=', commit_hash, f'-U{DIFF_CONTEXT_LINES}', '--', path)
        additions = deletions = 0

        if result.failed:
            logger.warning("Diff unavailable for %s in %s", path, commit_hash[:7])
            diff = DELETED_PLACEHOLDER if status is FileStatus.DELETED else UNAVAILABLE_PLACEHOLDER
        elif result.outcome is Outcome.EMPTY:
            if status is FileStatus.ADDED:
                diff, additions = self._new_file_preview(commit_hash, path)
            else:
                diff = NO_CHANGES_PLACEHOLDER
        else:
            diff = result.output
            additions, deletions = count_changed_lines(diff)

        before_content = after_content = None
        if self.include_content:
            if status is not FileStatus.ADDED:
                before = self.runner.run_or_none('show', f'{commit_hash}~1:{old_path or path}')
                before_content = before[:PREVIEW_CHARS] if before is not None else None
            if status is not FileStatus.DELETED:
                after = self.runner.run_or_none('show', f'{commit_hash}:{path}')
                after_content = after[:PREVIEW_CHARS] if after is not None else None

        return FileChange(
            status=status,
            path=path,
            diff=diff,
            before_content=before_content,
            after_content=after_content,
            additions=additions,
            deletions=deletions,
            old_path=old_path,
            classification=classify_file_change(path, diff, status),
        )

    def _new_file_preview(self, commit_hash: str, path: str) -> tuple[str, int]:
        content = self.runner.run_or_none('show', f'{commit_hash}:{path}')
        if content is None:
            return NEW_FILE_UNAVAILABLE, 0
        preview = content[:PREVIEW_CHARS]
        if len(content) > PREVIEW_CHARS:
            preview += "\n..."
        return f"New file created with content:\n{preview}", len(content.splitlines())

    def _get_merge_files(self, base: list[str]) -> list[FileChange]:
        """Stat-only ingestion for merges, plus a digest for large ones."""
        files = parse_stat_output(self.runner.run_safe(*base, STAT_WIDTH))
        if len(files) > MERGE_DIGEST_THRESHOLD:
            sampled = {
                key.path: self.runner.run_safe(*base, '--', key.path)
                for key in select_key_files(files)
            }
            files[0] = replace(files[0], enhanced_merge_summary=build_merge_digest(files, sampled))
        return files

    # ------------------------------------------------------------------
    # Working tree
    # ------------------------------------------------------------------

    def get_working_tree_changes(self) -> list[FileChange]:
        output = self.runner.run_safe('status', '--porcelain')
        root = self.get_repository_root()
        changes = []
        for line in output.splitlines():
            if len(line) < 4:
                continue
            code = line[:2].strip() or '??'
            path = line[3:]
            old_path = None
            if ' -> ' in path:
                old_path, path = path.split(' -> ', 1)
            changes.append(self.analyze_working_tree_file(code, path.strip('"'), old_path, root))
        return changes

    def analyze_working_tree_file(self, code: str, path: str, old_path: str | None = None,
                                  root: str | None = None) -> FileChange:
        """Ingest one uncommitted file. Never raises."""
        status = FileStatus.from_code(code)
        additions = deletions = 0
        before_content = after_content = None

        if status is FileStatus.ADDED:
            content = self._read_working_file(root, path)
            if content is None:
                diff = NEW_FILE_UNAVAILABLE
            else:
                preview, line_count, truncated = _preview_lines(content, NEW_FILE_PREVIEW_LINES)
                diff = f"New file created with {line_count} lines\n\nContent preview:\n{preview}"
                if truncated:
                    diff += "\n... (truncated)"
                additions = line_count
                after_content = content[:PREVIEW_CHARS]
        elif status is FileStatus.DELETED:
            previous = self.runner.run_or_none('show', f'HEAD:{path}')
            diff = "File deleted from working directory"
            if previous is not None:
                preview, line_count, truncated = _preview_lines(previous, DELETED_PREVIEW_LINES)
                diff += f"\n\nRemoved content preview:\n{preview}"
                if truncated:
                    diff += "\n... (truncated)"
                deletions = line_count
                before_content = previous[:PREVIEW_CHARS]
        elif status is FileStatus.MODIFIED:
            result = self.runner.execute('diff', 'HEAD', '--', path)
            if result.outcome is not Outcome.OK:
                result = self.runner.execute('diff', '--cached', '--', path)
            diff = result.output if result.ok else NO_WORKING_DIFF
            if result.ok:
                additions, deletions = count_changed_lines(diff)
        elif status is FileStatus.RENAMED:
            diff = "File renamed in working directory"
        else:
            diff = f"File status: {code}"

        return FileChange(
            status=status,
            path=path,
            diff=diff,
            before_content=before_content,
            after_content=after_content,
            additions=additions,
            deletions=deletions,
            old_path=old_path,
            classification=classify_file_change(path, diff, status),
        )

    def _read_working_file(self, root: str | None, path: str) -> str | None:
        base = Path(root) if root else Path(self.runner.cwd or '.')
        try:
            return (base / path).read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def get_working_tree_analysis(self) -> CommitAnalysis | None:
        """Wrap uncommitted changes as a pseudo commit, or None when clean."""
        files = self.get_working_tree_changes()
        if not files:
            return None
        diff_stats = DiffStats(
            files=len(files),
            insertions=sum(f.additions for f in files),
            deletions=sum(f.deletions for f in files),
        )
        return self._build_analysis(
            commit_hash='working',
            subject="Working directory changes",
            author=self.runner.run_safe('config', 'user.name').strip(),
            commit_date=date.today().isoformat(),
            body="",
            files=files,
            diff_stats=diff_stats,
            is_merge=False,
            parents=[],
        )

    # ------------------------------------------------------------------

    def _build_analysis(self, commit_hash: str, subject: str, author: str, commit_date: str,
                        body: str, files: list[FileChange], diff_stats: DiffStats,
                        is_merge: bool, parents: list[str]) -> CommitAnalysis:
        tagging = self.tagger.analyze_commit(subject, body, files, diff_stats, is_merge=is_merge)
        message = f"{subject}\n{body}".strip()
        paths = [f.path for f in files]
        risk_input = '\n'.join(paths + [f.diff for f in files])

        return CommitAnalysis(
            hash=commit_hash,
            subject=subject,
            author=author,
            date=commit_date,
            body=body,
            files=files,
            diff_stats=diff_stats,
            breaking_changes=tagging.breaking_changes,
            categories=tagging.categories,
            importance=tagging.importance,
            tags=tagging.tags,
            is_merge=is_merge,
            parents=parents,
            risk_level=assess_risk(risk_input, diff_stats.files or len(files), message),
            business_relevance=assess_business_relevance(message, paths),
        )
