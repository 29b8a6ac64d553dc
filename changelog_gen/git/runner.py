"""Git Runner - Execute git subcommands and report outcomes."""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class GitError(Exception):
    """Raised when git operations fail."""
    pass


class Outcome(Enum):
    """How a git invocation ended."""
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class GitResult:
    """Output of a single git invocation."""
    outcome: Outcome
    output: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED


class GitRunner:
    """Runs git commands in a working directory.

    `execute` never raises; `run`, `run_safe` and `run_or_none` are the three
    views ingestion code picks from depending on what a failure means there.
    """

    def __init__(self, cwd: str | None = None, verify: bool = True):
        self.cwd = cwd
        if verify:
            self._verify_git_available()
            self._verify_in_repo()

    def _invoke(self, args: tuple[str, ...]) -> subprocess.CompletedProcess:
        return subprocess.run(
            ['git', *args],
            capture_output=True,
            text=True,
            cwd=self.cwd,
            encoding='utf-8',
            errors='replace'
        )

    def execute(self, *args: str) -> GitResult:
        """Run a git command and classify the result."""
        try:
            completed = self._invoke(args)
        except FileNotFoundError:
            return GitResult(Outcome.FAILED, error="Git is not installed or not in PATH")
        except OSError as e:
            return GitResult(Outcome.FAILED, error=str(e))

        if completed.returncode != 0:
            logger.debug("git %s failed: %s", ' '.join(args), completed.stderr.strip())
            return GitResult(Outcome.FAILED, error=completed.stderr)
        if not completed.stdout.strip():
            return GitResult(Outcome.EMPTY, output=completed.stdout)
        return GitResult(Outcome.OK, output=completed.stdout)

    def run(self, *args: str) -> str:
        """Return stdout, raising GitError on failure."""
        result = self.execute(*args)
        if result.failed:
            raise GitError(f"Git command failed: git {' '.join(args)}\n{result.error}")
        return result.output

    def run_safe(self, *args: str) -> str:
        """Return stdout, or an empty string on failure."""
        result = self.execute(*args)
        return "" if result.failed else result.output

    def run_or_none(self, *args: str) -> str | None:
        """Return stdout, or None on failure."""
        result = self.execute(*args)
        return None if result.failed else result.output

    def _verify_git_available(self) -> None:
        """Fail fast if git isn't available."""
        try:
            self.run('--version')
        except GitError:
            raise GitError("Git is not installed or not in PATH")

    def _verify_in_repo(self) -> None:
        """Fail fast if we're not in a git repository."""
        try:
            self.run('rev-parse', '--git-dir')
        except GitError:
            raise GitError("Not inside a git repository")
