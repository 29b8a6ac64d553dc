"""Shared fixtures: a scripted git runner and a scripted LLM provider."""

import pytest

from changelog_gen.analysis.classifier import classify_file_change
from changelog_gen.git.analyzer import FIELD_SEP, METADATA_FORMAT
from changelog_gen.git.runner import GitResult, GitRunner, Outcome
from changelog_gen.llm.base import ChatCompletionProvider, LLMResponse, TokenUsage
from changelog_gen.llm.model_tiers import ModelTiers
from changelog_gen.models import CommitAnalysis, DiffStats, FileChange, FileStatus


class FakeGitRunner(GitRunner):
    """Answers git invocations from a dict keyed by the argument tuple.

    A str value is OK output (EMPTY when blank); a GitResult is returned as is;
    anything missing is a hard failure.
    """

    def __init__(self, responses: dict | None = None, cwd: str | None = None):
        super().__init__(cwd=cwd, verify=False)
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []

    def execute(self, *args: str) -> GitResult:
        self.calls.append(args)
        response = self.responses.get(args)
        if response is None:
            return GitResult(Outcome.FAILED, error=f"unscripted: git {' '.join(args)}")
        if isinstance(response, GitResult):
            return response
        if not response.strip():
            return GitResult(Outcome.EMPTY, output=response)
        return GitResult(Outcome.OK, output=response)

    def add_commit(self, commit_hash: str, subject: str, parents: str = "p0", body: str = "",
                   author: str = "Dev", commit_date: str = "2024-05-01") -> None:
        """Script the resolution and metadata lookups for one commit."""
        self.responses[('cat-file', '-e', f'{commit_hash}^{{commit}}')] = ""
        self.responses[('show', '--no-patch', f'--format={METADATA_FORMAT}', '--date=short', commit_hash)] = (
            FIELD_SEP.join([commit_hash, subject, author, commit_date, parents, body]) + "\n"
        )


class FakeProvider(ChatCompletionProvider):
    """Returns canned completions, or raises the configured error."""

    MODEL_TIERS = ModelTiers(small="fake-small", standard="fake-standard",
                             medium="fake-medium", complex="fake-complex")

    def __init__(self, responses: list[str] | None = None, error: Exception | None = None,
                 available: bool = True, model: str | None = None,
                 availability_error: Exception | None = None):
        self.responses = list(responses or [])
        self.error = error
        self.available = available
        self.availability_error = availability_error
        self.model_override = model
        self.calls: list[dict] = []

    @property
    def name(self) -> str:
        return "Fake"

    def is_available(self) -> bool:
        if self.availability_error is not None:
            raise self.availability_error
        return self.available

    def generate_completion(self, messages, model=None, max_tokens=2000, temperature=0.3) -> LLMResponse:
        self.calls.append({
            "messages": messages,
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.error is not None:
            raise self.error
        content = self.responses.pop(0) if self.responses else "{}"
        return LLMResponse(content=content, model=model or "fake-standard",
                           usage=TokenUsage(prompt_tokens=100, completion_tokens=20))


def make_file(path: str, status: FileStatus = FileStatus.MODIFIED, additions: int = 1,
              deletions: int = 0, diff: str | None = None) -> FileChange:
    if diff is None:
        diff = "\n".join(["+added"] * additions + ["-removed"] * deletions)
    return FileChange(
        status=status,
        path=path,
        diff=diff,
        additions=additions,
        deletions=deletions,
        classification=classify_file_change(path, diff, status),
    )


def make_commit(subject: str = "Update code", files: list[FileChange] | None = None,
                commit_hash: str = "abc1234def5678", insertions: int | None = None,
                deletions: int | None = None, **kwargs) -> CommitAnalysis:
    files = files if files is not None else [make_file("src/app.py")]
    stats = DiffStats(
        files=len(files),
        insertions=sum(f.additions for f in files) if insertions is None else insertions,
        deletions=sum(f.deletions for f in files) if deletions is None else deletions,
    )
    return CommitAnalysis(hash=commit_hash, subject=subject, files=files, diff_stats=stats, **kwargs)


@pytest.fixture
def git_runner():
    return FakeGitRunner()


@pytest.fixture
def provider():
    return FakeProvider()
