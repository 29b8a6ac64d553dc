"""
Unit tests for DiffProcessor budgeting.

Run with:
    pytest tests/test_diff_processor.py -v
"""

import pytest

from conftest import make_file
from changelog_gen.analysis.diff_processor import (
    DiffProcessor,
    Priority,
    ProcessorConfig,
    is_formatting_only,
)
from changelog_gen.models import FileStatus


# ---------------------------------------------------------------------------
# DiffProcessor - file classification
# ---------------------------------------------------------------------------

class TestDiffProcessorClassify:
    """DiffProcessor._get_priority() file classification."""

    @pytest.fixture
    def processor(self):
        return DiffProcessor()

    @pytest.mark.parametrize("path", [
        "src/cli/main.py",
        "app/models/user.rb",
        "lib/utils.ts",
        "index.js",
    ])
    def test_source_files(self, processor, path):
        assert processor._get_priority(path) == Priority.SOURCE

    @pytest.mark.parametrize("path", [
        "package-lock.json",
        "yarn.lock",
        "poetry.lock",
        "dist/bundle.js",
        "node_modules/pkg/index.js",
        "app.min.js",
        "__pycache__/mod.pyc",
    ])
    def test_noise_files(self, processor, path):
        assert processor._get_priority(path) == Priority.NOISE

    @pytest.mark.parametrize("path", [
        "tests/test_main.py",
        "spec/models/user_spec.rb",
        "__tests__/App.test.js",
        "src/utils.test.ts",
    ])
    def test_test_files(self, processor, path):
        assert processor._get_priority(path) == Priority.TEST

    @pytest.mark.parametrize("path", [
        "config.json",
        "settings.yaml",
        "pyproject.toml",
        "Dockerfile",
        "docker-compose.yml",
        "Makefile",
    ])
    def test_config_files(self, processor, path):
        assert processor._get_priority(path) == Priority.CONFIG

    @pytest.mark.parametrize("path", ["README.md", "CHANGELOG.rst", "docs/guide.md", "LICENSE"])
    def test_docs_files(self, processor, path):
        assert processor._get_priority(path) == Priority.DOCS


# ---------------------------------------------------------------------------
# DiffProcessor - processing
# ---------------------------------------------------------------------------

class TestDiffProcessorProcess:
    """DiffProcessor.process() end-to-end."""

    def test_filters_noise_files(self):
        files = [make_file("src/app.py"), make_file("package-lock.json"), make_file("yarn.lock")]
        result = DiffProcessor().process(files)

        assert result.total_files == 3
        assert result.filtered_files == 2
        assert "package-lock" not in result.summary
        assert "src/app.py" in result.summary

    def test_groups_by_priority(self):
        files = [make_file("tests/test_app.py"), make_file("src/app.py"), make_file("README.md")]
        lines = DiffProcessor().process(files).summary.split('\n')

        source_idx = next(i for i, l in enumerate(lines) if "[Source]" in l)
        test_idx = next(i for i, l in enumerate(lines) if "[Tests]" in l)
        docs_idx = next(i for i, l in enumerate(lines) if "[Docs]" in l)
        assert source_idx < test_idx < docs_idx

    def test_modified_before_added_before_deleted(self):
        files = [
            make_file("src/gone.py", FileStatus.DELETED),
            make_file("src/new.py", FileStatus.ADDED),
            make_file("src/changed.py", FileStatus.MODIFIED),
        ]
        detailed = DiffProcessor().process(files).detailed_diff
        assert detailed.index("src/changed.py") < detailed.index("src/new.py") < detailed.index("src/gone.py")

    def test_higher_importance_first_within_status(self):
        files = [make_file("docs/notes.md"), make_file("package.json")]
        detailed = DiffProcessor().process(files).detailed_diff
        assert detailed.index("package.json") < detailed.index("docs/notes.md")

    def test_file_cap_lists_remaining(self):
        files = [make_file(f"src/m{i}.py") for i in range(5)]
        result = DiffProcessor(ProcessorConfig(max_files=2)).process(files)
        assert result.included_files == 2
        assert result.truncated is True
        assert result.remaining_summary.startswith("3 more files not shown")

    def test_per_file_line_cap(self):
        files = [make_file("src/big.py", additions=50)]
        result = DiffProcessor(ProcessorConfig(max_lines_per_file=10)).process(files)
        assert result.truncated is True
        assert "40 more lines truncated from src/big.py" in result.detailed_diff

    def test_char_budget(self):
        files = [make_file(f"src/m{i}.py", additions=100) for i in range(4)]
        config = ProcessorConfig(max_chars=1500, max_files=10, max_lines_per_file=1000)
        result = DiffProcessor(config).process(files)
        assert len(result.detailed_diff) < 1500 + 200
        assert result.truncated is True
        assert result.remaining_summary

    def test_small_commit_not_truncated(self):
        result = DiffProcessor().process([make_file("src/app.py", additions=3)])
        assert result.truncated is False
        assert result.remaining_summary == ""
        assert result.estimated_tokens > 0

    @pytest.mark.parametrize("mode, max_files", [
        ("standard", 15),
        ("detailed", 25),
        ("enterprise", 40),
        ("bogus", 15),
    ])
    def test_mode_budgets(self, mode, max_files):
        assert ProcessorConfig.for_mode(mode).max_files == max_files


# ---------------------------------------------------------------------------
# Bulk patterns
# ---------------------------------------------------------------------------

class TestBulkPatterns:

    def test_mass_rename(self):
        files = [make_file(f"src/r{i}.py", FileStatus.RENAMED) for i in range(3)]
        assert "Mass rename: 3 files renamed or moved" in DiffProcessor().detect_bulk_patterns(files)

    def test_formatting(self):
        diff = "-x=1\n+x = 1\n"
        files = [make_file(f"src/f{i}.py", diff=diff) for i in range(5)]
        patterns = DiffProcessor().detect_bulk_patterns(files)
        assert "Formatting: 5 files with whitespace-only changes" in patterns

    def test_dependency_update(self):
        patterns = DiffProcessor().detect_bulk_patterns([make_file("package.json"), make_file("src/a.py")])
        assert patterns == ["Dependency updates: package.json"]

    @pytest.mark.parametrize("diff, expected", [
        ("-x=1\n+x = 1\n", True),
        ("-    return a\n+\treturn a\n", True),
        ("-x = 1\n+x = 2\n", False),
        ("", False),
        ("--- a/f\n+++ b/f\n", False),
    ])
    def test_is_formatting_only(self, diff, expected):
        assert is_formatting_only(diff) is expected
