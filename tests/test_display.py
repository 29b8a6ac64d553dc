"""
Tests for terminal output formatting.

Shows sample output for each scenario. Run with:
    pytest tests/test_display.py -v
    pytest tests/test_display.py -v -s   # see actual terminal output
"""

import re

import pytest

from changelog_gen import output
from changelog_gen.output import (
    Colors,
    Spinner,
    colorize_changelog_line,
    colorize_document,
    print_error,
    print_success,
    print_warning,
)

ANSI_RE = re.compile(r'\033\[[0-9;]*m')

SAMPLE_DOCUMENT = """# Changelog

## [1.2.0] - 2024-06-01

## Changes

- (breaking) Drop v1 routes ⚠️ BREAKING 🔥 (a1b2c3d) (90%)

- (feature) Add CSV export (b2c3d4e) (85%)

- (docs) Clarify install steps (c3d4e5f) (85%)
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def strip_ansi():
    """Return a function that removes ANSI escape codes."""
    def _strip(text: str) -> str:
        return ANSI_RE.sub('', text)
    return _strip


@pytest.fixture
def colors_on(monkeypatch):
    monkeypatch.setattr(output, "COLORS_ENABLED", True)


@pytest.fixture
def colors_off(monkeypatch):
    monkeypatch.setattr(output, "COLORS_ENABLED", False)


@pytest.fixture
def print_sample(capsys):
    """Return a function that replays captured output for -s viewing."""
    def _print(out: str):
        with capsys.disabled():
            try:
                print(out)
            except UnicodeEncodeError:
                # Windows cp1252 can't encode the emoji markers
                cleaned = ANSI_RE.sub('', out)
                print(cleaned.encode('ascii', errors='replace').decode('ascii'))
    return _print


# ---------------------------------------------------------------------------
# Changelog coloring
# ---------------------------------------------------------------------------

class TestColorizeChangelog:
    """Output from colorize_changelog_line() and colorize_document()."""

    def test_type_prefix_colored(self, colors_on):
        line = colorize_changelog_line("- (feature) Add CSV export (b2c3d4e) (85%)")
        assert f"{Colors.BOLD}{Colors.GREEN}feature{Colors.RESET}" in line
        assert line.startswith("- (")
        assert line.endswith(") Add CSV export (b2c3d4e) (85%)")

    def test_breaking_is_red(self, colors_on):
        line = colorize_changelog_line("- (breaking) Drop v1 routes")
        assert Colors.RED in line

    def test_headers_bold(self, colors_on):
        assert colorize_changelog_line("## Changes") == f"{Colors.BOLD}## Changes{Colors.RESET}"

    def test_unknown_type_untouched(self, colors_on):
        assert colorize_changelog_line("- (other) Misc") == "- (other) Misc"

    def test_plain_text_untouched(self, colors_on):
        assert colorize_changelog_line("  - JSON output") == "  - JSON output"

    def test_disabled_colors(self, colors_off):
        line = "- (feature) Add CSV export"
        assert colorize_changelog_line(line) == line
        assert colorize_document(SAMPLE_DOCUMENT) == SAMPLE_DOCUMENT

    def test_document_text_preserved(self, colors_on, strip_ansi, print_sample):
        colored = colorize_document(SAMPLE_DOCUMENT)
        print_sample(colored)
        assert strip_ansi(colored) == SAMPLE_DOCUMENT
        assert colored != SAMPLE_DOCUMENT


# ---------------------------------------------------------------------------
# Status messages
# ---------------------------------------------------------------------------

class TestStatusMessages:
    """Status output stays off stdout so the document can be piped."""

    @pytest.mark.parametrize("printer, text", [
        (print_success, "Wrote 3 entries to CHANGELOG.md"),
        (print_warning, "AI provider unavailable, using pattern-based analysis"),
        (print_error, "Not inside a git repository"),
    ])
    def test_goes_to_stderr(self, capsys, strip_ansi, colors_off, printer, text):
        printer(text)
        captured = capsys.readouterr()
        assert captured.out == ""
        assert text in strip_ansi(captured.err)


class TestSpinner:

    def test_silent_without_tty(self, capsys):
        with Spinner("Analyzing commits") as spinner:
            pass
        assert spinner._thread is None
        assert capsys.readouterr().err == ""
