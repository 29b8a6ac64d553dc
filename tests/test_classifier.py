"""
Unit tests for file and change-set classification.

Run with:
    pytest tests/test_classifier.py -v
"""

import pytest

from conftest import make_commit, make_file
from changelog_gen.analysis.classifier import (
    RISK_ORDER,
    analyze_functional_impact,
    analyze_semantic_changes,
    assess_business_relevance,
    assess_change_complexity,
    assess_file_importance,
    assess_risk,
    categorize_file,
    change_signals,
    classify_file_change,
    detect_language,
    has_breaking_markup,
    max_importance,
)
from changelog_gen.models import FileStatus


def _plus_lines(n):
    return "\n".join(["+line"] * n)


# ---------------------------------------------------------------------------
# Per-file labels
# ---------------------------------------------------------------------------

class TestCategorizeFile:

    @pytest.mark.parametrize("path, expected", [
        ("package.json", "configuration"),
        ("config/settings.yaml", "configuration"),
        (".env.local", "configuration"),
        ("Dockerfile", "configuration"),
        ("README.md", "documentation"),
        ("docs/guide.html", "documentation"),
        ("tests/test_app.py", "tests"),
        ("src/utils.spec.ts", "tests"),
        ("src/app.py", "source"),
        ("lib/server.go", "source"),
        ("styles/main.css", "frontend"),
        ("public/logo.png", "assets"),
        ("data/blob.bin", "other"),
    ])
    def test_categories(self, path, expected):
        assert categorize_file(path) == expected

    def test_windows_separators(self):
        assert categorize_file("tests\\unit\\test_x.py") == "tests"


class TestDetectLanguage:

    @pytest.mark.parametrize("path, expected", [
        ("a.py", "Python"),
        ("b.tsx", "React TSX"),
        ("c.go", "Go"),
        ("d.sql", "SQL"),
        ("e.unknownext", "Unknown"),
        ("Makefile", "Unknown"),
    ])
    def test_languages(self, path, expected):
        assert detect_language(path) == expected


class TestFileImportance:

    @pytest.mark.parametrize("path, status, expected", [
        ("package.json", FileStatus.MODIFIED, "critical"),
        ("Dockerfile", FileStatus.MODIFIED, "critical"),
        ("src/index.js", FileStatus.MODIFIED, "critical"),
        ("src/utils.py", FileStatus.MODIFIED, "high"),
        ("config/app.yaml", FileStatus.MODIFIED, "high"),
        ("tests/test_utils.py", FileStatus.MODIFIED, "medium"),
        ("docs/guide.md", FileStatus.MODIFIED, "low"),
        ("scripts/run.sh", FileStatus.MODIFIED, "medium"),
    ])
    def test_levels(self, path, status, expected):
        assert assess_file_importance(path, status) == expected

    @pytest.mark.parametrize("path", ["docs/guide.md", "tests/test_utils.py", "scripts/run.sh"])
    def test_deletion_is_at_least_high(self, path):
        assert assess_file_importance(path, FileStatus.DELETED) == "high"

    def test_deletion_keeps_critical(self):
        assert assess_file_importance("package.json", FileStatus.DELETED) == "critical"


class TestChangeComplexity:

    @pytest.mark.parametrize("lines, score, level", [
        (0, 1, "low"),
        (9, 1, "low"),
        (10, 2, "low"),
        (50, 3, "medium"),
        (100, 4, "high"),
        (200, 5, "high"),
    ])
    def test_thresholds(self, lines, score, level):
        result = assess_change_complexity(_plus_lines(lines))
        assert (result.score, result.level) == (score, level)

    def test_headers_not_counted(self):
        diff = "--- a/x.py\n+++ b/x.py\n+real\n-gone\n"
        result = assess_change_complexity(diff)
        assert (result.additions, result.deletions) == (1, 1)


class TestIdempotence:

    @pytest.mark.parametrize("path, status", [
        ("src/api/users.py", FileStatus.MODIFIED),
        ("package.json", FileStatus.DELETED),
        ("README.md", FileStatus.ADDED),
    ])
    def test_repeat_calls_match(self, path, status):
        diff = "+def handler():\n+    return cache.get(key)\n-old()\n"
        first = classify_file_change(path, diff, status)
        second = classify_file_change(path, diff, status)
        assert first == second
        assert categorize_file(path) == categorize_file(path)
        assert detect_language(path) == detect_language(path)
        assert assess_file_importance(path, status) == assess_file_importance(path, status)
        assert assess_change_complexity(diff) == assess_change_complexity(diff)


# ---------------------------------------------------------------------------
# Semantic and functional analysis
# ---------------------------------------------------------------------------

class TestSemanticChanges:

    def test_api_endpoint(self):
        result = analyze_semantic_changes("+@app.get('/users')\n+def list_users():\n", "src/api/users.py")
        assert "api" in result.frameworks
        assert {"api_endpoint", "api_get", "function_definition"} <= result.patterns
        assert result.change_type == "api_change"

    def test_schema_change(self):
        result = analyze_semantic_changes("+CREATE TABLE users (id int);", "db/migrations/001.sql")
        assert "database_schema" in result.patterns
        assert result.change_type == "schema_change"

    def test_react_hooks(self):
        result = analyze_semantic_changes("+const [x, setX] = useState(0)\n", "src/App.tsx")
        assert "react" in result.frameworks
        assert "react_hooks" in result.patterns

    def test_plain_diff_has_no_frameworks(self):
        result = analyze_semantic_changes("+x = 1\n", "src/util.py")
        assert result.frameworks == frozenset()


class TestFunctionalImpact:

    def test_deleted_file(self):
        impact = analyze_functional_impact("", "src/old.py", FileStatus.DELETED)
        assert (impact.scope, impact.severity) == ("global", "high")
        assert not impact.backward_compatible

    def test_manifest_requires_migration(self):
        impact = analyze_functional_impact('+  "left-pad": "1.0.0"', "package.json", FileStatus.MODIFIED)
        assert impact.migration_required
        assert "dependencies" in impact.affected_systems

    def test_removed_public_definition(self):
        impact = analyze_functional_impact("-def public_api():\n-    pass\n", "src/x.py", FileStatus.MODIFIED)
        assert "public_api" in impact.affected_systems
        assert not impact.backward_compatible

    def test_removed_private_definition_is_compatible(self):
        impact = analyze_functional_impact("-def _helper():\n", "src/x.py", FileStatus.MODIFIED)
        assert impact.backward_compatible

    def test_renamed_in_place_is_compatible(self):
        diff = "-def fetch(a):\n+def fetch(a, b=None):\n"
        impact = analyze_functional_impact(diff, "src/x.py", FileStatus.MODIFIED)
        assert impact.backward_compatible

    def test_empty_diff_is_local(self):
        impact = analyze_functional_impact("", "src/x.py", FileStatus.MODIFIED)
        assert (impact.scope, impact.severity) == ("local", "low")


# ---------------------------------------------------------------------------
# Change-set risk and relevance
# ---------------------------------------------------------------------------

class TestRisk:

    def test_quiet_change_is_low(self):
        assert assess_risk("src/util.py\n+x = 1", 1, "tidy helper") == "low"

    def test_each_signal_raises_one_level(self):
        assert assess_risk("src/util.py", 1, "remove legacy endpoint") == "medium"
        assert assess_risk("package.json\n", 1, "remove legacy endpoint") == "high"

    def test_capped_at_high(self):
        assert assess_risk("package.json\n" + "x" * 20000, 40, "breaking: drop v1") == "high"

    @pytest.mark.parametrize("message", ["update copy", "deprecate old flag"])
    @pytest.mark.parametrize("diff", ["src/a.py", "requirements.txt\n"])
    def test_monotonic(self, message, diff):
        small = assess_risk(diff, 1, message)
        bigger = assess_risk(diff + "\n" + "y" * 12000, 20, message)
        assert RISK_ORDER.index(bigger) >= RISK_ORDER.index(small)


class TestBusinessRelevance:

    @pytest.mark.parametrize("message, paths, expected", [
        ("add payment feature", ["src/payments/charge.py"], "high"),
        ("add payment feature", ["scripts/seed.py"], "medium"),
        ("tidy up", ["src/users/model.py"], "medium"),
        ("bump version", ["setup.cfg"], "low"),
    ])
    def test_levels(self, message, paths, expected):
        assert assess_business_relevance(message, paths) == expected


# ---------------------------------------------------------------------------
# Signals used by the response validators
# ---------------------------------------------------------------------------

class TestChangeSignals:

    def test_docs_only(self):
        commit = make_commit(files=[make_file("README.md"), make_file("CHANGELOG.md")])
        signals = change_signals(commit)
        assert signals.docs_only
        assert not signals.tests_only

    def test_tests_only(self):
        commit = make_commit(files=[make_file("tests/test_a.py"), make_file("src/b.test.ts")])
        assert change_signals(commit).tests_only

    def test_new_source_modules_exclude_tests(self):
        commit = make_commit(files=[
            make_file("src/new_mod.py", FileStatus.ADDED),
            make_file("tests/test_new_mod.py", FileStatus.ADDED),
            make_file("docs/new.md", FileStatus.ADDED),
        ])
        signals = change_signals(commit)
        assert signals.added_files == 3
        assert signals.new_source_modules == 1

    def test_counts_prefer_diff_stats(self):
        commit = make_commit(files=[make_file("src/a.py")], insertions=1500, deletions=100)
        signals = change_signals(commit)
        assert (signals.insertions, signals.deletions, signals.total_changes) == (1500, 100, 1600)

    @pytest.mark.parametrize("subject, expected", [
        ("feat!: drop node 14", True),
        ("refactor(api)!: rename routes", True),
        ("Breaking: new config format", True),
        ("fix: typo", False),
    ])
    def test_breaking_markup(self, subject, expected):
        assert has_breaking_markup(subject) is expected

    def test_max_importance(self):
        assert max_importance(["low", "critical", "medium"]) == "critical"
        assert max_importance([]) == "medium"
