"""
Unit tests for CommitTagger.

Run with:
    pytest tests/test_tagger.py -v
"""

import pytest

from conftest import make_file
from changelog_gen.analysis.tagger import CommitTagger
from changelog_gen.models import DiffStats, FileStatus


@pytest.fixture
def tagger():
    return CommitTagger()


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class TestCategories:

    @pytest.mark.parametrize("subject, expected", [
        ("feat(api): add export endpoint", "feature"),
        ("fix: handle empty payload", "fix"),
        ("docs: clarify install steps", "docs"),
        ("perf(db): batch inserts", "perf"),
        ("chore: bump deps", "chore"),
    ])
    def test_conventional_type_wins(self, tagger, subject, expected):
        assert tagger.analyze_commit(subject).primary_category == expected

    def test_conventional_scope(self, tagger):
        result = tagger.analyze_commit("feat(api): add export endpoint")
        assert result.conventional_type == "feat"
        assert result.scope == "api"

    def test_merge_first(self, tagger):
        result = tagger.analyze_commit("Merge branch 'develop'", is_merge=True)
        assert result.categories[0] == "merge"

    @pytest.mark.parametrize("message, expected", [
        ("Fix crash on login", "fix"),
        ("Revert previous change", "revert"),
        ("Optimize query planner", "perf"),
        ("Clean up old helpers", "refactor"),
        ("Update README", "docs"),
        ("Add dark mode", "feature"),
        ("Patch CVE-2024-1234 in parser", "security"),
    ])
    def test_keyword_inference(self, tagger, message, expected):
        assert tagger.infer_category_from_message(message) == expected

    def test_no_keyword(self, tagger):
        assert tagger.infer_category_from_message("wip") is None

    def test_file_categories_appended(self, tagger):
        files = [make_file("docs/a.md"), make_file("docs/b.md"), make_file("tests/test_x.py")]
        result = tagger.analyze_commit("misc", files=files)
        assert result.categories == ["docs", "test"]

    def test_empty_gives_other(self, tagger):
        assert tagger.analyze_commit("wip").primary_category == "other"


# ---------------------------------------------------------------------------
# Breaking changes
# ---------------------------------------------------------------------------

class TestBreaking:

    def test_bang_subject(self, tagger):
        result = tagger.analyze_commit("feat!: drop v1 routes")
        assert result.breaking_changes
        assert "breaking" in result.categories
        assert "breaking" in result.tags

    def test_body_footer(self, tagger):
        result = tagger.analyze_commit("refactor: config loader", body="BREAKING CHANGE: rc files are JSON now")
        assert "BREAKING CHANGE: rc files are JSON now" in result.breaking_changes

    def test_removed_critical_file(self, tagger):
        files = [make_file("Dockerfile", FileStatus.DELETED)]
        result = tagger.analyze_commit("chore: cleanup", files=files)
        assert "Removed critical file Dockerfile" in result.breaking_changes

    def test_plain_change(self, tagger):
        assert tagger.analyze_commit("fix: off-by-one in pager").breaking_changes == []


# ---------------------------------------------------------------------------
# Tags and importance
# ---------------------------------------------------------------------------

class TestTags:

    def test_database_and_config_tags(self, tagger):
        files = [make_file("db/migrations/002_users.sql"), make_file("config/app.yaml")]
        tags = tagger.analyze_commit("update schema", files=files).tags
        assert "database-changes" in tags
        assert "configuration" in tags
        assert "critical-files" in tags

    def test_action_and_tech_words(self, tagger):
        tags = tagger.analyze_commit("Add cache to api client").tags
        assert {"add", "api", "cache"} <= set(tags)

    def test_ui_and_user_facing(self, tagger):
        result = tagger.analyze_commit("feat: new settings page", files=[make_file("src/components/Settings.vue")])
        assert "ui" in result.tags
        assert result.user_facing

    def test_large_change(self, tagger):
        tags = tagger.analyze_commit("misc", diff_stats=DiffStats(files=3, insertions=600, deletions=10)).tags
        assert "large-change" in tags

    def test_tags_unique(self, tagger):
        tags = tagger.analyze_commit("fix fix fix the test test").tags
        assert len(tags) == len(set(tags))

    def test_importance_is_max_of_files(self, tagger):
        files = [make_file("docs/a.md"), make_file("package.json")]
        assert tagger.analyze_commit("deps", files=files).importance == "critical"
