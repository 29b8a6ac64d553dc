"""Git Operations Package"""

from changelog_gen.git.runner import GitRunner, GitResult, GitError, Outcome
from changelog_gen.git.analyzer import GitAnalyzer, parse_stat_output, parse_shortstat

__all__ = [
    "GitRunner",
    "GitResult",
    "GitError",
    "Outcome",
    "GitAnalyzer",
    "parse_stat_output",
    "parse_shortstat",
]
