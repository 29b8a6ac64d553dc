"""
Changelog Generator

AI-assisted changelog generation from git history.
"""

__version__ = "1.0.0"

# Centralized changelog categories - single source of truth
# Used by: prompts/builder.py, ai/response_parser.py, output (colors)
CHANGELOG_CATEGORIES = {
    'feature': 'New functionality or capability',
    'fix': 'A bug fix',
    'security': 'Security hardening or vulnerability fix',
    'breaking': 'Backward-incompatible change',
    'docs': 'Documentation only changes',
    'style': 'Formatting, whitespace, no behavior change',
    'refactor': 'Code restructuring without behavior change',
    'perf': 'Performance improvement',
    'test': 'Adding or updating tests',
    'build': 'Build system or dependency changes',
    'ci': 'CI/CD configuration changes',
    'chore': 'Maintenance tasks and tooling',
    'revert': 'Reverts a previous change',
    'merge': 'Merge of another branch',
}

CATEGORY_NAMES = list(CHANGELOG_CATEGORIES.keys())

# Impact levels ordered from most to least significant
IMPACT_LEVELS = ['critical', 'high', 'medium', 'low', 'minimal']
IMPACT_RANK = {level: rank for rank, level in enumerate(IMPACT_LEVELS)}
UNKNOWN_IMPACT_RANK = len(IMPACT_LEVELS)

ANALYSIS_MODES = ['standard', 'detailed', 'enterprise']
