"""Response Parser - Read AI output and correct it against the commit's signals."""

import json
import logging
import re

from changelog_gen import CATEGORY_NAMES, IMPACT_LEVELS
from changelog_gen.analysis.classifier import change_signals
from changelog_gen.models import AISummary, CommitAnalysis

logger = logging.getLogger(__name__)

JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')
CODE_FENCE_PATTERN = re.compile(r'```(?:json)?\s*|```')

CATEGORY_ALIASES = {
    'feat': 'feature',
    'features': 'feature',
    'enhancement': 'feature',
    'bugfix': 'fix',
    'bug': 'fix',
    'hotfix': 'fix',
    'documentation': 'docs',
    'doc': 'docs',
    'performance': 'perf',
    'tests': 'test',
    'testing': 'test',
    'maintenance': 'chore',
}

# Keyword sniffing for free-form responses, checked in order
TEXT_CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ('feature', ('feature', 'feat')),
    ('fix', ('fix', 'bug')),
    ('security', ('security',)),
    ('breaking', ('breaking',)),
    ('docs', ('doc',)),
    ('style', ('style',)),
    ('refactor', ('refactor',)),
    ('perf', ('perf',)),
    ('test', ('test',)),
]

HIGH_IMPACTS = ('critical', 'high')
TEXT_PREVIEW_CHARS = 200


def extract_json_object(text: str | None) -> dict | None:
    """Return the first JSON object embedded in free-form text, if any."""
    if not text:
        return None
    cleaned = CODE_FENCE_PATTERN.sub('', text)

    match = JSON_OBJECT_PATTERN.search(cleaned)
    if match:
        try:
            data = json.loads(match.group(0))
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass

    # Greedy match can span trailing braces in prose; try each opening brace
    decoder = json.JSONDecoder()
    for index, char in enumerate(cleaned):
        if char != '{':
            continue
        try:
            data, _ = decoder.raw_decode(cleaned, index)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def extract_category_from_text(text: str | None) -> str:
    lowered = (text or "").lower()
    for category, keywords in TEXT_CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return 'chore'


def _coerce_label(value) -> str:
    """Lists yield their first element; other non-strings are stringified."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    if value is None:
        return ""
    return str(value).strip().lower()


def normalize_category(category) -> str:
    value = _coerce_label(category)
    value = CATEGORY_ALIASES.get(value, value)
    if value in CATEGORY_NAMES:
        return value
    return extract_category_from_text(value)


def normalize_impact(impact) -> str:
    value = _coerce_label(impact)
    return value if value in IMPACT_LEVELS else 'medium'


def validate_commit_category(category: str | None, commit: CommitAnalysis) -> str:
    """Override a suggested category that contradicts the commit's size and files."""
    if 'merge' in (commit.subject or '').lower():
        return 'merge'

    signals = change_signals(commit)
    category = normalize_category(category)

    if category == 'fix':
        if signals.file_count > 10 or signals.added_files > 5 or signals.insertions > 1000:
            category = 'refactor' if signals.deletions > signals.insertions * 0.5 else 'feature'
        elif signals.new_source_modules > 0:
            category = 'feature'

    if signals.docs_only:
        return 'docs'
    if signals.tests_only:
        return 'test'
    return category


def validate_impact_assessment(impact: str | None, commit: CommitAnalysis) -> str:
    """Escalate or de-escalate an impact that contradicts the change magnitude."""
    signals = change_signals(commit)
    impact = normalize_impact(impact)

    if signals.docs_only:
        return 'low' if impact in HIGH_IMPACTS else impact

    if impact in ('minimal', 'low') and (signals.file_count > 50 or signals.total_changes > 5000):
        return 'high'
    if impact == 'minimal' and (signals.file_count > 20 or signals.total_changes > 2000 or signals.added_files > 10):
        return 'medium'
    if impact in HIGH_IMPACTS and signals.file_count <= 3 and signals.total_changes <= 100:
        if not signals.breaking_markup:
            return 'medium'
    return impact


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', 'yes', '1')
    return bool(value)


def _as_list(value) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value if item]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def _as_confidence(value) -> float | None:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return None
    if confidence > 1:
        confidence /= 100
    return min(max(confidence, 0.0), 1.0)


def parse_ai_response(content: str | None, commit: CommitAnalysis, model: str | None = None) -> AISummary:
    """Build an AISummary from a model response; category and impact are always corrected."""
    data = extract_json_object(content)
    if data is not None:
        return AISummary(
            summary=str(data.get('summary') or commit.subject or 'Unknown change').strip(),
            category=validate_commit_category(data.get('category') or 'chore', commit),
            impact=validate_impact_assessment(data.get('impact') or 'low', commit),
            description=str(data.get('description') or ''),
            technical_details=str(data.get('technicalDetails') or ''),
            business_value=str(data.get('businessValue') or ''),
            risk_factors=_as_list(data.get('riskFactors')),
            recommendations=_as_list(data.get('recommendations')),
            breaking_changes=_as_bool(data.get('breakingChanges')),
            migration_required=_as_bool(data.get('migrationRequired')),
            source='ai',
            confidence=_as_confidence(data.get('confidence')),
            highlights=_as_list(data.get('highlights')),
            migration_notes=str(data.get('migrationNotes') or ''),
            user_facing=_as_bool(data.get('userFacing')) or 'ui' in commit.tags or 'feature' in commit.tags,
            model=model,
        )

    logger.info("No JSON object in AI response for %s, using text analysis", commit.short_hash)
    text = content or ""
    lowered = text.lower()
    if 'critical' in lowered:
        impact = 'critical'
    elif 'high' in lowered:
        impact = 'high'
    elif 'medium' in lowered:
        impact = 'medium'
    else:
        impact = 'low'

    description = text[:TEXT_PREVIEW_CHARS] + ('...' if len(text) > TEXT_PREVIEW_CHARS else '')
    return AISummary(
        summary=commit.subject or 'Unknown change',
        category=validate_commit_category(extract_category_from_text(text), commit),
        impact=validate_impact_assessment(impact, commit),
        description=description,
        technical_details=text,
        breaking_changes='breaking' in lowered,
        migration_required='migration' in lowered,
        source='ai',
        user_facing='ui' in commit.tags or 'feature' in commit.tags,
        model=model,
    )
