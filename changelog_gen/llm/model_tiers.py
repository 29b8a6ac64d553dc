"""Model Tiers - Pick a model size from the size of a change."""

from dataclasses import dataclass

TIER_SIMPLE = "simple"
TIER_STANDARD = "standard"
TIER_MEDIUM = "medium"
TIER_COMPLEX = "complex"

# (min_files, min_lines, tier), checked top to bottom; either bound qualifies
COMPLEXITY_TIERS = [
    (21, 1001, TIER_COMPLEX),
    (11, 501, TIER_MEDIUM),
    (None, 101, TIER_STANDARD),
]


@dataclass(frozen=True)
class ModelTiers:
    """Model name per complexity tier, declared by each provider."""
    small: str
    standard: str
    medium: str
    complex: str

    def for_tier(self, tier: str) -> str:
        return {
            TIER_SIMPLE: self.small,
            TIER_STANDARD: self.standard,
            TIER_MEDIUM: self.medium,
            TIER_COMPLEX: self.complex,
        }.get(tier, self.standard)

    def all_models(self) -> list[str]:
        return [self.small, self.standard, self.medium, self.complex]


@dataclass(frozen=True)
class ModelSelection:
    model: str
    tier: str
    reason: str


def classify_complexity(file_count: int, lines_changed: int) -> str:
    for min_files, min_lines, tier in COMPLEXITY_TIERS:
        if (min_files is not None and file_count >= min_files) or lines_changed >= min_lines:
            return tier
    return TIER_SIMPLE


def select_model(tiers: ModelTiers, file_count: int, lines_changed: int,
                 override: str | None = None, available: set[str] | None = None) -> ModelSelection:
    """Map change size to a model. An explicit override always wins.

    When `available` is given, a tier model that isn't installed falls back to
    another declared model that is.
    """
    tier = classify_complexity(file_count, lines_changed)
    if override:
        return ModelSelection(model=override, tier=tier, reason="explicit model override")

    model = tiers.for_tier(tier)
    reason = f"{tier} change ({file_count} files, {lines_changed} lines)"
    if available is not None and model not in available:
        for candidate in [tiers.standard, *tiers.all_models()]:
            if candidate in available:
                return ModelSelection(model=candidate, tier=tier, reason=f"{reason}; {model} not installed")
    return ModelSelection(model=model, tier=tier, reason=reason)
