"""Complexity-based choice of inference model and token budget."""

from dataclasses import dataclass
from enum import Enum

from journal.app.core.config import settings
from journal.app.services.generation.models import Length, Preferences, Style


MAX_TOKENS_CEILING = 4000
RETRY_TOKEN_INCREMENT = 500
SHORT_NOTES_CHARS = 500
SHORT_NOTES_FACTOR = 0.8


class ModelTier(str, Enum):
    CHEAP = "cheap"
    MEDIUM = "medium"
    PREMIUM = "premium"


BASE_TOKEN_BUDGETS: dict[ModelTier, dict[Length, int]] = {
    ModelTier.CHEAP: {Length.SHORT: 800, Length.MEDIUM: 1500, Length.LONG: 2500},
    ModelTier.MEDIUM: {Length.SHORT: 1000, Length.MEDIUM: 2000, Length.LONG: 3000},
    ModelTier.PREMIUM: {Length.SHORT: 1200, Length.MEDIUM: 2500, Length.LONG: 3500},
}


@dataclass(frozen=True)
class ModelChoice:
    tier: ModelTier
    model: str
    max_tokens: int
    score: int


def complexity_score(preferences: Preferences, notes_length: int = 0) -> int:
    score = 0
    if preferences.study_guide:
        score += 3
    score += 2 * preferences.extra_context_count()
    if preferences.style == Style.ACADEMIC:
        score += 1
    if preferences.length == Length.MEDIUM:
        score += 1
    elif preferences.length == Length.LONG:
        score += 2
    if notes_length > 6000:
        score += 2
    elif notes_length > 2000:
        score += 1
    return score


def tier_for_score(score: int) -> ModelTier:
    if score <= 3:
        return ModelTier.CHEAP
    if score <= 6:
        return ModelTier.MEDIUM
    return ModelTier.PREMIUM


def model_label(tier: ModelTier) -> str:
    return {
        ModelTier.CHEAP: settings.model_cheap,
        ModelTier.MEDIUM: settings.model_medium,
        ModelTier.PREMIUM: settings.model_premium,
    }[tier]


def select_model(
    preferences: Preferences,
    notes_length: int = 0,
    retry_index: int = 0,
) -> ModelChoice:
    """Pick the model tier and token budget for one attempt.

    Args:
        preferences: Preferences of this attempt (after the ladder).
        notes_length: Length of the notes actually sent, in characters.
        retry_index: 0 for the first attempt, 1 and 2 for retries.

    The returned max_tokens never exceeds MAX_TOKENS_CEILING.
    """
    score = complexity_score(preferences, notes_length)
    tier = tier_for_score(score)

    budget = BASE_TOKEN_BUDGETS[tier][preferences.length]
    budget += RETRY_TOKEN_INCREMENT * max(0, retry_index)
    if tier != ModelTier.CHEAP and notes_length < SHORT_NOTES_CHARS:
        budget = int(budget * SHORT_NOTES_FACTOR)
    budget = min(budget, MAX_TOKENS_CEILING)

    return ModelChoice(tier=tier, model=model_label(tier), max_tokens=budget, score=score)
