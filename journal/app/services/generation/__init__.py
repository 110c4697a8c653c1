"""AI summary generation: prompts, truncation, model choice, completeness, retry ladder.

The pipeline itself lives in journal.app.services.generation.pipeline.
"""

from journal.app.services.generation.completeness import is_complete, passes_cut_off_check, repair
from journal.app.services.generation.ladder import LADDER, MAX_ATTEMPTS, LadderRung, ladder_preferences
from journal.app.services.generation.model_selector import (
    MAX_TOKENS_CEILING,
    ModelChoice,
    ModelTier,
    select_model,
)
from journal.app.services.generation.models import (
    AuthorFocus,
    AuthorPreferences,
    AuthorSubject,
    BookFocus,
    BookPreferences,
    BookSubject,
    GenerationAttempt,
    GenerationRequest,
    GenerationResult,
    Language,
    Length,
    Style,
    SubjectKind,
)
from journal.app.services.generation.prompts import build_messages, build_prompt
from journal.app.services.generation.truncation import truncate_notes

__all__ = [
    "is_complete",
    "passes_cut_off_check",
    "repair",
    "LADDER",
    "MAX_ATTEMPTS",
    "LadderRung",
    "ladder_preferences",
    "MAX_TOKENS_CEILING",
    "ModelChoice",
    "ModelTier",
    "select_model",
    "AuthorFocus",
    "AuthorPreferences",
    "AuthorSubject",
    "BookFocus",
    "BookPreferences",
    "BookSubject",
    "GenerationAttempt",
    "GenerationRequest",
    "GenerationResult",
    "Language",
    "Length",
    "Style",
    "SubjectKind",
    "build_messages",
    "build_prompt",
    "truncate_notes",
]
