"""Heuristic judging whether a generated text was cut off."""

import re

from journal.app.services.generation.models import AuthorSubject, Language, Subject


CUT_OFF_MIN_CHARS = 100
COMPLETE_MIN_CHARS = 200
TERMINAL_CHARACTERS = frozenset(".!?)]\"'»”*")
TRUNCATION_MARKERS = ("...", "…", "-")
MAX_TRAILING_FRAGMENT_WORDS = 4

_SENTENCE_END = re.compile(r"[.!?]")
_TOP_HEADING = re.compile(r"^# ", re.MULTILINE)
_SECOND_HEADING = re.compile(r"^## ", re.MULTILINE)


def _passes(text: str, min_chars: int, study_guide: bool) -> bool:
    if not text:
        return False
    stripped = text.strip()
    if len(stripped) <= min_chars:
        return False
    if stripped[-1] not in TERMINAL_CHARACTERS:
        return False
    if study_guide and not (_TOP_HEADING.search(stripped) and _SECOND_HEADING.search(stripped)):
        return False
    fragment = _SENTENCE_END.split(stripped)[-1].strip()
    if fragment and len(fragment.split()) >= MAX_TRAILING_FRAGMENT_WORDS:
        if fragment[-1] not in TERMINAL_CHARACTERS:
            return False
    if stripped.endswith(TRUNCATION_MARKERS):
        return False
    return True


def passes_cut_off_check(text: str, study_guide: bool = False) -> bool:
    """Looser check deciding whether the advisory notice is appended."""
    return _passes(text, CUT_OFF_MIN_CHARS, study_guide)


def is_complete(text: str, study_guide: bool = False) -> bool:
    """Stricter check deciding whether another attempt is made."""
    return _passes(text, COMPLETE_MIN_CHARS, study_guide)


def incomplete_notice(subject: Subject, language: Language) -> str:
    if isinstance(subject, AuthorSubject):
        if language == Language.CS:
            return (
                f"\n\n---\n\n**Poznámka:** Informace o autorovi {subject.name} mohou být neúplné. "
                "Pro získání kompletních informací zkuste text přegenerovat s kratší délkou "
                "nebo jednoduššími preferencemi."
            )
        return (
            f"\n\n---\n\n**Note:** The information about author {subject.name} may be incomplete. "
            "To get complete information, try regenerating with a shorter length or "
            "simpler preferences."
        )
    if language == Language.CS:
        return (
            f'\n\n---\n\n**Poznámka:** Shrnutí knihy "{subject.title}" může být neúplné. '
            "Zkuste shrnutí přegenerovat s kratší délkou nebo jednoduššími preferencemi."
        )
    return (
        f'\n\n---\n\n**Note:** The summary of "{subject.title}" may be incomplete. '
        "Try regenerating it with a shorter length or simpler preferences."
    )


def repair(
    text: str,
    subject: Subject,
    language: Language,
    study_guide: bool = False,
) -> tuple[str, bool]:
    """Append the advisory notice when the text fails the cut-off check.

    Returns:
        Tuple of (text, notice_appended). The text is never discarded.
    """
    if passes_cut_off_check(text, study_guide):
        return text, False
    return text.rstrip() + incomplete_notice(subject, language), True
