"""Intelligent truncation of free-text reader notes."""

import re

from journal.app.services.generation.models import Language


SAFETY_MARGIN = 100
HARD_TRUNCATE_MAX_PARAGRAPHS = 3
KEYWORD_BONUS = 5
LIST_BONUS = 5
MAX_POSITION_BONUS = 10
MAX_LENGTH_BONUS = 5

KEYWORDS = (
    # Czech
    "postava", "postavy", "děj", "téma", "témata", "motiv", "kapitola",
    "symbol", "konflikt", "vypravěč", "citát", "hlavní myšlenka",
    # English
    "character", "plot", "theme", "motif", "chapter", "symbol",
    "conflict", "narrator", "quote", "setting", "climax", "main idea",
)

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_LIST_LINE = re.compile(r"^\s*(?:[-*•]|\d+\.)\s")

HARD_TRUNCATION_NOTICE = {
    Language.CS: "\n\n[Poznámky byly zkráceny kvůli omezení délky.]",
    Language.EN: "\n\n[Notes were shortened to fit the length limit.]",
}

INTELLIGENT_TRUNCATION_NOTICE = {
    Language.CS: "\n\n[Poznámky byly inteligentně zkráceny: zachovány byly nejdůležitější odstavce.]",
    Language.EN: "\n\n[Notes were intelligently truncated: the most relevant paragraphs were kept.]",
}


def score_paragraph(paragraph: str, index: int) -> int:
    lowered = paragraph.casefold()
    score = max(0, MAX_POSITION_BONUS - index)
    score += KEYWORD_BONUS * sum(1 for keyword in set(KEYWORDS) if keyword in lowered)
    score += min(len(paragraph) // 100, MAX_LENGTH_BONUS)
    if any(_LIST_LINE.match(line) for line in paragraph.splitlines()):
        score += LIST_BONUS
    return score


def truncate_notes(text: str, max_chars: int, language: Language = Language.CS) -> str:
    """Fit notes into max_chars characters.

    Up to three paragraphs are cut hard; longer notes keep the first
    paragraph plus the best-scoring others, in their original order.
    """
    if len(text) <= max_chars:
        return text

    paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]
    if len(paragraphs) <= HARD_TRUNCATE_MAX_PARAGRAPHS:
        return text[:max_chars] + HARD_TRUNCATION_NOTICE[language]

    budget = max_chars - SAFETY_MARGIN
    kept = {0}
    used = len(paragraphs[0])

    candidates = sorted(
        range(1, len(paragraphs)),
        key=lambda i: (-score_paragraph(paragraphs[i], i), i),
    )
    for i in candidates:
        # Paragraphs are rejoined with a blank line between them.
        cost = len(paragraphs[i]) + 2
        if used + cost > budget:
            continue
        kept.add(i)
        used += cost

    selected = [paragraphs[i] for i in sorted(kept)]
    return "\n\n".join(selected) + INTELLIGENT_TRUNCATION_NOTICE[language]
