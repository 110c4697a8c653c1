"""Prompt construction for book and author summaries.

Everything here is pure: the same subject, preferences and notes always
produce the same prompt text.
"""

from typing import Optional

from journal.app.services.generation.models import (
    AuthorFocus,
    BookFocus,
    BookSubject,
    Language,
    Length,
    Preferences,
    Style,
    Subject,
)
from journal.app.services.generation.truncation import truncate_notes


STYLE_INSTRUCTIONS: dict[Language, dict[Style, tuple[str, str]]] = {
    Language.CS: {
        Style.ACADEMIC: (
            "formální, odborný",
            "Používej odbornou literárněvědnou terminologii, formální a objektivní "
            "jazyk a analytický přístup. Vyhýbej se subjektivním hodnocením "
            "a neformálnímu jazyku.",
        ),
        Style.CASUAL: (
            "přístupný, konverzační",
            "Používej srozumitelný každodenní jazyk, přátelský tón a praktické "
            "příklady. Vyhýbej se odborné terminologii a složitým souvětím.",
        ),
        Style.CREATIVE: (
            "živý, poutavý",
            "Používej barvitý, expresivní jazyk, metafory a neotřelé úhly pohledu. "
            "Vyhýbej se suchému akademickému stylu a strohému výčtu faktů.",
        ),
    },
    Language.EN: {
        Style.ACADEMIC: (
            "formal, scholarly",
            "Use literary-critical terminology, formal and objective language and "
            "an analytical approach. Avoid subjective judgements and informal "
            "language.",
        ),
        Style.CASUAL: (
            "accessible, conversational",
            "Use plain everyday language, a friendly tone and practical examples. "
            "Avoid technical terminology and long convoluted sentences.",
        ),
        Style.CREATIVE: (
            "vivid, engaging",
            "Use colourful, expressive language, metaphors and fresh angles. "
            "Avoid a dry academic register and bare lists of facts.",
        ),
    },
}

BOOK_FOCUS_INSTRUCTIONS: dict[Language, dict[BookFocus, str]] = {
    Language.CS: {
        BookFocus.PLOT: "Věnuj přibližně 70 % obsahu ději a jeho klíčovým zvratům, zbytek postavám a tématům.",
        BookFocus.CHARACTERS: "Věnuj přibližně 70 % obsahu postavám, jejich motivacím a vývoji, zbytek ději a tématům.",
        BookFocus.THEMES: "Věnuj přibližně 70 % obsahu tématům, motivům a poselství díla, zbytek ději a postavám.",
        BookFocus.BALANCED: "Rozlož obsah rovnoměrně mezi děj, postavy a témata (přibližně po třetinách).",
    },
    Language.EN: {
        BookFocus.PLOT: "Allocate about 70% of the content to the plot and its key turning points, the rest to characters and themes.",
        BookFocus.CHARACTERS: "Allocate about 70% of the content to the characters, their motivations and development, the rest to plot and themes.",
        BookFocus.THEMES: "Allocate about 70% of the content to the themes, motifs and message of the work, the rest to plot and characters.",
        BookFocus.BALANCED: "Split the content evenly between plot, characters and themes (roughly a third each).",
    },
}

AUTHOR_FOCUS_INSTRUCTIONS: dict[Language, dict[AuthorFocus, str]] = {
    Language.CS: {
        AuthorFocus.LIFE: "Věnuj přibližně 70 % obsahu životnímu příběhu autora, 20 % vlivu života na dílo a 10 % literárnímu kontextu.",
        AuthorFocus.WORKS: "Věnuj přibližně 70 % obsahu analýze děl a tvůrčího procesu, 20 % vývoji stylu a 10 % biografii.",
        AuthorFocus.IMPACT: "Věnuj přibližně 70 % obsahu vlivu autora na literaturu a společnost, 20 % současné relevanci a 10 % historickému kontextu.",
        AuthorFocus.BALANCED: "Rozlož obsah rovnoměrně mezi život, dílo a odkaz autora (přibližně po třetinách).",
    },
    Language.EN: {
        AuthorFocus.LIFE: "Allocate about 70% of the content to the author's life story, 20% to how life shaped the work and 10% to literary context.",
        AuthorFocus.WORKS: "Allocate about 70% of the content to the works and the creative process, 20% to the development of style and 10% to biography.",
        AuthorFocus.IMPACT: "Allocate about 70% of the content to the author's influence on literature and society, 20% to present-day relevance and 10% to historical context.",
        AuthorFocus.BALANCED: "Split the content evenly between the author's life, works and legacy (roughly a third each).",
    },
}

LENGTH_TARGETS: dict[Language, dict[Length, tuple[str, str]]] = {
    Language.CS: {
        Length.SHORT: ("150-200 slov", "3-4 stručné odstavce"),
        Length.MEDIUM: ("300-400 slov", "5-6 rozvinutých odstavců"),
        Length.LONG: ("500-700 slov", "7-8 detailních odstavců"),
    },
    Language.EN: {
        Length.SHORT: ("150-200 words", "3-4 brief paragraphs"),
        Length.MEDIUM: ("300-400 words", "5-6 developed paragraphs"),
        Length.LONG: ("500-700 words", "7-8 detailed paragraphs"),
    },
}

BOOK_GUIDE_SECTIONS: dict[Language, list[str]] = {
    Language.CS: ["Základní informace", "Děj", "Postavy", "Témata a motivy", "Studijní poznámky"],
    Language.EN: ["Overview", "Plot", "Characters", "Themes and Motifs", "Study Notes"],
}

AUTHOR_GUIDE_SECTIONS: dict[Language, list[str]] = {
    Language.CS: ["Základní informace", "Život a vzdělání", "Literární tvorba", "Význam a odkaz", "Studijní poznámky"],
    Language.EN: ["Overview", "Life and Education", "Literary Work", "Significance and Legacy", "Study Notes"],
}

# Toggle -> (Czech heading, English heading, Czech hint, English hint)
EXTRA_SECTIONS: dict[str, tuple[str, str, str, str]] = {
    "exam_focus": (
        "Možné otázky k maturitě",
        "Possible Exam Questions",
        "typické otázky a stručné body odpovědí",
        "typical questions with brief answer points",
    ),
    "literary_context": (
        "Literární kontext",
        "Literary Context",
        "literární směr, doba vzniku a srovnání s dalšími díly",
        "literary movement, period and comparison with other works",
    ),
    "include_timeline": (
        "Časová osa",
        "Timeline",
        "chronologický přehled klíčových událostí",
        "chronological overview of key events",
    ),
    "include_awards": (
        "Ocenění",
        "Awards",
        "seznam významných ocenění",
        "list of notable awards",
    ),
    "include_influences": (
        "Literární vlivy",
        "Literary Influences",
        "koho autor ovlivnil a kým byl ovlivněn",
        "who influenced the author and whom the author influenced",
    ),
}

SYSTEM_ROLES: dict[Language, dict[Style, str]] = {
    Language.CS: {
        Style.ACADEMIC: "literární vědec a akademik",
        Style.CASUAL: "zkušený literární publicista",
        Style.CREATIVE: "kreativní spisovatel a vypravěč",
    },
    Language.EN: {
        Style.ACADEMIC: "a literary scholar and academic",
        Style.CASUAL: "an experienced literary journalist",
        Style.CREATIVE: "a creative writer and storyteller",
    },
}

_NO_NOTES = {
    Language.CS: "Čtenář nepřiložil žádné poznámky. Vycházej ze svých obecných znalostí o díle a autorovi.",
    Language.EN: "The reader supplied no notes. Rely on your general background knowledge of the work and the author.",
}

_NOTES_HEADER = {
    Language.CS: "Poznámky čtenáře (zohledni je přednostně):",
    Language.EN: "Reader's notes (give them priority):",
}

_CLOSING = {
    Language.CS: (
        "Formátování: používej Markdown, **tučně** pro klíčové pojmy, *kurzívu* pro názvy děl "
        "a odrážky pro seznamy.\n\n"
        "DŮLEŽITÉ: Text musí být kompletní, nesmí skončit uprostřed věty a musí být od začátku "
        "do konce konzistentně formátovaný v Markdownu. Při nedostatku místa zachovej všechny "
        "sekce, ale zkrať jejich obsah proporcionálně."
    ),
    Language.EN: (
        "Formatting: use Markdown, **bold** for key terms, *italics* for titles of works "
        "and bullet points for lists.\n\n"
        "IMPORTANT: The text must be complete, must never stop mid-sentence and must be "
        "consistently formatted in Markdown from start to finish. If space runs short, keep "
        "every section but shorten each one proportionally."
    ),
}


def _opening(subject: Subject, preferences: Preferences) -> str:
    language = preferences.language
    label, instruction = STYLE_INSTRUCTIONS[language][preferences.style]
    if isinstance(subject, BookSubject):
        if language == Language.CS:
            return f'Vytvoř {label} shrnutí knihy "{subject.title}" od autora {subject.author} v českém jazyce.\n{instruction}'
        return f'Write a {label} summary of the book "{subject.title}" by {subject.author} in English.\n{instruction}'
    if language == Language.CS:
        return f'Vytvoř {label} text o autorovi "{subject.name}" v českém jazyce.\n{instruction}'
    return f'Write a {label} text about the author "{subject.name}" in English.\n{instruction}'


def _focus(subject: Subject, preferences: Preferences) -> str:
    if isinstance(subject, BookSubject):
        return BOOK_FOCUS_INSTRUCTIONS[preferences.language][preferences.focus]
    return AUTHOR_FOCUS_INSTRUCTIONS[preferences.language][preferences.focus]


def _length(preferences: Preferences) -> str:
    words, structure = LENGTH_TARGETS[preferences.language][preferences.length]
    if preferences.language == Language.CS:
        return f"Délka: {words} ({structure})."
    return f"Length: {words} ({structure})."


def _study_guide(subject: Subject, preferences: Preferences) -> str:
    language = preferences.language
    sections = (
        BOOK_GUIDE_SECTIONS if isinstance(subject, BookSubject) else AUTHOR_GUIDE_SECTIONS
    )[language]
    intro = (
        "Strukturuj text pro studijní účely přesně podle této osnovy:"
        if language == Language.CS
        else "Structure the text for study purposes following exactly this outline:"
    )
    lines = [intro, "", f"# {subject.heading}"]
    for section in sections:
        lines.extend(["", f"## {section}"])
    return "\n".join(lines)


def _extra_sections(preferences: Preferences) -> list[str]:
    blocks = []
    for name in preferences.EXTRA_CONTEXT_FIELDS:
        if not getattr(preferences, name):
            continue
        cs_heading, en_heading, cs_hint, en_hint = EXTRA_SECTIONS[name]
        if preferences.language == Language.CS:
            blocks.append(f"## {cs_heading}\n[{cs_hint}]")
        else:
            blocks.append(f"## {en_heading}\n[{en_hint}]")
    return blocks


def build_prompt(
    subject: Subject,
    preferences: Preferences,
    notes: Optional[str] = None,
    max_notes_chars: Optional[int] = None,
) -> str:
    """Build the user prompt.

    Notes are appended after every instruction so they carry the most
    positional weight. With max_notes_chars set they pass through
    truncate_notes first; without it they are used as given, which is
    how the pipeline calls this after truncating for model selection.
    """
    language = preferences.language
    if max_notes_chars is not None and notes and notes.strip():
        notes = truncate_notes(notes.strip(), max_notes_chars, language)
    blocks = [
        _opening(subject, preferences),
        _focus(subject, preferences),
        _length(preferences),
    ]
    has_notes = bool(notes and notes.strip())
    if not has_notes:
        blocks.append(_NO_NOTES[language])
    if preferences.study_guide:
        blocks.append(_study_guide(subject, preferences))
    blocks.extend(_extra_sections(preferences))
    blocks.append(_CLOSING[language])
    if has_notes:
        blocks.append(f"{_NOTES_HEADER[language]}\n{notes.strip()}")
    return "\n\n".join(blocks)


def build_system_message(subject: Subject, preferences: Preferences) -> str:
    role = SYSTEM_ROLES[preferences.language][preferences.style]
    if preferences.language == Language.CS:
        topic = "shrnutí knih" if isinstance(subject, BookSubject) else "informace o autorech"
        return f"Jsi {role} specializující se na {topic}."
    topic = "book summaries" if isinstance(subject, BookSubject) else "author information"
    return f"You are {role} specializing in {topic}."


def sampling_parameters(preferences: Preferences) -> dict:
    creative = preferences.style == Style.CREATIVE
    return {
        "temperature": 0.8 if creative else 0.3,
        "presence_penalty": 0.6 if creative else 0.2,
        "frequency_penalty": 0.6 if creative else 0.3,
    }


def build_messages(
    subject: Subject,
    preferences: Preferences,
    notes: Optional[str] = None,
) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": build_system_message(subject, preferences)},
        {"role": "user", "content": build_prompt(subject, preferences, notes)},
    ]
