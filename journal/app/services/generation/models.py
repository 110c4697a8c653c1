"""Value types shared by the generation pipeline."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Union

from journal.app.exceptions import IncompleteResultWarning


class Style(str, Enum):
    ACADEMIC = "academic"
    CASUAL = "casual"
    CREATIVE = "creative"


class Length(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class BookFocus(str, Enum):
    PLOT = "plot"
    CHARACTERS = "characters"
    THEMES = "themes"
    BALANCED = "balanced"


class AuthorFocus(str, Enum):
    LIFE = "life"
    WORKS = "works"
    IMPACT = "impact"
    BALANCED = "balanced"


class Language(str, Enum):
    CS = "cs"
    EN = "en"


class SubjectKind(str, Enum):
    BOOK = "book_summary"
    AUTHOR = "author_summary"


@dataclass(frozen=True)
class BookPreferences:
    style: Style = Style.ACADEMIC
    length: Length = Length.MEDIUM
    focus: BookFocus = BookFocus.BALANCED
    language: Language = Language.CS
    exam_focus: bool = False
    literary_context: bool = False
    study_guide: bool = False

    EXTRA_CONTEXT_FIELDS: ClassVar[tuple[str, ...]] = ("exam_focus", "literary_context")

    def extra_context_count(self) -> int:
        return sum(1 for name in self.EXTRA_CONTEXT_FIELDS if getattr(self, name))

    def to_dict(self) -> dict:
        return {key: getattr(value, "value", value) for key, value in asdict(self).items()}


@dataclass(frozen=True)
class AuthorPreferences:
    style: Style = Style.ACADEMIC
    length: Length = Length.MEDIUM
    focus: AuthorFocus = AuthorFocus.BALANCED
    language: Language = Language.CS
    include_timeline: bool = False
    include_awards: bool = False
    include_influences: bool = False
    study_guide: bool = False

    EXTRA_CONTEXT_FIELDS: ClassVar[tuple[str, ...]] = (
        "include_timeline",
        "include_awards",
        "include_influences",
    )

    def extra_context_count(self) -> int:
        return sum(1 for name in self.EXTRA_CONTEXT_FIELDS if getattr(self, name))

    def to_dict(self) -> dict:
        return {key: getattr(value, "value", value) for key, value in asdict(self).items()}


Preferences = Union[BookPreferences, AuthorPreferences]


@dataclass(frozen=True)
class BookSubject:
    title: str
    author: str

    kind: ClassVar[SubjectKind] = SubjectKind.BOOK

    @property
    def heading(self) -> str:
        return self.title

    def identity(self) -> dict:
        return {"title": self.title, "author": self.author}


@dataclass(frozen=True)
class AuthorSubject:
    name: str

    kind: ClassVar[SubjectKind] = SubjectKind.AUTHOR

    @property
    def heading(self) -> str:
        return self.name

    def identity(self) -> dict:
        return {"author": self.name}


Subject = Union[BookSubject, AuthorSubject]


@dataclass
class GenerationAttempt:
    """One try within the retry ladder. Never persisted."""
    index: int
    preferences: Preferences
    model: str
    max_tokens: int
    text: Optional[str] = None
    error: Optional[str] = None
    complete: bool = False


@dataclass
class GenerationRequest:
    user_id: str
    subject: Subject
    preferences: Preferences
    notes: Optional[str] = None
    credit_already_deducted: bool = False
    request_id: Optional[str] = None

    @property
    def has_notes(self) -> bool:
        return bool(self.notes and self.notes.strip())


@dataclass
class GenerationResult:
    text: str
    from_cache: bool
    credits_remaining: int
    credits_total: int
    model: Optional[str] = None
    attempts: list[GenerationAttempt] = field(default_factory=list)
    incomplete: bool = False
    warning: Optional[IncompleteResultWarning] = None
