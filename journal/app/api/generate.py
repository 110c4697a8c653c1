"""Book and author summary generation endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from journal.app.db.dependencies import SessionDep
from journal.app.middleware.auth import require_user_id
from journal.app.middleware.request_id import get_request_id
from journal.app.providers.base import BaseProvider
from journal.app.providers.factory import get_inference_provider
from journal.app.services.completion_cache import get_completion_cache
from journal.app.services.generation.models import (
    AuthorFocus,
    AuthorPreferences,
    AuthorSubject,
    BookFocus,
    BookPreferences,
    BookSubject,
    GenerationRequest,
    GenerationResult,
    Language,
    Length,
    Style,
)
from journal.app.services.generation.pipeline import GenerationPipeline
from journal.app.services.quota_ledger import QuotaLedger

router = APIRouter()


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookPreferencesIn(CamelModel):
    style: Style = Style.ACADEMIC
    length: Length = Length.MEDIUM
    focus: BookFocus = BookFocus.BALANCED
    language: Language = Language.CS
    exam_focus: bool = False
    literary_context: bool = False
    study_guide: bool = False

    def to_preferences(self) -> BookPreferences:
        return BookPreferences(**self.model_dump())


class AuthorPreferencesIn(CamelModel):
    style: Style = Style.ACADEMIC
    length: Length = Length.MEDIUM
    focus: AuthorFocus = AuthorFocus.BALANCED
    language: Language = Language.CS
    include_timeline: bool = False
    include_awards: bool = False
    include_influences: bool = False
    study_guide: bool = False

    def to_preferences(self) -> AuthorPreferences:
        return AuthorPreferences(**self.model_dump())


class BookSummaryRequest(CamelModel):
    book_title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=300)
    notes: Optional[str] = Field(default=None, max_length=200_000)
    preferences: BookPreferencesIn = Field(default_factory=BookPreferencesIn)
    credit_already_deducted: bool = False


class AuthorSummaryRequest(CamelModel):
    author: str = Field(..., min_length=1, max_length=300)
    notes: Optional[str] = Field(default=None, max_length=200_000)
    preferences: AuthorPreferencesIn = Field(default_factory=AuthorPreferencesIn)
    credit_already_deducted: bool = False


class GenerationResponse(CamelModel):
    summary: str
    from_cache: bool
    credits_remaining: int
    credits_total: int
    model: Optional[str] = None
    attempts: int = 0
    incomplete: bool = False

    @classmethod
    def from_result(cls, result: GenerationResult) -> "GenerationResponse":
        return cls(
            summary=result.text,
            from_cache=result.from_cache,
            credits_remaining=result.credits_remaining,
            credits_total=result.credits_total,
            model=result.model,
            attempts=len(result.attempts),
            incomplete=result.incomplete,
        )


def get_generation_pipeline(
    session: SessionDep,
    provider: BaseProvider = Depends(get_inference_provider),
) -> GenerationPipeline:
    return GenerationPipeline(
        ledger=QuotaLedger(session),
        provider=provider,
        cache=get_completion_cache(),
    )


@router.post("/api/generate-summary", response_model=GenerationResponse)
async def generate_summary(
    body: BookSummaryRequest,
    http_request: Request,
    user_id: str = Depends(require_user_id),
    pipeline: GenerationPipeline = Depends(get_generation_pipeline),
) -> GenerationResponse:
    """Generate (or serve from cache) a book summary.

    Errors: 401 missing identity, 404 unknown user, 429 credits exhausted,
    502 generation failed.
    """
    request = GenerationRequest(
        user_id=user_id,
        subject=BookSubject(title=body.book_title.strip(), author=body.author.strip()),
        preferences=body.preferences.to_preferences(),
        notes=body.notes,
        credit_already_deducted=body.credit_already_deducted,
        request_id=get_request_id(http_request),
    )
    result = await pipeline.generate(request)
    return GenerationResponse.from_result(result)


@router.post("/api/generate-author-summary", response_model=GenerationResponse)
async def generate_author_summary(
    body: AuthorSummaryRequest,
    http_request: Request,
    user_id: str = Depends(require_user_id),
    pipeline: GenerationPipeline = Depends(get_generation_pipeline),
) -> GenerationResponse:
    """Generate (or serve from cache) an author summary.

    Requires a tier with the ai_author_summary feature (403 otherwise).
    """
    request = GenerationRequest(
        user_id=user_id,
        subject=AuthorSubject(name=body.author.strip()),
        preferences=body.preferences.to_preferences(),
        notes=body.notes,
        credit_already_deducted=body.credit_already_deducted,
        request_id=get_request_id(http_request),
    )
    result = await pipeline.generate(request)
    return GenerationResponse.from_result(result)
