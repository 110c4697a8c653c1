"""Generation pipeline.

CheckingQuota -> CheckingCache (skipped with notes) -> Generating
(attempts 1..3 along the ladder) -> Validating -> Succeeded, or one of
EntitlementError / QuotaExhaustedError / UpstreamGenerationError.
"""

import asyncio
from typing import Optional

import httpx

from journal.app.core.config import settings
from journal.app.core.logging import get_log_context, get_logger
from journal.app.exceptions import (
    IncompleteResultWarning,
    ProviderResponseError,
    UpstreamGenerationError,
)
from journal.app.providers.base import BaseProvider
from journal.app.services.completion_cache import CompletionCache, fingerprint
from journal.app.services.generation.completeness import is_complete, repair
from journal.app.services.generation.ladder import MAX_ATTEMPTS, ladder_preferences
from journal.app.services.generation.model_selector import select_model
from journal.app.services.generation.models import (
    GenerationAttempt,
    GenerationRequest,
    GenerationResult,
    SubjectKind,
)
from journal.app.services.generation.prompts import build_messages, sampling_parameters
from journal.app.services.generation.truncation import truncate_notes
from journal.app.services.quota_ledger import QuotaLedger
from journal.app.services.tiers import Feature

logger = get_logger(__name__)


REQUIRED_FEATURE: dict[SubjectKind, Optional[Feature]] = {
    SubjectKind.BOOK: None,
    SubjectKind.AUTHOR: Feature.AI_AUTHOR_SUMMARY,
}


class GenerationPipeline:
    """Runs one generation request end to end.

    Attempts are strictly sequential. Credits are spent only after a
    text has been produced, and at most once per request.
    """

    def __init__(
        self,
        ledger: QuotaLedger,
        provider: BaseProvider,
        cache: CompletionCache,
        attempt_timeout: Optional[float] = None,
        max_notes_chars: Optional[int] = None,
        trust_client_deduction: Optional[bool] = None,
    ):
        self.ledger = ledger
        self.provider = provider
        self.cache = cache
        self.attempt_timeout = attempt_timeout or settings.generation_attempt_timeout
        self.max_notes_chars = max_notes_chars or settings.max_notes_chars
        self.trust_client_deduction = (
            settings.trust_client_credit_deduction
            if trust_client_deduction is None
            else trust_client_deduction
        )

    def _pre_deducted(self, request: GenerationRequest) -> bool:
        if not request.credit_already_deducted:
            return False
        if not self.trust_client_deduction:
            logger.info(
                "Ignoring client pre-deduction flag; server performs the decrement",
                extra=get_log_context(request_id=request.request_id, user_id=request.user_id),
            )
            return False
        # Nothing verifies that the client actually spent the credit.
        logger.warning(
            "Trusting client pre-deduction flag without verification",
            extra=get_log_context(request_id=request.request_id, user_id=request.user_id),
        )
        return True

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        subject = request.subject
        kind = subject.kind
        pre_deducted = self._pre_deducted(request)

        snap = await self.ledger.check_access(
            request.user_id,
            feature=REQUIRED_FEATURE[kind],
            require_credit=not pre_deducted,
            request_id=request.request_id,
        )

        fp = fingerprint(subject, request.preferences)
        if not request.has_notes:
            entry = await self.cache.get(fp, kind, request_id=request.request_id)
            if entry is not None:
                return GenerationResult(
                    text=entry.text,
                    from_cache=True,
                    credits_remaining=snap.credits_remaining,
                    credits_total=snap.credits_total,
                )

        notes = None
        if request.has_notes:
            notes = truncate_notes(
                request.notes.strip(), self.max_notes_chars, request.preferences.language
            )

        attempts = await self._run_ladder(request, notes)
        final = attempts[-1]

        text = final.text
        warning = None
        if not final.complete:
            text, notice_appended = repair(
                final.text,
                subject,
                final.preferences.language,
                final.preferences.study_guide,
            )
            if notice_appended:
                warning = IncompleteResultWarning(
                    f"Delivered after {len(attempts)} attempts with an incompleteness notice"
                )
                logger.warning(
                    str(warning),
                    extra=get_log_context(
                        request_id=request.request_id,
                        user_id=request.user_id,
                        model=final.model,
                        fingerprint=fp,
                    ),
                )

        if not pre_deducted:
            snap = await self.ledger.consume(request.user_id, request_id=request.request_id)

        if not request.has_notes and final.complete:
            # Keyed by the preferences the text was produced and validated under.
            await self.cache.put(
                fingerprint(subject, final.preferences),
                kind,
                final.text,
                final.preferences,
                request_id=request.request_id,
            )

        return GenerationResult(
            text=text,
            from_cache=False,
            credits_remaining=snap.credits_remaining,
            credits_total=snap.credits_total,
            model=final.model,
            attempts=attempts,
            incomplete=warning is not None,
            warning=warning,
        )

    async def _run_ladder(
        self,
        request: GenerationRequest,
        notes: Optional[str],
    ) -> list[GenerationAttempt]:
        attempts: list[GenerationAttempt] = []
        notes_length = len(notes) if notes else 0

        for index, preferences in enumerate(ladder_preferences(request.preferences)):
            is_final = index == MAX_ATTEMPTS - 1
            choice = select_model(preferences, notes_length, retry_index=index)
            attempt = GenerationAttempt(
                index=index + 1,
                preferences=preferences,
                model=choice.model,
                max_tokens=choice.max_tokens,
            )
            attempts.append(attempt)
            log_extra = get_log_context(
                request_id=request.request_id,
                user_id=request.user_id,
                model=choice.model,
                attempt=attempt.index,
            )

            try:
                text = await asyncio.wait_for(
                    self.provider.complete(
                        model=choice.model,
                        messages=build_messages(request.subject, preferences, notes),
                        max_tokens=choice.max_tokens,
                        **sampling_parameters(preferences),
                    ),
                    timeout=self.attempt_timeout,
                )
            except (httpx.HTTPError, ProviderResponseError, asyncio.TimeoutError) as e:
                attempt.error = str(e) or e.__class__.__name__
                logger.warning(f"Generation attempt failed: {attempt.error}", extra=log_extra)
                if is_final:
                    raise UpstreamGenerationError(
                        f"Generation failed after {len(attempts)} attempts: {attempt.error}",
                        attempts=len(attempts),
                    ) from e
                continue

            if not text.strip():
                attempt.error = "empty response"
                logger.warning("Generation attempt returned empty content", extra=log_extra)
                if is_final:
                    raise UpstreamGenerationError(
                        "The model returned an empty response", attempts=len(attempts)
                    )
                continue

            attempt.text = text
            attempt.complete = is_complete(text, preferences.study_guide)
            logger.info(
                f"Generation attempt finished (max_tokens={choice.max_tokens}, "
                f"complete={attempt.complete})",
                extra=log_extra,
            )
            if attempt.complete or is_final:
                break

        return attempts
