"""Completion cache keyed by a fingerprint of subject and preferences.

Entries carry their own creation timestamp; a read treats an entry as a
miss once now - created_at >= ttl. Expired entries are not purged. The
in-memory store has no size bound and grows with the number of distinct
fingerprints. With the Redis store the per-kind ttl is also passed to
SETEX, so Redis drops expired keys on its own.
"""

import hashlib
import json
import time
from dataclasses import dataclass
from typing import Callable, Optional

from journal.app.core.cache import CompletionStore, get_store
from journal.app.core.config import settings
from journal.app.core.logging import get_log_context, get_logger
from journal.app.services.generation.models import Preferences, Subject, SubjectKind

logger = get_logger(__name__)


def _normalize(value: str) -> str:
    return " ".join(value.split()).casefold()


def fingerprint(subject: Subject, preferences: Preferences) -> str:
    """Deterministic sha256 over subject identity and every preference field."""
    payload = {
        "kind": subject.kind.value,
        "subject": {key: _normalize(value) for key, value in subject.identity().items()},
        "preferences": preferences.to_dict(),
    }
    canonical = json.dumps(payload, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    text: str
    created_at: float
    preferences: dict

    def is_valid(self, now: float, ttl: int) -> bool:
        return now - self.created_at < ttl

    def to_bytes(self) -> bytes:
        return json.dumps(
            {"text": self.text, "created_at": self.created_at, "preferences": self.preferences},
            ensure_ascii=False,
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "CacheEntry":
        data = json.loads(raw)
        return cls(
            text=data["text"],
            created_at=float(data["created_at"]),
            preferences=data.get("preferences", {}),
        )


class CompletionCache:
    """Best-effort cache of complete generations.

    Concurrent misses on the same fingerprint may both regenerate; the
    later put wins.
    """

    def __init__(
        self,
        store: CompletionStore,
        ttls: Optional[dict[SubjectKind, int]] = None,
        prefix: str = "journal:v1",
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ttls = ttls or {
            SubjectKind.BOOK: settings.book_summary_cache_ttl,
            SubjectKind.AUTHOR: settings.author_summary_cache_ttl,
        }
        self.prefix = prefix
        self.enabled = enabled
        self._clock = clock

    def _key(self, fp: str, kind: SubjectKind) -> str:
        return f"{self.prefix}:{kind.value}:{fp}"

    async def get(
        self, fp: str, kind: SubjectKind, request_id: Optional[str] = None
    ) -> Optional[CacheEntry]:
        if not self.enabled:
            return None
        log_extra = get_log_context(request_id=request_id, fingerprint=fp)

        try:
            raw = await self.store.get(self._key(fp, kind))
        except Exception as e:
            logger.warning(f"Completion cache get failed: {e}", extra=log_extra)
            return None

        if raw is None:
            logger.debug("Completion cache miss", extra=log_extra)
            return None

        try:
            entry = CacheEntry.from_bytes(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache entry: {e}", extra=log_extra)
            return None

        if not entry.is_valid(self._clock(), self.ttls[kind]):
            logger.debug("Completion cache entry expired", extra=log_extra)
            return None

        logger.info("Completion cache hit", extra=log_extra)
        return entry

    async def put(
        self,
        fp: str,
        kind: SubjectKind,
        text: str,
        preferences: Preferences,
        request_id: Optional[str] = None,
    ) -> None:
        if not self.enabled:
            return
        log_extra = get_log_context(request_id=request_id, fingerprint=fp)

        entry = CacheEntry(text=text, created_at=self._clock(), preferences=preferences.to_dict())
        try:
            await self.store.set(self._key(fp, kind), entry.to_bytes(), self.ttls[kind])
            logger.info("Completion cache write", extra=log_extra)
        except Exception as e:
            logger.warning(f"Completion cache set failed: {e}", extra=log_extra)


_completion_cache: Optional[CompletionCache] = None


def get_completion_cache() -> CompletionCache:
    """Get or create the process-wide completion cache."""
    global _completion_cache
    if _completion_cache is None:
        _completion_cache = CompletionCache(
            store=get_store(),
            prefix=settings.completion_cache_prefix,
            enabled=settings.completion_cache_enabled,
        )
    return _completion_cache


def reset_completion_cache() -> None:
    global _completion_cache
    _completion_cache = None
