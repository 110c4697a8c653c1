import pytest

from journal.app.core.cache import InMemoryStore
from journal.app.services.completion_cache import (
    CacheEntry,
    CompletionCache,
    fingerprint,
    get_completion_cache,
)
from journal.app.services.generation.models import (
    AuthorPreferences,
    AuthorSubject,
    BookPreferences,
    BookSubject,
    Language,
    Length,
    SubjectKind,
)

DAY = 24 * 60 * 60


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_cache(clock=None, store=None):
    return CompletionCache(
        store=store if store is not None else InMemoryStore(),
        ttls={SubjectKind.BOOK: DAY, SubjectKind.AUTHOR: 7 * DAY},
        clock=clock or FakeClock(),
    )


def test_fingerprint_is_stable():
    subject = BookSubject(title="Babička", author="Božena Němcová")
    assert fingerprint(subject, BookPreferences()) == fingerprint(subject, BookPreferences())


def test_fingerprint_normalizes_subject():
    a = BookSubject(title="Babička", author="Božena Němcová")
    b = BookSubject(title="  BABIČKA ", author="božena   němcová")
    assert fingerprint(a, BookPreferences()) == fingerprint(b, BookPreferences())


@pytest.mark.parametrize(
    "other",
    [
        BookPreferences(length=Length.LONG),
        BookPreferences(language=Language.EN),
        BookPreferences(exam_focus=True),
        BookPreferences(study_guide=True),
    ],
)
def test_fingerprint_differs_per_preference(other):
    subject = BookSubject(title="Babička", author="Božena Němcová")
    assert fingerprint(subject, BookPreferences()) != fingerprint(subject, other)


def test_fingerprint_differs_per_kind():
    book = BookSubject(title="R.U.R.", author="Karel Čapek")
    author = AuthorSubject(name="Karel Čapek")
    assert fingerprint(book, BookPreferences()) != fingerprint(author, AuthorPreferences())


@pytest.mark.asyncio
async def test_put_then_get():
    cache = make_cache()
    await cache.put("fp", SubjectKind.BOOK, "Text.", BookPreferences())

    entry = await cache.get("fp", SubjectKind.BOOK)

    assert entry.text == "Text."
    assert entry.preferences["length"] == "medium"


@pytest.mark.asyncio
async def test_book_entry_expires_after_a_day():
    clock = FakeClock()
    cache = make_cache(clock)
    await cache.put("fp", SubjectKind.BOOK, "Text.", BookPreferences())

    clock.now += DAY - 1
    assert await cache.get("fp", SubjectKind.BOOK) is not None

    clock.now += 1
    assert await cache.get("fp", SubjectKind.BOOK) is None


@pytest.mark.asyncio
async def test_author_entry_lives_a_week():
    clock = FakeClock()
    cache = make_cache(clock)
    await cache.put("fp", SubjectKind.AUTHOR, "Text.", AuthorPreferences())

    clock.now += 6 * DAY
    assert await cache.get("fp", SubjectKind.AUTHOR) is not None

    clock.now += DAY
    assert await cache.get("fp", SubjectKind.AUTHOR) is None


@pytest.mark.asyncio
async def test_kinds_do_not_collide():
    cache = make_cache()
    await cache.put("fp", SubjectKind.BOOK, "Book.", BookPreferences())
    assert await cache.get("fp", SubjectKind.AUTHOR) is None


@pytest.mark.asyncio
async def test_disabled_cache_never_hits():
    cache = make_cache()
    cache.enabled = False
    await cache.put("fp", SubjectKind.BOOK, "Text.", BookPreferences())
    assert await cache.get("fp", SubjectKind.BOOK) is None


class BrokenStore(InMemoryStore):
    async def get(self, key):
        raise ConnectionError("store down")

    async def set(self, key, value, ttl):
        raise ConnectionError("store down")


@pytest.mark.asyncio
async def test_store_failures_are_misses():
    cache = make_cache(store=BrokenStore())
    await cache.put("fp", SubjectKind.BOOK, "Text.", BookPreferences())
    assert await cache.get("fp", SubjectKind.BOOK) is None


@pytest.mark.asyncio
async def test_unreadable_entry_is_a_miss():
    store = InMemoryStore()
    cache = make_cache(store=store)
    await store.set("journal:v1:book_summary:fp", b"not json", DAY)
    assert await cache.get("fp", SubjectKind.BOOK) is None


@pytest.mark.asyncio
async def test_ttl_passed_to_store():
    store = InMemoryStore()
    seen = {}

    async def recording_set(key, value, ttl):
        seen[key] = ttl

    store.set = recording_set
    cache = make_cache(store=store)
    await cache.put("fp", SubjectKind.AUTHOR, "Text.", AuthorPreferences())

    assert seen == {"journal:v1:author_summary:fp": 7 * DAY}


def test_entry_validity_boundary():
    entry = CacheEntry(text="t", created_at=100.0, preferences={})
    assert entry.is_valid(now=199.0, ttl=100)
    assert not entry.is_valid(now=200.0, ttl=100)


def test_get_completion_cache_singleton():
    assert get_completion_cache() is get_completion_cache()
