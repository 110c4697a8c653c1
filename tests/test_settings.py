import pytest
from pydantic import ValidationError

from journal.app.core.config import Settings


def test_cors_origins_accepts_host_without_json(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "journal.example.com")

    settings = Settings(_env_file=None)
    assert "http://journal.example.com" in settings.cors_origins
    assert "https://journal.example.com" in settings.cors_origins


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('["http://localhost:3000"]', ["http://localhost:3000"]),
        ("*", ["*"]),
        ("[]", []),
        ("", []),
    ],
)
def test_cors_origins_parsing_variants(monkeypatch, raw: str, expected: list[str]) -> None:
    monkeypatch.setenv("CORS_ORIGINS", raw)

    settings = Settings(_env_file=None)
    assert settings.cors_origins == expected


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    settings = Settings(_env_file=None)

    assert settings.book_summary_cache_ttl == 24 * 60 * 60
    assert settings.author_summary_cache_ttl == 7 * 24 * 60 * 60
    assert settings.completion_cache_backend == "memory"
    assert settings.database_url.startswith("sqlite+aiosqlite")


def test_cache_backend_is_normalized(monkeypatch) -> None:
    monkeypatch.setenv("COMPLETION_CACHE_BACKEND", " Redis ")

    settings = Settings(_env_file=None)
    assert settings.completion_cache_backend == "redis"


def test_unknown_cache_backend_rejected(monkeypatch) -> None:
    monkeypatch.setenv("COMPLETION_CACHE_BACKEND", "memcached")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize(
    "name",
    ["BOOK_SUMMARY_CACHE_TTL", "AUTHOR_SUMMARY_CACHE_TTL", "MAX_NOTES_CHARS"],
)
def test_non_positive_limits_rejected(monkeypatch, name: str) -> None:
    monkeypatch.setenv(name, "0")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_attempt_timeout_must_be_positive(monkeypatch) -> None:
    monkeypatch.setenv("GENERATION_ATTEMPT_TIMEOUT", "-1")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
