import json
import re
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_cors_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, list):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []
    if raw == "*":
        return ["*"]

    # Prefer JSON (recommended format), but tolerate plain comma/space
    # separated values from hand-written deployment files.
    if raw.startswith(("[", '"', "'")):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]
        if isinstance(parsed, str):
            raw = parsed.strip()
            if not raw or raw == "[]":
                return []
            if raw == "*":
                return ["*"]

    parts = [p for p in re.split(r"[,\s]+", raw) if p]
    origins: list[str] = []
    for part in parts:
        if part == "*":
            return ["*"]
        if "://" in part:
            origins.append(part)
            continue
        # Browsers include the scheme in the Origin header.
        origins.append(f"http://{part}")
        origins.append(f"https://{part}")

    seen: set[str] = set()
    result: list[str] = []
    for origin in origins:
        if origin in seen:
            continue
        seen.add(origin)
        result.append(origin)
    return result


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Database. PostgreSQL in production (postgresql+asyncpg://...),
    # a local SQLite file for development and tests.
    database_url: str = "sqlite+aiosqlite:///./journal.db"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 300
    db_pool_pre_ping: bool = True
    db_command_timeout: float = 30.0

    # HTTP client connection pool settings
    httpx_connect_timeout: float = 10.0
    httpx_read_timeout: float = 90.0
    httpx_write_timeout: float = 10.0
    httpx_pool_timeout: float = 5.0
    httpx_keepalive_expiry: float = 30.0
    httpx_max_connections: int = 100
    httpx_max_keepalive_connections: int = 20

    # Inference service (OpenAI-compatible chat completions API)
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_organization: str | None = None
    model_cheap: str = "gpt-4o-mini"
    model_medium: str = "gpt-4.1-mini"
    model_premium: str = "gpt-4o"
    generation_attempt_timeout: float = 60.0  # Per-attempt bound, timeout == upstream error
    max_notes_chars: int = 8000

    # Completion cache
    completion_cache_enabled: bool = True
    completion_cache_backend: str = "memory"  # memory | redis
    completion_cache_prefix: str = "journal:v1"
    book_summary_cache_ttl: int = 24 * 60 * 60  # 24 hours
    author_summary_cache_ttl: int = 7 * 24 * 60 * 60  # 7 days
    redis_url: str = "redis://localhost:6379/0"

    # Payment provider
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_price_basic_monthly: str = ""
    stripe_price_basic_yearly: str = ""
    stripe_price_premium_monthly: str = ""
    stripe_price_premium_yearly: str = ""

    # Credits
    # When False the server ignores the client's "already deducted" flag and
    # always performs the decrement itself.
    trust_client_credit_deduction: bool = True
    cron_secret: str = ""

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Use NoDecode so plain host lists don't crash JSON parsing at startup.
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator("db_pool_size", "db_max_overflow", "max_notes_chars")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate sizes are positive."""
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @field_validator(
        "httpx_connect_timeout",
        "httpx_read_timeout",
        "generation_attempt_timeout",
    )
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @field_validator("book_summary_cache_ttl", "author_summary_cache_ttl")
    @classmethod
    def validate_ttl_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("cache TTL must be at least 1 second")
        return v

    @field_validator("completion_cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("memory", "redis"):
            raise ValueError("completion_cache_backend must be 'memory' or 'redis'")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
