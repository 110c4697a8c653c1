"""Inference provider selection."""

import os
from typing import Optional

import httpx

from journal.app.core.config import settings
from journal.app.core.http_client import get_http_client
from journal.app.core.logging import get_logger
from journal.app.providers.base import BaseProvider
from journal.app.providers.mock import MockProvider
from journal.app.providers.openai import OpenAIProvider

logger = get_logger(__name__)


def is_mock_mode() -> bool:
    """True if JOURNAL_MOCK_PROVIDER is set to "true"."""
    return os.getenv("JOURNAL_MOCK_PROVIDER", "").lower() == "true"


def create_provider(http_client: Optional[httpx.AsyncClient] = None) -> BaseProvider:
    if is_mock_mode():
        logger.info("Using mock inference provider")
        return MockProvider()
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; inference calls will be rejected upstream")
    return OpenAIProvider(
        base_url=settings.openai_base_url,
        api_key=settings.openai_api_key,
        organization=settings.openai_organization,
        http_client=http_client,
        timeout=settings.httpx_read_timeout,
    )


def get_inference_provider() -> BaseProvider:
    """FastAPI dependency returning a provider bound to the shared HTTP client."""
    return create_provider(get_http_client())
