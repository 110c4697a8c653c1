"""Inference and payment provider clients."""

from journal.app.providers.base import BaseProvider, extract_content
from journal.app.providers.factory import create_provider, get_inference_provider, is_mock_mode
from journal.app.providers.mock import MockProvider
from journal.app.providers.openai import OpenAIProvider
from journal.app.providers.stripe_client import PaymentGateway, get_payment_gateway

__all__ = [
    "BaseProvider",
    "extract_content",
    "create_provider",
    "get_inference_provider",
    "is_mock_mode",
    "MockProvider",
    "OpenAIProvider",
    "PaymentGateway",
    "get_payment_gateway",
]
