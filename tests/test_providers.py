import json

import httpx
import pytest

from journal.app.exceptions import ProviderResponseError
from journal.app.providers.base import extract_content
from journal.app.providers.factory import create_provider, is_mock_mode
from journal.app.providers.mock import MockProvider
from journal.app.providers.openai import OpenAIProvider
from journal.app.services.generation.completeness import is_complete
from journal.app.services.generation.models import BookPreferences, BookSubject, Language
from journal.app.services.generation.prompts import build_messages

COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


def completion(content):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


class TestExtractContent:
    def test_text(self):
        assert extract_content(completion("Hello.")) == "Hello."

    def test_null_content_is_empty(self):
        assert extract_content(completion(None)) == ""

    @pytest.mark.parametrize(
        "response",
        [{}, {"choices": []}, {"choices": None}, {"choices": [{"delta": {}}]}],
    )
    def test_malformed(self, response):
        with pytest.raises(ProviderResponseError):
            extract_content(response)

    def test_non_text_content(self):
        with pytest.raises(ProviderResponseError):
            extract_content(completion([{"type": "text"}]))


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_complete_posts_payload(self, respx_mock):
        route = respx_mock.post(COMPLETIONS_URL).mock(
            return_value=httpx.Response(200, json=completion("Shrnutí."))
        )
        provider = OpenAIProvider(base_url="https://api.openai.com/v1/", api_key="test-key")

        text = await provider.complete(
            model="gpt-4o-mini",
            messages=[{"role": "user", "content": "Ahoj"}],
            max_tokens=800,
            temperature=0.3,
        )

        assert text == "Shrnutí."
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer test-key"
        body = json.loads(request.content)
        assert body["model"] == "gpt-4o-mini"
        assert body["max_tokens"] == 800
        assert body["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_organization_header(self, respx_mock):
        route = respx_mock.post(COMPLETIONS_URL).mock(
            return_value=httpx.Response(200, json=completion("Ok."))
        )
        provider = OpenAIProvider(
            base_url="https://api.openai.com/v1", api_key="test-key", organization="org-1"
        )

        await provider.complete(model="m", messages=[], max_tokens=10)

        assert route.calls.last.request.headers["OpenAI-Organization"] == "org-1"

    @pytest.mark.asyncio
    async def test_error_status_raises(self, respx_mock):
        respx_mock.post(COMPLETIONS_URL).mock(return_value=httpx.Response(503, text="busy"))
        provider = OpenAIProvider(base_url="https://api.openai.com/v1", api_key="test-key")

        with pytest.raises(httpx.HTTPStatusError):
            await provider.complete(model="m", messages=[], max_tokens=10)

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self, respx_mock):
        respx_mock.post(COMPLETIONS_URL).mock(return_value=httpx.Response(200, text="<html>"))
        provider = OpenAIProvider(base_url="https://api.openai.com/v1", api_key="test-key")

        with pytest.raises(ProviderResponseError):
            await provider.complete(model="m", messages=[], max_tokens=10)

    @pytest.mark.asyncio
    async def test_shared_client_is_used(self, respx_mock):
        respx_mock.post(COMPLETIONS_URL).mock(
            return_value=httpx.Response(200, json=completion("Ok."))
        )
        async with httpx.AsyncClient() as client:
            provider = OpenAIProvider(
                base_url="https://api.openai.com/v1", api_key="test-key", http_client=client
            )
            assert provider.http_client is client
            assert await provider.complete(model="m", messages=[], max_tokens=10) == "Ok."
            assert not client.is_closed

    @pytest.mark.asyncio
    async def test_health_check(self, respx_mock):
        respx_mock.get("https://api.openai.com/v1/models").mock(
            return_value=httpx.Response(200, json={"data": []})
        )
        provider = OpenAIProvider(base_url="https://api.openai.com/v1", api_key="test-key")
        assert await provider.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_failure(self, respx_mock):
        respx_mock.get("https://api.openai.com/v1/models").mock(
            side_effect=httpx.ConnectError("refused")
        )
        provider = OpenAIProvider(base_url="https://api.openai.com/v1", api_key="test-key")
        assert await provider.health_check() is False


class TestMockProvider:
    @pytest.mark.asyncio
    async def test_returns_complete_study_guide(self):
        subject = BookSubject(title="Babička", author="Božena Němcová")
        messages = build_messages(subject, BookPreferences(study_guide=True))

        text = await MockProvider().complete(model="mock", messages=messages, max_tokens=100)

        assert text.startswith("# Babička")
        assert is_complete(text, study_guide=True)

    @pytest.mark.asyncio
    async def test_english(self):
        subject = BookSubject(title="Babička", author="Božena Němcová")
        messages = build_messages(subject, BookPreferences(language=Language.EN))

        text = await MockProvider().complete(model="mock", messages=messages, max_tokens=100)

        assert "## Overview" in text


class TestFactory:
    def test_mock_mode(self, monkeypatch):
        monkeypatch.setenv("JOURNAL_MOCK_PROVIDER", "true")
        assert is_mock_mode()
        assert isinstance(create_provider(), MockProvider)

    def test_openai_by_default(self, monkeypatch):
        monkeypatch.delenv("JOURNAL_MOCK_PROVIDER", raising=False)
        assert not is_mock_mode()
        assert isinstance(create_provider(), OpenAIProvider)
