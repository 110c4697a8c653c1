"""Mock provider for local development.

Returns deterministic Markdown without making external API calls.

Enable by setting environment variable:
    JOURNAL_MOCK_PROVIDER=true
"""

import asyncio
import time
import uuid
from typing import Any, Dict, Optional

from journal.app.providers.base import BaseProvider


class MockProvider(BaseProvider):
    """Inference provider returning a fixed, complete Markdown summary."""

    def __init__(
        self,
        base_url: str = "http://mock.provider",
        api_key: str = "mock-key",
        http_client: Optional[Any] = None,
        timeout: float = 60.0,
        delay: float = 0.0,
    ):
        super().__init__(base_url, api_key, http_client, timeout)
        self.delay = delay

    def _generate_content(self, prompt: str) -> str:
        subject = "Mock"
        for line in prompt.splitlines():
            if line.startswith("# "):
                subject = line[2:].strip()
                break
        czech = "Vytvoř" in prompt
        if czech:
            return (
                f"# {subject}\n\n"
                "## Přehled\n\n"
                "Toto je testovací shrnutí vygenerované bez volání skutečného modelu. "
                "Slouží k ověření celého průchodu od sestavení promptu až po uložení do mezipaměti.\n\n"
                "## Hlavní myšlenky\n\n"
                "- Text je deterministický pro stejný vstup.\n"
                "- Končí úplnou větou a obsahuje nadpisy první i druhé úrovně.\n"
            )
        return (
            f"# {subject}\n\n"
            "## Overview\n\n"
            "This is a mock summary produced without calling a real model. "
            "It exercises the whole path from prompt construction to the cache write.\n\n"
            "## Key Points\n\n"
            "- The text is deterministic for the same input.\n"
            "- It ends with a full sentence and carries first and second level headings.\n"
        )

    async def chat_completion(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.delay:
            await asyncio.sleep(self.delay)

        prompt = ""
        for msg in reversed(payload.get("messages", [])):
            if msg.get("role") == "user":
                prompt = msg.get("content", "")
                break

        return {
            "id": f"chatcmpl-{uuid.uuid4().hex[:24]}",
            "object": "chat.completion",
            "created": int(time.time()),
            "model": payload.get("model", "mock-model"),
            "choices": [{
                "index": 0,
                "message": {"role": "assistant", "content": self._generate_content(prompt)},
                "finish_reason": "stop",
            }],
        }

    async def health_check(self, timeout: float = 2.0) -> bool:
        return True
