from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import httpx

from journal.app.exceptions import ProviderResponseError


def extract_content(response: Dict[str, Any]) -> str:
    """Pull the assistant text out of a chat completion response.

    Returns an empty string when the model produced no content.

    Raises:
        ProviderResponseError: If the response does not have the
            chat completion shape.
    """
    try:
        choices = response["choices"]
        message = choices[0]["message"]
    except (KeyError, IndexError, TypeError) as e:
        raise ProviderResponseError(f"Malformed completion response: {e!r}") from e
    content = message.get("content") if isinstance(message, dict) else None
    if content is None:
        return ""
    if not isinstance(content, str):
        raise ProviderResponseError("Completion content is not text")
    return content


class BaseProvider(ABC):
    """Base class for inference providers.

    Subclasses can accept an external httpx.AsyncClient for connection pooling,
    or create their own if not provided.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0
    ):
        """Initialize the provider.

        Args:
            base_url: The API base URL
            api_key: The API key for authentication
            http_client: Optional shared HTTP client for connection pooling
            timeout: Request timeout in seconds
        """
        self._http_client = http_client
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout
        self.headers = self._build_headers()

    @property
    def http_client(self) -> Optional[httpx.AsyncClient]:
        return self._http_client

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        # Fallback: create a new client (not recommended for production)
        return httpx.AsyncClient(timeout=self.timeout)

    @asynccontextmanager
    async def _client_context(self):
        """Yield the shared client, or a per-request client that is closed afterwards."""
        client = self._get_client()
        is_shared = self._http_client is not None
        try:
            yield client
        finally:
            if not is_shared:
                await client.aclose()

    def _get_endpoint_url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    @abstractmethod
    async def chat_completion(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send a chat completion request.

        Args:
            payload: The request payload containing model, messages, etc.

        Returns:
            The JSON response from the API
        """
        pass

    @abstractmethod
    async def health_check(self, timeout: float = 2.0) -> bool:
        """Check if the provider is reachable."""
        pass

    async def complete(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float = 0.3,
        presence_penalty: float = 0.0,
        frequency_penalty: float = 0.0,
    ) -> str:
        """Run one completion and return the generated text ('' if empty).

        Raises:
            httpx.HTTPError: On transport or HTTP status failures
            ProviderResponseError: On a malformed response body
        """
        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "presence_penalty": presence_penalty,
            "frequency_penalty": frequency_penalty,
        }
        response = await self.chat_completion(payload)
        return extract_content(response)
