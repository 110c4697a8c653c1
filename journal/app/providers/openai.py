"""OpenAI chat completions provider.

Compatible with OpenAI API and other OpenAI-compatible endpoints
(e.g., Azure OpenAI, local LLMs with OpenAI-compatible API).
"""

from typing import Any, Dict, Optional

import httpx

from journal.app.exceptions import ProviderResponseError
from journal.app.providers.base import BaseProvider


class OpenAIProvider(BaseProvider):
    """OpenAI API provider with support for shared HTTP client connection pooling.

    If http_client is provided, it will be used for all requests (connection reuse).
    If not, a new client is created per request.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        organization: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0
    ):
        super().__init__(base_url, api_key, http_client, timeout)
        self.organization = organization

        if organization:
            self.headers["OpenAI-Organization"] = organization

    async def chat_completion(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send a non-streaming chat completion request.

        Raises:
            httpx.HTTPStatusError: If the API returns an error status
            ProviderResponseError: If the body is not JSON
        """
        url = self._get_endpoint_url("/chat/completions")

        async with self._client_context() as client:
            resp = await client.post(url, headers=self.headers, json=payload)
            resp.raise_for_status()
            try:
                return resp.json()
            except ValueError as e:
                raise ProviderResponseError("Completion response is not JSON") from e

    async def health_check(self, timeout: float = 2.0) -> bool:
        """Call the /models endpoint with a short timeout."""
        try:
            url = self._get_endpoint_url("/models")
            async with self._client_context() as client:
                resp = await client.get(url, headers=self.headers, timeout=timeout)
                return resp.status_code == 200
        except httpx.HTTPError:
            return False
