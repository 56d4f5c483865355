"""Text generation using Ollama's generate endpoint."""

import logging
from typing import Optional

import httpx

from ..errors import TransientServiceError, raise_for_service_status
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)


class OllamaGenerator:
    """Send a prompt to an Ollama model and return the completion text."""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3.1",
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Ollama generation client.

        Args:
            host: Ollama API host URL
            model: Name of the generation model
            retry_policy: Backoff applied to rate-limited calls
            timeout: HTTP timeout in seconds (generation is slow on local hardware)
            transport: Optional httpx transport (used by tests)
        """
        self.host = host.rstrip("/")
        self.model = model
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(f"Initialized Ollama generator with model: {model}")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def _request_completion(self, prompt: str) -> str:
        try:
            response = await self._get_client().post(
                f"{self.host}/api/generate",
                json={"model": self.model, "prompt": prompt, "stream": False},
            )
        except httpx.HTTPError as e:
            raise TransientServiceError(f"Generation request failed: {e}") from e

        raise_for_service_status(response, "Generation service")

        try:
            return response.json()["response"]
        except (KeyError, ValueError) as e:
            raise TransientServiceError(f"Unexpected generation response format: {e}") from e

    async def generate(self, prompt: str) -> str:
        """Generate a completion, retrying on rate limiting."""
        logger.debug(f"Generating completion for prompt of {len(prompt)} chars")
        return await self.retry_policy.call(self._request_completion, prompt)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
