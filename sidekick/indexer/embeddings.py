"""Embedding generation using Ollama's embedding endpoint."""

import logging
from typing import List, Optional

import httpx

from ..errors import TransientServiceError, raise_for_service_status
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)


class OllamaEmbeddings:
    """Convert text to vectors with an Ollama embedding model."""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        max_tokens: int = 2048,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Ollama embeddings client.

        Args:
            host: Ollama API host URL
            model: Name of the embedding model to use
            max_tokens: Maximum token length for model (default: 2048 for nomic-embed-text)
            retry_policy: Backoff applied to rate-limited calls
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.host = host.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(f"Initialized Ollama embeddings with model: {model} (max_tokens: {max_tokens})")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    def _truncate_text(self, text: str) -> str:
        """Truncate text to fit within model's token limit.

        Uses a conservative estimate of 3 characters per token with a 20% buffer.
        """
        max_chars = int(self.max_tokens * 3 * 0.8)

        if len(text) > max_chars:
            logger.warning(
                f"Truncated text from {len(text)} to {max_chars} chars "
                f"to fit {self.max_tokens} token limit"
            )
            return text[:max_chars]

        return text

    async def _request_embedding(self, text: str) -> List[float]:
        client = self._get_client()
        try:
            response = await client.post(
                f"{self.host}/api/embeddings",
                json={"model": self.model, "prompt": text},
            )
        except httpx.HTTPError as e:
            raise TransientServiceError(f"Embedding request failed: {e}") from e

        raise_for_service_status(response, "Embedding service")

        try:
            return response.json()["embedding"]
        except (KeyError, ValueError) as e:
            raise TransientServiceError(f"Unexpected embedding response format: {e}") from e

    async def embed(self, text: str) -> List[float]:
        """Generate the embedding of a single text.

        Rate-limited calls are retried by the retry policy; every other
        failure propagates immediately.

        Args:
            text: Text to embed

        Returns:
            Embedding vector
        """
        text = self._truncate_text(text)
        return await self.retry_policy.call(self._request_embedding, text)

    async def health_check(self) -> bool:
        """Check if Ollama is running and the embedding model is available."""
        try:
            response = await self._get_client().get(f"{self.host}/api/tags")
            response.raise_for_status()

            model_names = [m["name"] for m in response.json().get("models", [])]
            if self.model in model_names or f"{self.model}:latest" in model_names:
                logger.info(f"Ollama health check passed. Model '{self.model}' is available.")
                return True

            logger.warning(
                f"Model '{self.model}' not found in Ollama. Available models: {model_names}"
            )
            logger.info(f"Run: ollama pull {self.model}")
            return False

        except Exception as e:
            logger.error(f"Ollama health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
