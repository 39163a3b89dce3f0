"""Ollama embeddings adapter - POST /api/embed."""

import logging

import httpx

from autoflow.domain.errors import ProviderError
from autoflow.domain.ports.config import EmbeddingsConfig, OllamaConfig

logger = logging.getLogger(__name__)


class OllamaEmbeddingsAdapter:
    """Ollama embeddings via POST /api/embed."""

    def __init__(self, config: OllamaConfig, embeddings_config: EmbeddingsConfig) -> None:
        """Initialize with Ollama and embeddings config."""
        self._host = config.host.rstrip("/")
        self._model = embeddings_config.model
        self._timeout = config.timeout

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        result = await self.embed_batch([text])
        return result[0] if result else []

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts."""
        if not texts:
            return []

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    f"{self._host}/api/embed",
                    json={"model": self._model, "input": texts},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Ollama embedding error %s: %s", e.response.status_code, e.response.text[:200])
            raise ProviderError(f"Ollama embedding error {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("Ollama embedding request failed: %s", e)
            raise ProviderError(f"Ollama embedding request failed: {e}") from e

        embeddings = data.get("embeddings", [])

        if len(embeddings) != len(texts):
            logger.warning("Embedding count mismatch: got %d, expected %d", len(embeddings), len(texts))
            while len(embeddings) < len(texts):
                embeddings.append([])
            embeddings = embeddings[: len(texts)]

        return embeddings
