"""OpenAI-compatible embeddings - OpenAI, LM Studio, vLLM, LocalAI via POST /embeddings.

Failures are not retried: a transport or status error surfaces as
ProviderError and aborts the current flow.
"""

import logging

import httpx

from autoflow.domain.errors import ProviderError
from autoflow.domain.ports.config import EmbeddingsConfig, OpenAICompatibleConfig
from autoflow.infrastructure.llm.openai_compatible import build_headers, ensure_api_key

logger = logging.getLogger(__name__)


class OpenAICompatibleEmbeddingsAdapter:
    """Embeddings via POST {base_url}/embeddings."""

    def __init__(
        self,
        config: OpenAICompatibleConfig,
        embeddings_config: EmbeddingsConfig,
    ) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._model = embeddings_config.model
        self._timeout = config.timeout
        self._headers = build_headers(config)

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        result = await self.embed_batch([text])
        return result[0] if result else []

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts. OpenAI API accepts array input.

        Raises:
            ProviderError: missing API key, transport failure or error status.

        """
        if not texts:
            return []
        ensure_api_key(self._config)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    f"{self._base_url}/embeddings",
                    json={"model": self._model, "input": texts},
                    headers=self._headers,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Embedding API error {e.response.status_code}: {e.response.text[:200]}")
            raise ProviderError(f"Embedding API error {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning(f"Embedding request failed: {e}")
            raise ProviderError(f"Embedding request failed: {e}") from e

        items = data.get("data", [])
        if not items:
            logger.warning("Empty embedding response")
            return [[] for _ in texts]

        # OpenAI format: data[].embedding, sorted by index
        items = sorted(items, key=lambda x: x.get("index", 0))
        embeddings = [item.get("embedding", []) for item in items]

        if len(embeddings) != len(texts):
            logger.warning(f"Embedding count mismatch: got {len(embeddings)}, expected {len(texts)}")
            while len(embeddings) < len(texts):
                embeddings.append([])
            embeddings = embeddings[: len(texts)]

        return embeddings
