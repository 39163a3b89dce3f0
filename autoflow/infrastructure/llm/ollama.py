"""Ollama adapter - implements LLMPort with the ollama client."""

import logging

import httpx
from ollama import AsyncClient, ResponseError

from autoflow.domain.errors import ProviderError
from autoflow.domain.ports.config import OllamaConfig
from autoflow.domain.ports.llm import LLMMessage, LLMResponse

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.1"


class OllamaAdapter:
    """Ollama implementation of LLMPort."""

    def __init__(self, config: OllamaConfig) -> None:
        self._config = config
        self._client = AsyncClient(host=config.host, timeout=config.timeout)

    def _ollama_options(self, temperature: float) -> dict:
        """Build options dict: temperature + optional num_ctx, num_predict from config."""
        opts: dict = {"temperature": temperature}
        if self._config.num_ctx is not None:
            opts["num_ctx"] = self._config.num_ctx
        if self._config.num_predict is not None:
            opts["num_predict"] = self._config.num_predict
        return opts

    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate a single response."""
        model = model or DEFAULT_MODEL
        try:
            response = await self._client.chat(
                model=model,
                messages=[{"role": m.role, "content": m.content} for m in messages],
                options=self._ollama_options(temperature),
            )
        except (ResponseError, httpx.HTTPError, ConnectionError) as e:
            logger.error("Ollama chat failed: %s", e)
            raise ProviderError(f"Ollama chat failed: {e}") from e
        content = response.message.content if response.message else ""
        return LLMResponse(content=content or "", model=response.model or model, done=True)

    async def is_available(self) -> bool:
        """Check if Ollama server is available."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._config.host.rstrip('/')}/api/tags")
                return resp.status_code == 200
        except (httpx.HTTPError, OSError) as e:
            logger.debug("Ollama availability check failed: %s", e)
        return False
