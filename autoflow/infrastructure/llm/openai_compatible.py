"""OpenAI-compatible adapter - OpenAI, LM Studio, vLLM, LocalAI."""

import logging

import httpx

from autoflow.domain.errors import ProviderError
from autoflow.domain.ports.config import OpenAICompatibleConfig
from autoflow.domain.ports.llm import LLMMessage, LLMResponse

logger = logging.getLogger(__name__)


def build_headers(config: OpenAICompatibleConfig) -> dict[str, str]:
    """JSON headers plus bearer auth when a key is configured."""
    headers = {"Content-Type": "application/json"}
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"
    return headers


def ensure_api_key(config: OpenAICompatibleConfig) -> None:
    """Refuse to call a provider that needs a key when none is set."""
    if config.require_api_key and not config.api_key:
        raise ProviderError("API key not set")


class OpenAICompatibleAdapter:
    """Implements LLMPort via POST /chat/completions."""

    def __init__(self, config: OpenAICompatibleConfig) -> None:
        """Initialize with OpenAI-compatible config."""
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._headers = build_headers(config)
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                headers=self._headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client (call during app shutdown)."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Generate a single response (non-streaming).

        Raises:
            ProviderError: missing API key, transport failure or error status.

        """
        ensure_api_key(self._config)
        model = model or "default"
        body = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
        }
        client = self._get_client()
        try:
            resp = await client.post(f"{self._base_url}/chat/completions", json=body)
        except httpx.HTTPError as e:
            logger.error("LLM API request failed: %s", e)
            raise ProviderError(f"Completion request failed: {e}") from e
        if resp.status_code >= 400:
            logger.error("LLM API error %s: %s", resp.status_code, resp.text[:500])
            raise ProviderError(f"Completion API error {resp.status_code}: {resp.text[:200]}")
        data = resp.json()
        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        return LLMResponse(content=content, model=data.get("model", model), done=True)

    async def is_available(self) -> bool:
        """Check if the /models endpoint answers."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._base_url}/models", headers=self._headers)
                return resp.status_code == 200
        except (httpx.ConnectTimeout, httpx.ConnectError, httpx.ReadTimeout, OSError) as e:
            logger.debug("OpenAI-compatible availability check failed (connection): %s", e)
            return False
        except httpx.HTTPError as e:
            logger.debug("OpenAI-compatible availability check failed (HTTP): %s", e)
            return False
