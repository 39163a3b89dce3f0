"""Embeddings adapters - OpenAI-compatible, Ollama."""

from autoflow.infrastructure.embeddings.ollama import OllamaEmbeddingsAdapter
from autoflow.infrastructure.embeddings.openai_compatible import (
    OpenAICompatibleEmbeddingsAdapter,
)

__all__ = ["OllamaEmbeddingsAdapter", "OpenAICompatibleEmbeddingsAdapter"]
