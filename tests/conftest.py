"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from autoflow.domain.ports.config import LLMConfig
from autoflow.domain.ports.llm import LLMResponse
from autoflow.infrastructure.documents.vault_store import VaultDocumentStore
from autoflow.infrastructure.notifications import CollectingNotifier
from autoflow.infrastructure.persistence.autorun_registry import AutorunRegistry
from autoflow.infrastructure.persistence.error_log import MemoryErrorLog
from autoflow.infrastructure.rag.embedding_index import EmbeddingIndex

VOCABULARY = ("alpha", "beta", "gamma", "delta")


class KeywordEmbeddings:
    """Deterministic embeddings: one dimension per vocabulary word, counts calls."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        lowered = text.lower()
        return [float(lowered.count(word)) for word in VOCABULARY] + [0.01]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(t) for t in texts]


@pytest.fixture
def vault_root(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def vault(vault_root: Path) -> VaultDocumentStore:
    return VaultDocumentStore(str(vault_root))


@pytest.fixture
def write_note(vault_root: Path):
    """Create a note under the vault root: write_note("Notes/a.md", "text")."""

    def _write(path: str, content: str) -> Path:
        target = vault_root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return target

    return _write


@pytest.fixture
def embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture
def embedding_index(tmp_path: Path) -> EmbeddingIndex:
    return EmbeddingIndex(tmp_path / "data" / "embedding-index.json")


@pytest.fixture
def registry(tmp_path: Path) -> AutorunRegistry:
    return AutorunRegistry(tmp_path / "data" / "autorun.json")


@pytest.fixture
def error_log() -> MemoryErrorLog:
    return MemoryErrorLog()


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(model="test-model", temperature=0.2)


@pytest.fixture
def mock_llm():
    """LLM whose generate() returns "Summary text"."""
    llm = AsyncMock()
    llm.generate = AsyncMock(return_value=LLMResponse(content="Summary text", model="test-model"))
    llm.is_available = AsyncMock(return_value=True)
    return llm


@pytest.fixture
def container(tmp_path: Path, vault_root: Path, mock_llm, embeddings):
    """Global container over the tmp vault with fake providers."""
    from autoflow.api.container import Container, reset_container, set_container
    from autoflow.domain.ports.config import AppConfig, PersistenceConfig, VaultConfig

    config = AppConfig(
        vault=VaultConfig(path=str(vault_root)),
        persistence=PersistenceConfig(data_dir=str(tmp_path / "data")),
    )
    c = Container(config=config)
    c.llm = mock_llm
    c.embeddings = embeddings
    set_container(c)
    yield c
    reset_container()


@pytest.fixture
async def client(container):
    from httpx import ASGITransport, AsyncClient

    from autoflow.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
