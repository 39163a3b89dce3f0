"""Dependency Injection Container - centralized service management."""

from functools import cached_property
from pathlib import Path

from autoflow.application.flow.executor import StepExecutor
from autoflow.application.flow.runner import FlowRunner
from autoflow.application.flow.scheduler import AutorunScheduler
from autoflow.application.flow.use_case import FlowUseCase
from autoflow.domain.ports.config import AppConfig
from autoflow.domain.ports.embeddings import EmbeddingsPort
from autoflow.domain.ports.llm import LLMPort
from autoflow.infrastructure.config import load_config
from autoflow.infrastructure.documents.vault_store import VaultDocumentStore
from autoflow.infrastructure.notifications import LogNotifier
from autoflow.infrastructure.persistence.autorun_registry import AutorunRegistry
from autoflow.infrastructure.persistence.error_log import FileErrorLog
from autoflow.infrastructure.rag.embedding_index import EmbeddingIndex
from autoflow.infrastructure.rag.semantic_search import SemanticSearch


class Container:
    """Dependency Injection Container with lazy initialization.

    All dependencies are created on first access and cached, so one
    EmbeddingIndex is shared by every flow run in the process.

    Usage:
        container = Container()
        result = await container.flow_use_case.run_flow_file("Flows/daily.md")
    """

    def __init__(self, config: AppConfig | None = None):
        """Initialize container with optional config override."""
        self._config_override = config

    @cached_property
    def config(self) -> AppConfig:
        """Application configuration."""
        if self._config_override:
            return self._config_override
        return load_config()

    @cached_property
    def data_dir(self) -> Path:
        return Path(self.config.persistence.data_dir)

    @cached_property
    def llm(self) -> LLMPort:
        """LLM adapter based on config provider."""
        if self.config.llm.provider == "ollama":
            from autoflow.infrastructure.llm.ollama import OllamaAdapter
            return OllamaAdapter(self.config.ollama)

        from autoflow.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter
        return OpenAICompatibleAdapter(self.config.openai_compatible)

    @cached_property
    def embeddings(self) -> EmbeddingsPort:
        """Embeddings adapter based on config provider."""
        if self.config.llm.provider == "ollama":
            from autoflow.infrastructure.embeddings.ollama import OllamaEmbeddingsAdapter
            return OllamaEmbeddingsAdapter(self.config.ollama, self.config.embeddings)

        from autoflow.infrastructure.embeddings.openai_compatible import (
            OpenAICompatibleEmbeddingsAdapter,
        )
        return OpenAICompatibleEmbeddingsAdapter(
            self.config.openai_compatible,
            self.config.embeddings,
        )

    @cached_property
    def documents(self) -> VaultDocumentStore:
        """Vault the flows read from and write to."""
        return VaultDocumentStore(self.config.vault.path, extension=self.config.vault.extension)

    @cached_property
    def embedding_index(self) -> EmbeddingIndex:
        return EmbeddingIndex(self.data_dir / self.config.persistence.embedding_index_file)

    @cached_property
    def autorun_registry(self) -> AutorunRegistry:
        return AutorunRegistry(self.data_dir / self.config.persistence.autorun_file)

    @cached_property
    def error_log(self) -> FileErrorLog:
        return FileErrorLog(self.data_dir / self.config.persistence.error_log_file)

    @cached_property
    def notifier(self) -> LogNotifier:
        return LogNotifier()

    @cached_property
    def semantic_search(self) -> SemanticSearch:
        return SemanticSearch(
            self.documents,
            self.embeddings,
            self.embedding_index,
            max_concurrency=self.config.embeddings.max_concurrency,
        )

    @cached_property
    def step_executor(self) -> StepExecutor:
        return StepExecutor(
            documents=self.documents,
            llm=self.llm,
            search=self.semantic_search,
            llm_config=self.config.llm,
        )

    @cached_property
    def flow_runner(self) -> FlowRunner:
        return FlowRunner(
            executor=self.step_executor,
            documents=self.documents,
            registry=self.autorun_registry,
            error_log=self.error_log,
            notifier=self.notifier,
        )

    @cached_property
    def autorun_scheduler(self) -> AutorunScheduler:
        return AutorunScheduler(
            runner=self.flow_runner,
            documents=self.documents,
            registry=self.autorun_registry,
            error_log=self.error_log,
            notifier=self.notifier,
        )

    @cached_property
    def flow_use_case(self) -> FlowUseCase:
        return FlowUseCase(
            documents=self.documents,
            runner=self.flow_runner,
            search=self.semantic_search,
            notifier=self.notifier,
        )

    def reset(self) -> None:
        """Reset all cached instances (useful for testing)."""
        for attr in list(self.__dict__.keys()):
            if not attr.startswith("_"):
                delattr(self, attr)


# Global container instance
_container: Container | None = None


def get_container() -> Container:
    """Get or create global container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def set_container(container: Container) -> None:
    """Install a prebuilt container (tests, embedding the app)."""
    global _container
    _container = container


def reset_container() -> None:
    """Reset global container (for testing)."""
    global _container
    if _container:
        _container.reset()
    _container = None
