"""Fixtures wiring the flow application layer over a tmp_path vault."""

from datetime import date

import pytest

from autoflow.application.flow.executor import StepExecutor
from autoflow.application.flow.runner import FlowRunner
from autoflow.application.flow.scheduler import AutorunScheduler
from autoflow.application.flow.use_case import FlowUseCase
from autoflow.infrastructure.rag.semantic_search import SemanticSearch

TODAY = date(2024, 3, 1)


@pytest.fixture
def search(vault, embeddings, embedding_index):
    return SemanticSearch(vault, embeddings, embedding_index)


@pytest.fixture
def executor(vault, mock_llm, search, llm_config):
    return StepExecutor(documents=vault, llm=mock_llm, search=search, llm_config=llm_config, today=lambda: TODAY)


@pytest.fixture
def runner(executor, vault, registry, error_log, notifier):
    return FlowRunner(
        executor=executor,
        documents=vault,
        registry=registry,
        error_log=error_log,
        notifier=notifier,
        today=lambda: TODAY,
    )


@pytest.fixture
def scheduler(runner, vault, registry, error_log, notifier):
    return AutorunScheduler(
        runner=runner,
        documents=vault,
        registry=registry,
        error_log=error_log,
        notifier=notifier,
        today=lambda: TODAY,
    )


@pytest.fixture
def use_case(vault, runner, search, notifier):
    return FlowUseCase(documents=vault, runner=runner, search=search, notifier=notifier)
