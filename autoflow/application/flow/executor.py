"""Step Executor - runs search, transform and write steps against one StepContext."""

import asyncio
from collections.abc import Callable, Sequence
from datetime import date

import structlog

from autoflow.domain.entities.flow import FlowStep, SearchStep, StepContext, TransformStep, WriteStep
from autoflow.domain.errors import StorageError
from autoflow.domain.ports.config import LLMConfig
from autoflow.domain.ports.documents import DocumentRef, DocumentStorePort
from autoflow.domain.ports.llm import LLMMessage, LLMPort
from autoflow.domain.ports.notifier import NotifierPort
from autoflow.infrastructure.rag.semantic_search import TOP_N, SemanticSearch

log = structlog.get_logger()

MAX_SOURCE_CHARS = 8000
SOURCE_SEPARATOR = "\n\n"
PROMPT_SEPARATOR = "\n\n---\n\n"
DATE_TOKEN = "{{date}}"


def build_prompt(prefix: str, sources: Sequence[str]) -> str:
    """Prompt text, separator, then the sources joined and cut at MAX_SOURCE_CHARS."""
    corpus = SOURCE_SEPARATOR.join(sources)[:MAX_SOURCE_CHARS]
    return f"{prefix}{PROMPT_SEPARATOR}{corpus}"


def resolve_target_path(target_file: str, today: date) -> str:
    """Substitute the first {{date}} token with today's YYYY-MM-DD."""
    return target_file.replace(DATE_TOKEN, today.isoformat(), 1)


class StepExecutor:
    """Interprets flow steps strictly in order; the first exception aborts the rest."""

    def __init__(
        self,
        documents: DocumentStorePort,
        llm: LLMPort,
        search: SemanticSearch,
        llm_config: LLMConfig,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._documents = documents
        self._llm = llm
        self._search = search
        self._llm_config = llm_config
        self._today = today

    async def execute(
        self,
        steps: Sequence[FlowStep],
        context: StepContext,
        notifier: NotifierPort,
    ) -> StepContext:
        """Run every step against context. Exceptions propagate to the caller."""
        for index, step in enumerate(steps):
            log.info("flow_step_started", index=index, step_type=step.type)
            await self.execute_step(step, context, notifier)
        return context

    async def execute_step(self, step: FlowStep, context: StepContext, notifier: NotifierPort) -> None:
        if isinstance(step, SearchStep):
            await self._search_step(step, context)
        elif isinstance(step, TransformStep):
            await self._transform_step(step, context, notifier)
        elif isinstance(step, WriteStep):
            await self._write_step(step, context)
        else:
            raise TypeError(f"Unknown step type: {type(step).__name__}")

    async def _search_step(self, step: SearchStep, context: StepContext) -> None:
        candidates = self._documents.list_documents(step.source_folder)

        if not step.query:
            selected: list[DocumentRef] = candidates
        else:
            ranked = await self._search.rank(step.query, candidates, top_n=TOP_N)
            selected = [ref for ref, _ in ranked]

        context.search_results = list(await asyncio.gather(*(self._documents.read(ref) for ref in selected)))
        context.search_result_refs = list(selected)
        log.info(
            "search_step_done",
            source_folder=step.source_folder,
            ranked=bool(step.query),
            candidates=len(candidates),
            results=len(selected),
        )

    async def _prompt_prefix(self, step: TransformStep) -> str:
        if not step.prompt_file:
            return step.prompt or ""
        target = self._documents.resolve(step.prompt_file)
        if not isinstance(target, DocumentRef):
            raise StorageError(f"Prompt file not found or is a directory: {step.prompt_file}")
        return await self._documents.read(target)

    async def _transform_step(self, step: TransformStep, context: StepContext, notifier: NotifierPort) -> None:
        if not context.search_results:
            notifier.notify("Transform step has no source content to process.")
            return

        prompt = build_prompt(await self._prompt_prefix(step), context.search_results)
        response = await self._llm.generate(
            [LLMMessage(role="user", content=prompt)],
            model=self._llm_config.model,
            temperature=self._llm_config.temperature,
        )
        if response.content:
            context.transform_result = response.content
            log.info("transform_step_done", model=response.model, chars=len(response.content))
        else:
            notifier.notify("Transform step returned no result.")

    async def _write_step(self, step: WriteStep, context: StepContext) -> None:
        content = context.transform_result
        # No transform output: nothing to write.
        if not content:
            return

        target = resolve_target_path(step.target_file, self._today())
        directory = target.rsplit("/", 1)[0] if "/" in target else ""
        if directory and self._documents.resolve(directory) is None:
            await self._documents.create_folder(directory)

        if self._documents.resolve(target) is not None:
            await self._documents.append(target, f"\n\n{content}")
        else:
            await self._documents.create(target, content)
        context.written_paths.append(target)
        log.info("write_step_done", target=target)
