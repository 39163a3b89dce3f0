"""Flow use case - the run-flow, describe-flow and rebuild-index commands."""

import structlog

from autoflow.application.flow.dto import DescribeFlowResponse, StepSummary
from autoflow.application.flow.runner import FlowRunner
from autoflow.domain.entities.flow import FlowDefinition, FlowRunResult
from autoflow.domain.errors import FlowParseError, StorageError
from autoflow.domain.ports.documents import DocumentRef, DocumentStorePort
from autoflow.domain.ports.notifier import NotifierPort
from autoflow.domain.services.flow_parser import describe_flow, parse_flow_definition
from autoflow.infrastructure.rag.semantic_search import SemanticSearch

log = structlog.get_logger()


def summarize(definition: FlowDefinition) -> DescribeFlowResponse:
    """Map a parsed flow to its summary DTO."""
    steps = [
        StepSummary(
            type=step.type,
            params={k: v for k, v in step.model_dump(by_alias=True, exclude={"type"}).items() if v is not None},
        )
        for step in definition.steps
    ]
    return DescribeFlowResponse(
        name=definition.name,
        description=definition.description,
        autorun=definition.autorun,
        last_run=definition.last_run,
        steps=steps,
        summary=describe_flow(definition),
    )


class FlowUseCase:
    """Entry points used by the API: load a flow document, parse it, run it."""

    def __init__(
        self,
        documents: DocumentStorePort,
        runner: FlowRunner,
        search: SemanticSearch,
        notifier: NotifierPort,
    ) -> None:
        self._documents = documents
        self._runner = runner
        self._search = search
        self._notifier = notifier

    async def load_flow(self, path: str) -> FlowDefinition | FlowParseError:
        """Read and parse the flow stored at path.

        Raises:
            StorageError: path is missing or is a folder.

        """
        ref = self._documents.resolve(path)
        if not isinstance(ref, DocumentRef):
            raise StorageError(f"Flow document not found: {path}")
        return parse_flow_definition(await self._documents.read(ref), self._documents)

    def parse_text(self, text: str) -> FlowDefinition | FlowParseError:
        return parse_flow_definition(text, self._documents)

    async def describe_flow_file(self, path: str) -> DescribeFlowResponse | FlowParseError:
        """Parse the flow at path and summarize it without running anything."""
        definition = await self.load_flow(path)
        if isinstance(definition, FlowParseError):
            return definition
        return summarize(definition)

    async def run_flow_file(self, path: str, notifier: NotifierPort | None = None) -> FlowRunResult:
        """Load, parse and run a flow document (the manual "Run flow" command)."""
        definition = await self.load_flow(path)
        if isinstance(definition, FlowParseError):
            name = path.rsplit("/", 1)[-1]
            message = (
                f"Invalid flow in {name}: {definition.message} "
                "Ensure it starts with the 'autoflow' header."
            )
            log.warning("flow_invalid", path=path, kind=definition.kind.value, error=definition.message)
            (notifier or self._notifier).notify(message)
            return FlowRunResult(flow_name=name, success=False, error=definition.message, notices=[message])
        return await self._runner.run(definition, source_path=path, notifier=notifier)

    async def rebuild_index(self, folder: str) -> int:
        """Re-embed every document under folder (the "Rebuild AI Index" command)."""
        log.info("index_rebuild_started", folder=folder)
        return await self._search.rebuild_folder(folder)
