"""Flow Runner - one complete execution of a FlowDefinition."""

import re
from collections.abc import Callable
from datetime import date

import structlog

from autoflow.application.flow.executor import StepExecutor
from autoflow.domain.entities.flow import FlowDefinition, FlowRunResult, StepContext
from autoflow.domain.ports.documents import DocumentRef, DocumentStorePort
from autoflow.domain.ports.error_log import ErrorLogSink
from autoflow.domain.ports.notifier import NotifierPort
from autoflow.infrastructure.notifications import CollectingNotifier
from autoflow.infrastructure.persistence.autorun_registry import AutorunRegistry
from autoflow.infrastructure.persistence.error_log import entry_from_exception

log = structlog.get_logger()

LAST_RUN_LINE = re.compile(r"^lastRun:[^\r\n]*", re.MULTILINE)
STEPS_LINE = re.compile(r"^(steps:[^\r\n]*)", re.MULTILINE)


def set_last_run(content: str, run_date: str) -> str:
    """Rewrite the lastRun line, or insert one right before the steps line."""
    new_line = f"lastRun: {run_date}"
    if LAST_RUN_LINE.search(content):
        return LAST_RUN_LINE.sub(lambda _: new_line, content, count=1)
    newline = "\r\n" if "\r\n" in content else "\n"
    return STEPS_LINE.sub(lambda m: f"{new_line}{newline}{m.group(1)}", content, count=1)


class FlowRunner:
    """Registers autorun flows, drives the executor, reports the outcome.

    Never raises for a failing flow: the error is logged, recorded in the
    error log and returned as an unsuccessful FlowRunResult.
    """

    def __init__(
        self,
        executor: StepExecutor,
        documents: DocumentStorePort,
        registry: AutorunRegistry,
        error_log: ErrorLogSink,
        notifier: NotifierPort,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._executor = executor
        self._documents = documents
        self._registry = registry
        self._error_log = error_log
        self._notifier = notifier
        self._today = today

    async def run(
        self,
        definition: FlowDefinition,
        source_path: str | None = None,
        is_autorun: bool = False,
        notifier: NotifierPort | None = None,
    ) -> FlowRunResult:
        """Execute all steps of definition.

        Args:
            definition: Parsed flow.
            source_path: Vault path of the flow document, if it came from one.
            is_autorun: True when started by the scheduler.
            notifier: Overrides the default notifier for this run.

        """
        notices = CollectingNotifier(forward_to=notifier or self._notifier)
        result = FlowRunResult(flow_name=definition.name, success=False, notices=notices.messages)

        if source_path and definition.autorun and not is_autorun:
            if self._registry.register(source_path):
                notices.notify(f"Registered {definition.name} to autorun daily.")

        context = StepContext()
        log.info("flow_run_started", flow=definition.name, source=source_path, autorun=is_autorun)
        try:
            await self._executor.execute(definition.steps, context, notices)
            notices.notify("Flow execution finished.")
            if source_path and is_autorun:
                await self._update_last_run(source_path, self._today().isoformat())
        except Exception as e:
            log.error("flow_run_failed", flow=definition.name, error=str(e), exc_info=True)
            notices.notify("Flow execution failed. See logs for details.")
            self._error_log.record(entry_from_exception(e))
            result.error = str(e) or type(e).__name__
            result.written_paths = list(context.written_paths)
            return result

        log.info("flow_run_finished", flow=definition.name, written=context.written_paths)
        result.success = True
        result.written_paths = list(context.written_paths)
        return result

    async def _update_last_run(self, path: str, run_date: str) -> None:
        ref = self._documents.resolve(path)
        if not isinstance(ref, DocumentRef):
            return
        content = await self._documents.read(ref)
        await self._documents.modify(path, set_last_run(content, run_date))
