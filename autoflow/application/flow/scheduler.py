"""Autorun Scheduler - runs registered daily flows that have not run today."""

from collections.abc import Callable
from datetime import date

import structlog

from autoflow.application.flow.runner import FlowRunner
from autoflow.domain.entities.flow import FlowRunResult
from autoflow.domain.errors import FlowParseError
from autoflow.domain.ports.documents import DocumentRef, DocumentStorePort
from autoflow.domain.ports.error_log import ErrorLogSink
from autoflow.domain.ports.notifier import NotifierPort
from autoflow.domain.services.flow_parser import parse_flow_definition
from autoflow.infrastructure.persistence.autorun_registry import AutorunRegistry
from autoflow.infrastructure.persistence.error_log import entry_from_exception

log = structlog.get_logger()

DAILY = "daily"


class AutorunScheduler:
    """Startup pass over the autorun registry. One failing flow never stops the others."""

    def __init__(
        self,
        runner: FlowRunner,
        documents: DocumentStorePort,
        registry: AutorunRegistry,
        error_log: ErrorLogSink,
        notifier: NotifierPort,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._runner = runner
        self._documents = documents
        self._registry = registry
        self._error_log = error_log
        self._notifier = notifier
        self._today = today

    async def run_due_flows(self) -> list[FlowRunResult]:
        """Run every registered flow that is due today. Returns results of the flows that ran."""
        today = self._today().isoformat()
        results: list[FlowRunResult] = []

        for path in self._registry.paths():
            ref = self._documents.resolve(path)
            if not isinstance(ref, DocumentRef):
                log.debug("autorun_flow_missing", path=path)
                continue

            name = path
            try:
                definition = parse_flow_definition(await self._documents.read(ref), self._documents)
                if isinstance(definition, FlowParseError):
                    log.error("autorun_flow_invalid", path=path, error=definition.message)
                    self._notifier.notify(f"Autoflow: Error in autorun flow {ref.name}. See logs.")
                    continue

                name = definition.name
                if definition.last_run == today:
                    log.debug("autorun_flow_already_ran", path=path, last_run=definition.last_run)
                    continue
                if definition.autorun != DAILY and definition.autorun is not True:
                    continue

                self._notifier.notify(f'Autoflow: Running startup flow "{name}"...')
                results.append(await self._runner.run(definition, source_path=path, is_autorun=True))
            except Exception as e:
                log.error("autorun_flow_failed", path=path, flow=name, error=str(e), exc_info=True)
                self._notifier.notify(f'Autoflow: Startup flow "{name}" failed.')
                self._error_log.record(entry_from_exception(e))

        return results
