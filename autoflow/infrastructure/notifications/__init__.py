"""Notifiers - where user-facing notices go."""

import structlog

from autoflow.domain.ports.notifier import NotifierPort

log = structlog.get_logger()


class LogNotifier:
    """Emits each notice as a structured log event."""

    def notify(self, message: str) -> None:
        log.info("notice", message=message)


class CollectingNotifier:
    """Keeps notices in order, optionally forwarding them to another notifier."""

    def __init__(self, forward_to: NotifierPort | None = None) -> None:
        self.messages: list[str] = []
        self._forward_to = forward_to

    def notify(self, message: str) -> None:
        self.messages.append(message)
        if self._forward_to is not None:
            self._forward_to.notify(message)


__all__ = ["CollectingNotifier", "LogNotifier"]
