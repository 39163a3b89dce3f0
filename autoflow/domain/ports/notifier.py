"""Notifier Port - short user-facing notices about flow runs."""

from typing import Protocol


class NotifierPort(Protocol):
    """Receives notices such as "Flow execution finished."."""

    def notify(self, message: str) -> None:
        ...
