"""Terminal notification sink using rich."""

import logging

from rich.console import Console

from .console import console as default_console

logger = logging.getLogger(__name__)


class ConsoleNotificationSink:
    """Prints each update status line with a colored source label."""

    def __init__(self, console: Console | None = None, label: str = "update"):
        self.console = console or default_console
        self.label = label

    def notify(self, text: str) -> None:
        # \[ escapes the bracket so Rich renders it literally instead of as a tag
        self.console.print(f"[cyan]\\[{self.label}][/cyan] {text}", highlight=False)
        logger.debug(f"Status displayed: {text}")
