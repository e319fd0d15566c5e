"""CLI confirmation channel implementation using rich terminal UX."""

import asyncio
import logging

from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt

from ..interfaces import ConfirmationPrompt
from .console import console as default_console

logger = logging.getLogger(__name__)

_BORDER_STYLES = {
    "info": "cyan",
    "question": "yellow",
    "warning": "red",
}


class CLIConfirmationChannel:
    """Terminal-based confirmation with Rich formatting.

    Prompts from concurrent requests are shown one at a time; each waits for
    its own answer. No timeout: the human decides when to answer.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or default_console
        self._lock = asyncio.Lock()

    async def confirm(self, prompt: ConfirmationPrompt) -> int | None:
        async with self._lock:
            self._render(prompt)
            try:
                if len(prompt.buttons) == 1:
                    # Notices only need acknowledging
                    await asyncio.to_thread(self.console.input, "[dim]Press Enter to continue[/dim] ")
                    return 0

                choices = [str(index) for index in range(len(prompt.buttons))]
                return await asyncio.to_thread(
                    IntPrompt.ask,
                    "Your choice",
                    console=self.console,
                    choices=choices,
                    default=prompt.default_id,
                )
            except (EOFError, KeyboardInterrupt):
                self.console.print("\n[yellow]Prompt closed without a choice[/yellow]")
                logger.debug(f"Prompt '{prompt.title}' dismissed from terminal")
                return prompt.cancel_id

    def _render(self, prompt: ConfirmationPrompt) -> None:
        body = prompt.message
        if prompt.detail:
            body += f"\n[dim]{prompt.detail}[/dim]"
        body += "\n\n" + "   ".join(f"[bold]{index}[/bold] {label}" for index, label in enumerate(prompt.buttons))

        self.console.print()
        self.console.print(
            Panel(body, title=prompt.title, border_style=_BORDER_STYLES.get(prompt.kind, "cyan"), expand=False)
        )
