"""
Confirmation channels and the fail-closed prompt helper.

Engine provides mechanism (ask and interpret a choice).
App layer provides the surface (terminal, web bridge, native dialog).
"""

import asyncio
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .errors import ConfirmationUnavailableError
from .errors import UnknownPromptError
from .interfaces import ConfirmationChannel
from .interfaces import ConfirmationPrompt

logger = logging.getLogger(__name__)

# A closed or dismissed prompt reports no choice.
DISMISSED = None


async def ask(channel: ConfirmationChannel, prompt: ConfirmationPrompt) -> int | None:
    """
    Show a prompt and return the chosen index, or DISMISSED.

    Out-of-range answers and channel failures collapse to DISMISSED, so callers
    only need to check for an explicit affirmative choice.
    """
    try:
        choice = await channel.confirm(prompt)
    except asyncio.CancelledError:
        raise
    except ConfirmationUnavailableError as e:
        logger.warning(f"Confirmation unavailable for '{prompt.title}': {e}")
        return DISMISSED
    except Exception as e:
        logger.error(f"Confirmation channel failed for '{prompt.title}': {e}")
        return DISMISSED

    if choice is None:
        logger.debug(f"Prompt '{prompt.title}' dismissed")
        return DISMISSED
    if not isinstance(choice, int) or isinstance(choice, bool) or not 0 <= choice < len(prompt.buttons):
        logger.warning(f"Prompt '{prompt.title}' returned out-of-range choice {choice!r}; treating as dismissed")
        return DISMISSED
    return choice


class NullConfirmationChannel:
    """Channel for hosts with no confirmation surface. Every prompt is dismissed."""

    async def confirm(self, prompt: ConfirmationPrompt) -> int | None:
        raise ConfirmationUnavailableError("no confirmation surface configured")


@dataclass
class PendingPrompt:
    """A prompt parked in a DeferredConfirmationChannel until answered."""

    prompt_id: str
    prompt: ConfirmationPrompt
    future: asyncio.Future


class DeferredConfirmationChannel:
    """
    Confirmation channel answered out of band, keyed by prompt id.

    Each confirm() call parks its own future under a fresh prompt id and hands
    the pending prompt to the listener (typically a bridge that forwards it to
    the UI). The UI answers with answer(prompt_id, index) in any order; an
    answer can only ever reach the prompt it names.
    """

    def __init__(self, listener: Callable[[PendingPrompt], None] | None = None):
        self._listener = listener
        self._pending: dict[str, PendingPrompt] = {}
        self._ids = itertools.count(1)

    @property
    def pending(self) -> list[PendingPrompt]:
        """Prompts currently waiting for an answer, oldest first."""
        return list(self._pending.values())

    async def confirm(self, prompt: ConfirmationPrompt) -> int | None:
        prompt_id = f"prompt-{next(self._ids)}"
        future = asyncio.get_running_loop().create_future()
        pending = PendingPrompt(prompt_id=prompt_id, prompt=prompt, future=future)
        self._pending[prompt_id] = pending
        logger.debug(f"Prompt {prompt_id} pending: {prompt.title}")

        if self._listener is not None:
            try:
                self._listener(pending)
            except Exception as e:
                self._pending.pop(prompt_id, None)
                raise ConfirmationUnavailableError(f"prompt listener failed: {e}") from e

        try:
            return await future
        finally:
            self._pending.pop(prompt_id, None)

    def answer(self, prompt_id: str, choice: int | None) -> None:
        """Resolve one pending prompt. choice=None means dismissed."""
        pending = self._pending.get(prompt_id)
        if pending is None or pending.future.done():
            raise UnknownPromptError(f"No pending prompt with id '{prompt_id}'")
        pending.future.set_result(choice)
        logger.debug(f"Prompt {prompt_id} answered with {choice!r}")

    def dismiss_all(self) -> None:
        """Dismiss every pending prompt (e.g. the UI went away)."""
        for pending in list(self._pending.values()):
            if not pending.future.done():
                pending.future.set_result(DISMISSED)
