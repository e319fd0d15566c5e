"""
Testing utilities for hostgate-core.

Recording and scripted collaborators that make both engines deterministic
without a UI, an operating system or a release feed.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from collections.abc import Iterable
from typing import Any

from .clock import VirtualClock
from .coordinator import UpdateCoordinator
from .interfaces import ConfirmationPrompt
from .interfaces import TransportListener

logger = logging.getLogger(__name__)


class RecordingNotificationSink:
    """Notification sink that records every status line."""

    def __init__(self):
        self.messages: list[str] = []

    def notify(self, text: str) -> None:
        self.messages.append(text)

    def clear(self) -> None:
        self.messages.clear()


class ScriptedConfirmationChannel:
    """
    Confirmation channel with pre-programmed answers.

    Answers can be a sequence consumed in order, or a callable that picks the
    answer per prompt. When the sequence runs out the default is returned.
    An answer that is an exception instance is raised instead.
    """

    def __init__(
        self,
        answers: Iterable[Any] | Callable[[ConfirmationPrompt], Any] | None = None,
        default: int | None = None,
    ):
        self._pick = answers if callable(answers) else None
        self._answers = deque(() if answers is None or callable(answers) else answers)
        self.default = default
        self.prompts: list[ConfirmationPrompt] = []

    def add_answer(self, answer: Any) -> None:
        self._answers.append(answer)

    async def confirm(self, prompt: ConfirmationPrompt) -> int | None:
        self.prompts.append(prompt)
        if self._pick is not None:
            answer = self._pick(prompt)
        elif self._answers:
            answer = self._answers.popleft()
        else:
            answer = self.default
        if isinstance(answer, BaseException):
            raise answer
        return answer

    @property
    def titles(self) -> list[str]:
        return [prompt.title for prompt in self.prompts]


class ScriptedUpdateTransport:
    """
    In-memory release-feed transport.

    Tests drive it by calling emit() with raw transport event names, exactly as
    a real feed would deliver them. Operations are counted; setting one of the
    *_error attributes makes the matching call raise.
    """

    def __init__(self):
        self.listeners: list[TransportListener] = []
        self.check_calls = 0
        self.download_calls = 0
        self.install_calls = 0
        self.check_error: Exception | None = None
        self.download_error: Exception | None = None
        self.install_error: Exception | None = None
        self.on_check: Callable[["ScriptedUpdateTransport"], None] | None = None
        self.on_download: Callable[["ScriptedUpdateTransport"], None] | None = None

    def subscribe(self, listener: TransportListener) -> Callable[[], None]:
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def emit(self, name: str, payload: dict[str, Any] | None = None) -> None:
        for listener in list(self.listeners):
            listener(name, payload)

    async def check_for_updates(self) -> None:
        self.check_calls += 1
        if self.check_error is not None:
            raise self.check_error
        if self.on_check is not None:
            self.on_check(self)

    async def download_update(self) -> None:
        self.download_calls += 1
        if self.download_error is not None:
            raise self.download_error
        if self.on_download is not None:
            self.on_download(self)

    def quit_and_install(self) -> None:
        self.install_calls += 1
        if self.install_error is not None:
            raise self.install_error


class RecordingRelauncher:
    """Relauncher that counts relaunch requests instead of restarting."""

    def __init__(self):
        self.count = 0

    def relaunch(self) -> None:
        self.count += 1


async def run_until_quiescent(coordinator: UpdateCoordinator, clock: VirtualClock, max_steps: int = 1000) -> int:
    """
    Alternate draining coordinator tasks and advancing the virtual clock until
    neither has anything left to do. Returns the number of clock steps taken.
    """
    steps = 0
    while steps < max_steps:
        await coordinator.drain()
        # Let callbacks scheduled by finished tasks run before checking the clock
        await asyncio.sleep(0)
        if clock.next_deadline() is None:
            await coordinator.drain()
            return steps
        clock.advance_to_next()
        steps += 1
    raise RuntimeError(f"Coordinator still busy after {max_steps} clock steps")
