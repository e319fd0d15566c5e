"""
Observer hooks for permission and update events.

Observers are told about decisions and transitions after they happen. They run
one after another in priority order and cannot influence the outcome; an
observer that raises is logged and skipped. Cancellation is not a failure: it
propagates to whoever awaited emit().
"""

import asyncio
import bisect
import itertools
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from typing import Any

logger = logging.getLogger(__name__)

HookCallback = Callable[[str, dict[str, Any]], Awaitable[None]]


@dataclass(order=True)
class HookHandler:
    """One registered observer. Ordered by priority, then registration order."""

    priority: int
    seq: int
    handler: HookCallback = field(compare=False)
    name: str = field(default="", compare=False)


class HookRegistry:
    """Per-event observer lists plus fields stamped onto every payload."""

    def __init__(self):
        self._handlers: dict[str, list[HookHandler]] = {}
        self._defaults: dict[str, Any] = {}
        self._seq = itertools.count()

    def register(
        self,
        event: str,
        handler: HookCallback,
        priority: int = 0,
        name: str | None = None,
    ) -> Callable[[], None]:
        """
        Subscribe an async observer to one event name.

        Lower priority numbers are notified first; equal priorities keep
        registration order. Returns a callable that removes the observer again.
        """
        entry = HookHandler(
            priority=priority,
            seq=next(self._seq),
            handler=handler,
            name=name or getattr(handler, "__name__", repr(handler)),
        )
        bisect.insort(self._handlers.setdefault(event, []), entry)
        logger.debug(f"Hook '{entry.name}' observes '{event}' (priority {priority})")

        def unregister() -> None:
            entries = self._handlers.get(event, [])
            if entry in entries:
                entries.remove(entry)
                logger.debug(f"Hook '{entry.name}' no longer observes '{event}'")

        return unregister

    on = register

    def set_default_fields(self, **defaults: Any) -> None:
        """Fields added to every payload unless the emitter supplies them."""
        self._defaults = dict(defaults)

    async def emit(self, event: str, data: dict[str, Any]) -> None:
        entries = list(self._handlers.get(event, ()))
        if not entries:
            return

        payload = {**self._defaults, **(data or {})}
        for entry in entries:
            # Copy per observer so one cannot edit what the next receives
            try:
                await entry.handler(event, dict(payload))
            except asyncio.CancelledError:
                # The emitter is being cancelled; later observers are skipped
                logger.debug(f"Hook '{entry.name}' was cancelled while handling '{event}'")
                raise
            except Exception as e:
                logger.error(f"Hook '{entry.name}' failed on '{event}': {e}")

    def list_handlers(self, event: str | None = None) -> dict[str, list[str]]:
        """Observer names per event, in notification order."""
        events = [event] if event else list(self._handlers)
        return {name: [entry.name for entry in self._handlers.get(name, [])] for name in events}
