"""
Collaborator interfaces for hostgate-core.
Uses Protocol classes for structural subtyping (no inheritance required).

The engines own the decision and state logic; everything they talk to
(the UI, the human, the OS, the release feed, the clock) is reached through
one of these interfaces and supplied by the process bootstrap.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING
from typing import Any
from typing import Literal
from typing import Protocol
from typing import runtime_checkable

from pydantic import BaseModel
from pydantic import Field
from pydantic import model_validator

from .models import MediaAccessStatus

if TYPE_CHECKING:
    from .update_events import UpdateEvent


class ConfirmationPrompt(BaseModel):
    """A modal choice presented to a human."""

    title: str = Field(..., description="Dialog title")
    message: str = Field(..., description="Main question or notice")
    buttons: list[str] = Field(..., min_length=1, description="Button labels; index 0 is the affirmative action")
    detail: str | None = Field(default=None, description="Secondary text, e.g. the requesting origin")
    kind: Literal["info", "question", "warning"] = "question"
    default_id: int = 0
    cancel_id: int | None = Field(default=None, description="Index reported when the prompt is dismissed")

    @model_validator(mode="after")
    def _check_indexes(self) -> "ConfirmationPrompt":
        if not 0 <= self.default_id < len(self.buttons):
            raise ValueError("default_id must index into buttons")
        if self.cancel_id is not None and not 0 <= self.cancel_id < len(self.buttons):
            raise ValueError("cancel_id must index into buttons")
        return self

    def is_affirmative(self, choice: int | None) -> bool:
        """True only for an explicit choice of button 0."""
        return choice == 0


@runtime_checkable
class NotificationSink(Protocol):
    """Delivers status strings to the UI. Fire-and-forget."""

    def notify(self, text: str) -> None:
        """Deliver one status line."""
        ...


@runtime_checkable
class ConfirmationChannel(Protocol):
    """Presents a modal choice to a human and reports the selected button."""

    async def confirm(self, prompt: ConfirmationPrompt) -> int | None:
        """
        Show the prompt and wait for the human.

        Args:
            prompt: Title, message, buttons and dismissal hints

        Returns:
            Index of the selected button, or None if the prompt was closed
            without a choice

        Raises:
            ConfirmationUnavailableError: No surface can show the prompt
        """
        ...


@runtime_checkable
class CapabilityProbe(Protocol):
    """Reports platform-level authorization for a hardware capability."""

    async def probe(self, capability: str) -> MediaAccessStatus:
        """
        Query the OS for one capability.

        Args:
            capability: "camera" or "microphone"

        Returns:
            granted, denied or undetermined
        """
        ...


TransportListener = Callable[[str, dict[str, Any]], None]


@runtime_checkable
class UpdateTransport(Protocol):
    """
    Performs check/download/install against a remote release feed.

    Results and progress arrive asynchronously through subscribed listeners as
    ``(event_name, payload)`` pairs: ``checking-for-update``,
    ``update-available {"version": ...}``, ``update-not-available``,
    ``download-progress {"percent": ...}``, ``update-downloaded`` and
    ``error {"message": ...}``.
    """

    def subscribe(self, listener: TransportListener) -> Callable[[], None]:
        """Register a listener; returns an unsubscribe function."""
        ...

    async def check_for_updates(self) -> None:
        """Start a check against the release feed."""
        ...

    async def download_update(self) -> None:
        """Start downloading the update found by the last check."""
        ...

    def quit_and_install(self) -> None:
        """Install the downloaded update and restart the process."""
        ...


@runtime_checkable
class UpdateDriver(Protocol):
    """Source of transition-triggering events for the update coordinator."""

    @property
    def name(self) -> str:
        """Driver name for logs ("transport" or "simulated")."""
        ...

    def attach(self, post: Callable[["UpdateEvent"], None]) -> None:
        """Connect the driver to the coordinator's event queue."""
        ...

    async def check(self, session_id: str) -> None:
        """Begin checking for an update."""
        ...

    async def download(self, session_id: str) -> None:
        """Begin downloading the update."""
        ...

    async def install(self, session_id: str) -> None:
        """Install and restart. Terminal for the session."""
        ...

    def end_session(self, session_id: str) -> None:
        """The coordinator returned to idle; events arriving later belong to no session."""
        ...

    def close(self) -> None:
        """Detach from the coordinator and stop any pending work."""
        ...


class TimerHandle(Protocol):
    """Cancellable scheduled callback."""

    def cancel(self) -> None: ...


@runtime_checkable
class TickSource(Protocol):
    """Schedules callbacks after a delay (real event loop or virtual clock)."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once, delay seconds from now."""
        ...


@runtime_checkable
class Relauncher(Protocol):
    """Restarts the host process after an update is installed."""

    def relaunch(self) -> None:
        """Relaunch the application."""
        ...
