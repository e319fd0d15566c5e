"""
Update lifecycle coordinator - the update state machine.

State machine:
    Idle --check--> Checking
    Checking --> NoUpdate --> Idle
    Checking --> UpdateAvailable --> AwaitingConsent
    AwaitingConsent --accept--> Downloading | --decline--> Idle
    Downloading --complete--> Downloaded --> AwaitingInstallConsent
    AwaitingInstallConsent --confirm--> Installing (terminal) | --later--> Idle
    any active state --transport error--> Failed --> Idle

Events are processed one at a time from a queue. Handlers may post further
events; those wait until the current handler returns. Everything that has to
wait (driver calls, prompts, hook observers) runs as a tracked task that feeds
its result back through post().

The coordinator does not care which driver it runs against: the transport
driver and the simulated driver produce the same events, so both walk the
same transition table and emit the same status text.
"""

import asyncio
import logging
import math
from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any

from . import events
from .confirmation import ask
from .hooks import HookRegistry
from .interfaces import ConfirmationChannel
from .interfaces import ConfirmationPrompt
from .interfaces import NotificationSink
from .interfaces import UpdateDriver
from .models import UpdateSession
from .models import UpdateState
from .update_events import CheckRequested
from .update_events import CheckStarted
from .update_events import ConsentResolved
from .update_events import DownloadCompleted
from .update_events import DownloadProgress
from .update_events import InstallConsentResolved
from .update_events import TransportFailed
from .update_events import UpdateEvent
from .update_events import UpdateFound
from .update_events import UpdateNotFound

logger = logging.getLogger(__name__)

STATUS_CHECKING = "Checking for updates..."
STATUS_UP_TO_DATE = "You are running the latest version."
STATUS_FOUND = "New version v{version} found."
STATUS_DOWNLOAD_STARTED = "Starting download of v{version}..."
STATUS_DOWNLOAD_PROGRESS = "Downloading: {percent}%"
STATUS_CANCELLED = "Update cancelled."
STATUS_DOWNLOADED = "Download complete, ready to install."
STATUS_INSTALLING = "Restarting to install the update..."
STATUS_POSTPONED = "Update postponed. It will be offered again on the next check."
STATUS_ERROR = "Update error: {message}"

CONSENT_PROMPT_TITLE = "Update available"
INSTALL_PROMPT_TITLE = "Install update"

Handler = Callable[[Any], None]


class UpdateCoordinator:
    """Drives the single update session of this process."""

    def __init__(
        self,
        driver: UpdateDriver,
        notifications: NotificationSink,
        confirmation: ConfirmationChannel,
        hooks: HookRegistry | None = None,
    ):
        self.driver = driver
        self.notifications = notifications
        self.confirmation = confirmation
        self.hooks = hooks or HookRegistry()

        self._session = UpdateSession()
        self._queue: deque[UpdateEvent] = deque()
        self._dispatching = False
        self._tasks: set[asyncio.Task] = set()

        self._transitions: dict[tuple[UpdateState, type[UpdateEvent]], Handler] = {
            (UpdateState.IDLE, CheckRequested): self._on_check_requested,
            (UpdateState.CHECKING, CheckStarted): self._on_check_started,
            (UpdateState.CHECKING, UpdateNotFound): self._on_update_not_found,
            (UpdateState.CHECKING, UpdateFound): self._on_update_found,
            (UpdateState.AWAITING_CONSENT, ConsentResolved): self._on_consent,
            (UpdateState.DOWNLOADING, DownloadProgress): self._on_progress,
            (UpdateState.DOWNLOADING, DownloadCompleted): self._on_download_completed,
            (UpdateState.AWAITING_INSTALL_CONSENT, InstallConsentResolved): self._on_install_consent,
        }

        self.driver.attach(self.post)

    # ----- Public surface -----

    @property
    def state(self) -> UpdateState:
        return self._session.state

    @property
    def session(self) -> UpdateSession:
        """Snapshot of the current (or most recent) session."""
        return self._session.model_copy()

    @property
    def is_active(self) -> bool:
        return self._session.state is not UpdateState.IDLE

    def check_for_update(self) -> None:
        """Command surface: start a check. No-op while a session is active."""
        self.post(CheckRequested())

    def post(self, event: UpdateEvent) -> None:
        """Queue an event and process the queue unless already processing."""
        self._queue.append(event)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._queue:
                next_event = self._queue.popleft()
                try:
                    self._dispatch(next_event)
                except Exception:
                    logger.exception(f"Update handler failed for {type(next_event).__name__}; state kept")
        finally:
            self._dispatching = False

    async def drain(self) -> None:
        """Wait until no side-effect task is outstanding (prompts included)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Detach the driver and cancel outstanding work."""
        self.driver.close()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ----- Dispatch -----

    def _dispatch(self, event: UpdateEvent) -> None:
        state = self._session.state

        if isinstance(event, CheckRequested) and state is not UpdateState.IDLE:
            logger.debug(f"Update check ignored: session already {state.value}")
            return

        if (
            not isinstance(event, CheckRequested)
            and event.session_id is not None
            and event.session_id != self._session.session_id
        ):
            self._ignore(event, "belongs to a finished session")
            return

        if isinstance(event, TransportFailed) and state is not UpdateState.IDLE:
            self._on_transport_failed(event)
            return

        handler = self._transitions.get((state, type(event)))
        if handler is None:
            self._ignore(event, f"unexpected in state {state.value}")
            return
        handler(event)

    def _ignore(self, event: UpdateEvent, why: str) -> None:
        logger.warning(f"Ignoring update event {type(event).__name__}: {why}")
        self._emit(events.UPDATE_IGNORED, {"event": type(event).__name__, "reason": why})

    # ----- Transitions -----

    def _on_check_requested(self, event: CheckRequested) -> None:
        self._session = UpdateSession()
        self._enter(UpdateState.CHECKING)
        self._notify(STATUS_CHECKING)
        self._run_driver("check", self.driver.check)

    def _on_check_started(self, event: CheckStarted) -> None:
        logger.debug(f"Driver '{self.driver.name}' acknowledged the check")

    def _on_update_not_found(self, event: UpdateNotFound) -> None:
        self._enter(UpdateState.NO_UPDATE)
        self._notify(STATUS_UP_TO_DATE)
        self._enter(UpdateState.IDLE)

    def _on_update_found(self, event: UpdateFound) -> None:
        self._session.version = event.version
        self._enter(UpdateState.UPDATE_AVAILABLE)
        self._notify(STATUS_FOUND.format(version=event.version))
        self._enter(UpdateState.AWAITING_CONSENT)
        self._spawn(self._request_consent(self._session.session_id, event.version))

    def _on_consent(self, event: ConsentResolved) -> None:
        if not event.accepted:
            logger.info("User declined the update")
            self._notify(STATUS_CANCELLED)
            self._enter(UpdateState.IDLE)
            return

        self._session.progress = None
        self._enter(UpdateState.DOWNLOADING)
        self._notify(STATUS_DOWNLOAD_STARTED.format(version=self._session.version))
        self._run_driver("download", self.driver.download)

    def _on_progress(self, event: DownloadProgress) -> None:
        if not math.isfinite(event.percent):
            self._ignore(event, f"non-finite progress {event.percent!r}")
            return

        percent = min(100, max(0, round(event.percent)))
        last = self._session.progress
        if last is not None and percent <= last:
            logger.debug(f"Dropping progress {percent}% (already showing {last}%)")
            return

        self._session.progress = percent
        self._notify(STATUS_DOWNLOAD_PROGRESS.format(percent=percent))

    def _on_download_completed(self, event: DownloadCompleted) -> None:
        self._session.progress = 100
        self._enter(UpdateState.DOWNLOADED)
        self._notify(STATUS_DOWNLOADED)
        self._enter(UpdateState.AWAITING_INSTALL_CONSENT)
        self._spawn(self._request_install_consent(self._session.session_id))

    def _on_install_consent(self, event: InstallConsentResolved) -> None:
        if not event.confirmed:
            logger.info("User postponed the install")
            self._notify(STATUS_POSTPONED)
            self._enter(UpdateState.IDLE)
            return

        self._enter(UpdateState.INSTALLING)
        self._notify(STATUS_INSTALLING)
        self._emit(events.UPDATE_RELAUNCH, {"version": self._session.version})
        self._run_driver("install", self.driver.install)

    def _on_transport_failed(self, event: TransportFailed) -> None:
        self._session.last_error = event.message
        self._enter(UpdateState.FAILED)
        self._notify(STATUS_ERROR.format(message=event.message))
        self._emit(events.UPDATE_ERROR, {"message": event.message})
        self._enter(UpdateState.IDLE)

    # ----- Side effects -----

    def _enter(self, state: UpdateState) -> None:
        previous = self._session.state
        self._session.state = state
        logger.info(f"Update session {self._session.session_id}: {previous.value} -> {state.value}")
        self._emit(events.UPDATE_STATE, {"from": previous.value, "to": state.value, "version": self._session.version})
        if state is UpdateState.IDLE and previous is not UpdateState.IDLE:
            self.driver.end_session(self._session.session_id)

    def _notify(self, text: str) -> None:
        try:
            self.notifications.notify(text)
        except Exception as e:
            logger.error(f"Notification sink failed: {e}")
        self._emit(events.UPDATE_STATUS, {"text": text})

    def _emit(self, event: str, data: dict[str, Any]) -> None:
        self._spawn(self.hooks.emit(event, {"session_id": self._session.session_id, **data}))

    def _run_driver(self, operation: str, call: Callable[[str], Awaitable[None]]) -> None:
        session_id = self._session.session_id

        async def _run() -> None:
            try:
                await call(session_id)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Update driver '{self.driver.name}' failed during {operation}: {e}")
                self.post(TransportFailed(session_id=session_id, message=str(e) or type(e).__name__))

        self._spawn(_run())

    async def _request_consent(self, session_id: str, version: str) -> None:
        prompt = ConfirmationPrompt(
            title=CONSENT_PROMPT_TITLE,
            message=f"Version v{version} is available. Update now?",
            buttons=["Yes", "No"],
            kind="info",
            cancel_id=1,
        )
        choice = await ask(self.confirmation, prompt)
        self.post(ConsentResolved(session_id=session_id, accepted=prompt.is_affirmative(choice)))

    async def _request_install_consent(self, session_id: str) -> None:
        prompt = ConfirmationPrompt(
            title=INSTALL_PROMPT_TITLE,
            message="The update has been downloaded. The application will restart to finish installing.",
            buttons=["Restart now", "Later"],
            kind="info",
            cancel_id=1,
        )
        choice = await ask(self.confirmation, prompt)
        self.post(InstallConsentResolved(session_id=session_id, confirmed=prompt.is_affirmative(choice)))

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
