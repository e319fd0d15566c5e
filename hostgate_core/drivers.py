"""
Update drivers: where the coordinator's events come from.

TransportUpdateDriver forwards a real release-feed transport.
SimulatedUpdateDriver reproduces the whole lifecycle offline on a tick source,
so development builds and tests exercise every state and every status line
without a release feed.
"""

import logging
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from .config import SimulationConfig
from .config import UpdateConfig
from .errors import ConfigurationError
from .errors import HostGateError
from .errors import MalformedEventError
from .errors import TransportError
from .interfaces import Relauncher
from .interfaces import TickSource
from .interfaces import TimerHandle
from .interfaces import UpdateTransport
from .update_events import CheckStarted
from .update_events import DownloadCompleted
from .update_events import DownloadProgress
from .update_events import TransportFailed
from .update_events import UpdateEvent
from .update_events import UpdateFound
from .update_events import UpdateNotFound

logger = logging.getLogger(__name__)

Post = Callable[[UpdateEvent], None]


def translate_transport_event(name: str, payload: dict[str, Any] | None, session_id: str | None) -> UpdateEvent:
    """
    Map a raw transport event onto a coordinator event.

    Raises:
        MalformedEventError: Unknown event name or unusable payload
    """
    payload = payload or {}
    try:
        if name == "checking-for-update":
            return CheckStarted(session_id=session_id)
        if name == "update-available":
            return UpdateFound(session_id=session_id, version=str(payload["version"]))
        if name == "update-not-available":
            return UpdateNotFound(session_id=session_id)
        if name == "download-progress":
            return DownloadProgress(session_id=session_id, percent=float(payload["percent"]))
        if name == "update-downloaded":
            return DownloadCompleted(session_id=session_id)
        if name == "error":
            message = payload.get("message") or "unknown transport error"
            return TransportFailed(session_id=session_id, message=str(message))
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise MalformedEventError(f"Bad payload for '{name}': {e}", event_name=name) from e
    raise MalformedEventError(f"Unknown transport event '{name}'", event_name=name)


class TransportUpdateDriver:
    """Real driver: delegates to an UpdateTransport and forwards its callbacks."""

    name = "transport"

    def __init__(self, transport: UpdateTransport):
        self.transport = transport
        self._post: Post | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._session_id: str | None = None

    def attach(self, post: Post) -> None:
        self._post = post
        self._unsubscribe = self.transport.subscribe(self._on_transport_event)

    async def check(self, session_id: str) -> None:
        self._session_id = session_id
        await self._call("check", self.transport.check_for_updates)

    async def download(self, session_id: str) -> None:
        self._session_id = session_id
        await self._call("download", self.transport.download_update)

    async def install(self, session_id: str) -> None:
        self._session_id = session_id
        try:
            self.transport.quit_and_install()
        except HostGateError:
            raise
        except Exception as e:
            raise TransportError(str(e) or type(e).__name__, operation="install") from e

    def end_session(self, session_id: str) -> None:
        # Late callbacks go out untagged and are left to the state table
        if self._session_id == session_id:
            self._session_id = None

    async def _call(self, operation: str, call: Callable[[], Awaitable[None]]) -> None:
        try:
            await call()
        except HostGateError:
            raise
        except Exception as e:
            raise TransportError(str(e) or type(e).__name__, operation=operation) from e

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._post = None

    def _on_transport_event(self, name: str, payload: dict[str, Any] | None = None) -> None:
        try:
            event = translate_transport_event(name, payload, self._session_id)
        except MalformedEventError as e:
            logger.warning(f"Ignoring transport event: {e}")
            return

        if self._post is None:
            logger.debug(f"Transport event '{name}' arrived after the driver was closed")
            return
        self._post(event)


class SimulatedUpdateDriver:
    """
    Deterministic offline driver.

    check:    after check_delay the check is acknowledged, found_delay later the
              synthetic version is reported
    download: progress 0, then +progress_step every progress_interval up to 100,
              then completion
    install:  relaunch through the relauncher
    """

    name = "simulated"

    def __init__(
        self,
        clock: TickSource,
        relauncher: Relauncher,
        config: SimulationConfig | None = None,
    ):
        self.clock = clock
        self.relauncher = relauncher
        self.config = config or SimulationConfig()
        self._post: Post | None = None
        self._timers: set[TimerHandle] = set()

    def attach(self, post: Post) -> None:
        self._post = post

    async def check(self, session_id: str) -> None:
        cfg = self.config
        logger.info(f"Simulating update check (v{cfg.version} will be offered)")
        self._schedule(cfg.check_delay, lambda: self._emit(CheckStarted(session_id=session_id)))
        self._schedule(
            cfg.check_delay + cfg.found_delay,
            lambda: self._emit(UpdateFound(session_id=session_id, version=cfg.version)),
        )

    async def download(self, session_id: str) -> None:
        logger.info("Simulating update download")
        self._emit(DownloadProgress(session_id=session_id, percent=0))
        self._schedule_progress(session_id, 0)

    async def install(self, session_id: str) -> None:
        logger.info("Simulating install: relaunching")
        self.relauncher.relaunch()

    def end_session(self, session_id: str) -> None:
        # Scheduled events already carry the id of the session that started them
        pass

    def close(self) -> None:
        for timer in list(self._timers):
            timer.cancel()
        self._timers.clear()
        self._post = None

    def _schedule_progress(self, session_id: str, progress: int) -> None:
        def tick() -> None:
            current = min(100, progress + self.config.progress_step)
            self._emit(DownloadProgress(session_id=session_id, percent=current))
            if current >= 100:
                self._emit(DownloadCompleted(session_id=session_id))
            else:
                self._schedule_progress(session_id, current)

        self._schedule(self.config.progress_interval, tick)

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        handle: TimerHandle | None = None

        def fire() -> None:
            self._timers.discard(handle)
            callback()

        handle = self.clock.call_later(delay, fire)
        self._timers.add(handle)

    def _emit(self, event: UpdateEvent) -> None:
        if self._post is None:
            logger.debug(f"Simulated {type(event).__name__} dropped: driver closed")
            return
        self._post(event)


def select_update_driver(
    config: UpdateConfig,
    *,
    packaged: bool,
    clock: TickSource,
    relauncher: Relauncher,
    transport: UpdateTransport | None = None,
):
    """
    Choose the driver for this process.

    auto: the transport driver for packaged builds that have a transport,
    the simulator otherwise.

    Raises:
        ConfigurationError: driver "real" was requested without a transport
    """
    choice = config.driver
    if choice == "auto":
        choice = "real" if packaged and transport is not None else "simulated"

    if choice == "real":
        if transport is None:
            raise ConfigurationError("update.driver is 'real' but no update transport was provided")
        logger.info("Using transport update driver")
        return TransportUpdateDriver(transport)

    logger.info("Using simulated update driver")
    return SimulatedUpdateDriver(clock=clock, relauncher=relauncher, config=config.simulation)
