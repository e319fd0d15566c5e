"""
Host bootstrap: builds both engines from one explicit context.

The process bootstrap owns the HostContext and passes it to the engines at
construction. Nothing in hostgate-core keeps module-level mutable state.
"""

import asyncio
import logging
import os
import sys
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field

from .clock import LoopTickSource
from .config import HostConfig
from .confirmation import NullConfirmationChannel
from .coordinator import UpdateCoordinator
from .drivers import select_update_driver
from .hooks import HookRegistry
from .interfaces import CapabilityProbe
from .interfaces import ConfirmationChannel
from .interfaces import NotificationSink
from .interfaces import Relauncher
from .interfaces import TickSource
from .interfaces import UpdateTransport
from .models import CapabilityKind
from .models import PermissionDecision
from .models import PermissionRequest
from .notifications import LoggingNotificationSink
from .permissions import PermissionEngine
from .probe import select_capability_probe

logger = logging.getLogger(__name__)


class ProcessRelauncher:
    """Relaunches the current interpreter with the same arguments."""

    def __init__(self, argv: list[str] | None = None):
        self.argv = argv or [sys.executable, *sys.argv]

    def relaunch(self) -> None:
        logger.info(f"Relaunching: {' '.join(self.argv)}")
        os.execv(self.argv[0], self.argv)


@dataclass
class HostContext:
    """Collaborators shared by the permission engine and the update coordinator."""

    notifications: NotificationSink = field(default_factory=LoggingNotificationSink)
    confirmation: ConfirmationChannel = field(default_factory=NullConfirmationChannel)
    probe: CapabilityProbe = field(default_factory=select_capability_probe)
    clock: TickSource = field(default_factory=LoopTickSource)
    relauncher: Relauncher = field(default_factory=ProcessRelauncher)
    hooks: HookRegistry = field(default_factory=HookRegistry)
    config: HostConfig = field(default_factory=HostConfig)


class HostCore:
    """
    Command surface exposed to the UI layer.

    request-permission, quick-check-permission and check-for-update map onto
    the methods below. Sessions of the two engines never share state.
    """

    def __init__(self, context: HostContext, permissions: PermissionEngine, updates: UpdateCoordinator):
        self.context = context
        self.permissions = permissions
        self.updates = updates

    async def request_permission(self, kind: CapabilityKind | str, origin: str) -> bool:
        decision = await self.evaluate(PermissionRequest.from_host(getattr(kind, "value", kind), origin))
        return decision.allow

    async def evaluate(self, request: PermissionRequest) -> PermissionDecision:
        return await self.permissions.evaluate(request)

    def quick_check_permission(self, kind: CapabilityKind | str, origin: str) -> bool:
        return self.permissions.quick_check(kind, origin)

    def handle_permission_request(
        self,
        permission: str,
        origin: str,
        callback: Callable[[bool], None],
        correlation_id: str | None = None,
    ) -> asyncio.Task:
        return self.permissions.handle_request(permission, origin, callback, correlation_id)

    def check_for_update(self) -> None:
        self.updates.check_for_update()

    async def drain(self) -> None:
        await self.permissions.drain()
        await self.updates.drain()

    async def close(self) -> None:
        await self.updates.close()
        await self.permissions.close()


def create_host(
    context: HostContext | None = None,
    *,
    packaged: bool,
    transport: UpdateTransport | None = None,
) -> HostCore:
    """
    Wire both engines from a context.

    Args:
        context: Shared collaborators (defaults are headless: log sink,
            no confirmation surface, platform probe, loop timers)
        packaged: True for packaged builds; development builds simulate updates
        transport: Release-feed transport for the real update driver

    Raises:
        ConfigurationError: The configured update driver cannot be built
    """
    context = context or HostContext()
    context.hooks.set_default_fields(packaged=packaged)

    permissions = PermissionEngine(
        confirmation=context.confirmation,
        probe=context.probe,
        hooks=context.hooks,
        retained_decisions=context.config.permissions.retained_decisions,
    )
    driver = select_update_driver(
        context.config.update,
        packaged=packaged,
        clock=context.clock,
        relauncher=context.relauncher,
        transport=transport,
    )
    updates = UpdateCoordinator(
        driver=driver,
        notifications=context.notifications,
        confirmation=context.confirmation,
        hooks=context.hooks,
    )
    logger.debug(f"Host ready (packaged={packaged}, update driver={driver.name})")
    return HostCore(context, permissions, updates)
