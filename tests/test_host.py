"""
Tests for host bootstrap wiring.
"""

import asyncio

import pytest
from hostgate_core import events
from hostgate_core.clock import VirtualClock
from hostgate_core.config import HostConfig
from hostgate_core.confirmation import DeferredConfirmationChannel
from hostgate_core.errors import ConfigurationError
from hostgate_core.host import HostContext
from hostgate_core.host import create_host
from hostgate_core.models import UpdateState
from hostgate_core.probe import StaticCapabilityProbe
from hostgate_core.testing import RecordingNotificationSink
from hostgate_core.testing import RecordingRelauncher
from hostgate_core.testing import ScriptedConfirmationChannel
from hostgate_core.testing import ScriptedUpdateTransport
from hostgate_core.testing import run_until_quiescent

ORIGIN = "https://app.example.com"


def make_context(confirmation, config=None):
    return HostContext(
        notifications=RecordingNotificationSink(),
        confirmation=confirmation,
        probe=StaticCapabilityProbe(),
        clock=VirtualClock(),
        relauncher=RecordingRelauncher(),
        config=config or HostConfig(),
    )


@pytest.mark.asyncio
async def test_development_build_uses_simulator():
    """Test an unpackaged host runs the simulated lifecycle end to end."""
    context = make_context(ScriptedConfirmationChannel([0, 0]))
    host = create_host(context, packaged=False)

    assert host.updates.driver.name == "simulated"
    host.check_for_update()
    await run_until_quiescent(host.updates, context.clock)

    assert context.notifications.messages[-1] == "Restarting to install the update..."
    assert context.relauncher.count == 1
    await host.close()


@pytest.mark.asyncio
async def test_packaged_build_uses_transport():
    """Test a packaged host with a transport uses the real driver."""
    transport = ScriptedUpdateTransport()
    transport.on_check = lambda t: t.emit("update-not-available")
    context = make_context(ScriptedConfirmationChannel())
    host = create_host(context, packaged=True, transport=transport)

    assert host.updates.driver.name == "transport"
    host.check_for_update()
    await host.drain()

    assert transport.check_calls == 1
    assert context.notifications.messages[-1] == "You are running the latest version."
    await host.close()


def test_packaged_build_without_transport_falls_back():
    """Test auto selection simulates when no transport exists."""
    host = create_host(make_context(ScriptedConfirmationChannel()), packaged=True)
    assert host.updates.driver.name == "simulated"


def test_forced_real_driver_without_transport_fails():
    """Test asking for the real driver without a transport is a configuration error."""
    config = HostConfig.from_mapping({"update": {"driver": "real"}})
    with pytest.raises(ConfigurationError):
        create_host(make_context(ScriptedConfirmationChannel(), config), packaged=True)


def test_forced_simulator_in_packaged_build():
    """Test configuration can force the simulator even with a transport."""
    config = HostConfig.from_mapping({"update": {"driver": "simulated"}})
    host = create_host(
        make_context(ScriptedConfirmationChannel(), config),
        packaged=True,
        transport=ScriptedUpdateTransport(),
    )
    assert host.updates.driver.name == "simulated"


@pytest.mark.asyncio
async def test_permission_commands():
    """Test the permission command surface."""
    context = make_context(ScriptedConfirmationChannel([0]))
    host = create_host(context, packaged=False)
    results = []

    assert await host.request_permission("fullscreen", ORIGIN) is True
    assert await host.request_permission("geolocation", ORIGIN) is False
    assert host.quick_check_permission("media", ORIGIN) is True
    await host.handle_permission_request("notifications", ORIGIN, results.append)

    assert results == [True]
    await host.close()


@pytest.mark.asyncio
async def test_packaged_flag_reaches_observers():
    """Test every hook event carries the build flavour."""
    context = make_context(ScriptedConfirmationChannel())
    seen = []

    async def record(event, data):
        seen.append(data["packaged"])

    context.hooks.register(events.PERMISSION_GRANTED, record)
    host = create_host(context, packaged=False)
    await host.request_permission("fullscreen", ORIGIN)

    assert seen == [False]


@pytest.mark.asyncio
async def test_engines_do_not_share_state():
    """Test a permission prompt resolves while the update prompt stays pending."""
    channel = DeferredConfirmationChannel()
    context = make_context(channel)
    host = create_host(context, packaged=False)

    host.check_for_update()
    await host.updates.drain()
    context.clock.advance(10)
    await asyncio.sleep(0)
    assert host.updates.state is UpdateState.AWAITING_CONSENT

    permission = asyncio.create_task(host.request_permission("midi", ORIGIN))
    for _ in range(20):
        if len(channel.pending) == 2:
            break
        await asyncio.sleep(0)

    permission_prompt = next(p for p in channel.pending if p.prompt.title == "Permission request")
    channel.answer(permission_prompt.prompt_id, 0)

    assert await permission is True
    assert host.updates.state is UpdateState.AWAITING_CONSENT

    channel.dismiss_all()
    await host.drain()
    assert host.updates.state is UpdateState.IDLE
    await host.close()
