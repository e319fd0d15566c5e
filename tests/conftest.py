"""
Shared fixtures for hostgate-core tests.
"""

import pytest
from hostgate_core.clock import VirtualClock
from hostgate_core.config import SimulationConfig
from hostgate_core.coordinator import UpdateCoordinator
from hostgate_core.drivers import SimulatedUpdateDriver
from hostgate_core.drivers import TransportUpdateDriver
from hostgate_core.hooks import HookRegistry
from hostgate_core.testing import RecordingNotificationSink
from hostgate_core.testing import RecordingRelauncher
from hostgate_core.testing import ScriptedConfirmationChannel
from hostgate_core.testing import ScriptedUpdateTransport


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def sink():
    return RecordingNotificationSink()


@pytest.fixture
def relauncher():
    return RecordingRelauncher()


@pytest.fixture
def hooks():
    return HookRegistry()


@pytest.fixture
def transport():
    return ScriptedUpdateTransport()


@pytest.fixture
def simulated_coordinator(clock, sink, relauncher, hooks):
    """Build a coordinator on the simulated driver with scripted answers."""

    def _build(answers=(), default=None, config=None):
        channel = ScriptedConfirmationChannel(answers, default=default)
        driver = SimulatedUpdateDriver(clock=clock, relauncher=relauncher, config=config or SimulationConfig())
        coordinator = UpdateCoordinator(driver=driver, notifications=sink, confirmation=channel, hooks=hooks)
        return coordinator, channel

    return _build


@pytest.fixture
def transport_coordinator(transport, sink, hooks):
    """Build a coordinator on the transport driver with scripted answers."""

    def _build(answers=(), default=None):
        channel = ScriptedConfirmationChannel(answers, default=default)
        driver = TransportUpdateDriver(transport)
        coordinator = UpdateCoordinator(driver=driver, notifications=sink, confirmation=channel, hooks=hooks)
        return coordinator, channel

    return _build
