"""
Tests for capability probes.
"""

import asyncio

import pytest
from hostgate_core.models import MediaAccessStatus
from hostgate_core.probe import AlwaysGrantedProbe
from hostgate_core.probe import MacMediaProbe
from hostgate_core.probe import StaticCapabilityProbe
from hostgate_core.probe import select_capability_probe


@pytest.mark.asyncio
async def test_always_granted():
    """Test platforms without a check report granted."""
    probe = AlwaysGrantedProbe()
    assert await probe.probe("camera") is MediaAccessStatus.GRANTED
    assert await probe.probe("microphone") is MediaAccessStatus.GRANTED


@pytest.mark.asyncio
async def test_static_probe_records_calls():
    """Test static answers, undetermined fallback and call recording."""
    probe = StaticCapabilityProbe({"camera": "denied"})

    assert await probe.probe("camera") is MediaAccessStatus.DENIED
    assert await probe.probe("microphone") is MediaAccessStatus.UNDETERMINED
    assert probe.calls == ["camera", "microphone"]


@pytest.mark.asyncio
async def test_mac_probe_missing_binary_is_undetermined(tmp_path):
    """Test an unavailable osascript never blocks a request."""
    probe = MacMediaProbe(osascript=str(tmp_path / "no-such-osascript"))
    assert await probe.probe("camera") is MediaAccessStatus.UNDETERMINED


@pytest.mark.asyncio
async def test_mac_probe_unknown_capability():
    """Test capabilities without an AVFoundation media type are undetermined."""
    assert await MacMediaProbe().probe("screen") is MediaAccessStatus.UNDETERMINED


def test_select_probe_by_platform():
    """Test macOS gets the AVFoundation probe, everything else the no-op probe."""
    assert isinstance(select_capability_probe("darwin"), MacMediaProbe)
    assert isinstance(select_capability_probe("linux"), AlwaysGrantedProbe)
    assert isinstance(select_capability_probe("win32"), AlwaysGrantedProbe)


class HangingProcess:
    """Stands in for an osascript child that never answers."""

    def __init__(self):
        self.started = asyncio.Event()
        self.killed = False
        self.waited = False

    async def communicate(self):
        self.started.set()
        await asyncio.Event().wait()

    def kill(self):
        self.killed = True

    async def wait(self):
        self.waited = True
        return -9


@pytest.mark.asyncio
async def test_mac_probe_cancel_kills_child(monkeypatch):
    """Test cancelling a probe reaps the osascript child before propagating."""
    process = HangingProcess()

    async def fake_exec(*args, **kwargs):
        return process

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
    task = asyncio.create_task(MacMediaProbe(timeout=60).probe("camera"))
    await process.started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert process.killed is True
    assert process.waited is True
