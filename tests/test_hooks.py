"""
Tests for hook registry functionality.
"""

import asyncio

import pytest
from hostgate_core.hooks import HookRegistry


@pytest.mark.asyncio
async def test_register_and_unregister():
    """Test register() returns a working unregister function."""
    registry = HookRegistry()
    seen = []

    async def handler(event, data):
        seen.append(data["value"])

    unregister = registry.register("test:event", handler, name="test-handler")
    assert registry.list_handlers("test:event") == {"test:event": ["test-handler"]}

    await registry.emit("test:event", {"value": 1})
    unregister()
    await registry.emit("test:event", {"value": 2})

    assert seen == [1]
    assert registry.list_handlers("test:event") == {"test:event": []}


@pytest.mark.asyncio
async def test_on_alias():
    """Test on() alias works identically to register()."""
    registry = HookRegistry()
    seen = []

    async def handler(event, data):
        seen.append(event)

    registry.on("test:event", handler)
    await registry.emit("test:event", {})

    assert seen == ["test:event"]


@pytest.mark.asyncio
async def test_priority_order():
    """Test lower priority numbers run first."""
    registry = HookRegistry()
    order = []

    def make(name):
        async def handler(event, data):
            order.append(name)

        return handler

    registry.register("test:event", make("late"), priority=10, name="late")
    registry.register("test:event", make("early"), priority=-5, name="early")
    registry.register("test:event", make("middle"), name="middle")

    await registry.emit("test:event", {})

    assert order == ["early", "middle", "late"]


@pytest.mark.asyncio
async def test_default_fields_and_isolation():
    """Test defaults are merged and each handler gets its own copy."""
    registry = HookRegistry()
    registry.set_default_fields(packaged=False, source="default")
    received = []

    async def mutating(event, data):
        data["source"] = "mutated"
        received.append(dict(data))

    async def reading(event, data):
        received.append(dict(data))

    registry.register("test:event", mutating, priority=0)
    registry.register("test:event", reading, priority=1)

    await registry.emit("test:event", {"source": "explicit"})

    assert received[0]["source"] == "mutated"
    assert received[1] == {"packaged": False, "source": "explicit"}


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_others():
    """Test an error in one observer is contained."""
    registry = HookRegistry()
    seen = []

    async def broken(event, data):
        raise RuntimeError("observer bug")

    async def healthy(event, data):
        seen.append(event)

    registry.register("test:event", broken, priority=0)
    registry.register("test:event", healthy, priority=1)

    await registry.emit("test:event", {})

    assert seen == ["test:event"]


@pytest.mark.asyncio
async def test_cancelled_emit_propagates():
    """Test cancelling an emit mid-observer stops it instead of carrying on."""
    registry = HookRegistry()
    entered = asyncio.Event()
    seen = []

    async def slow(event, data):
        entered.set()
        await asyncio.Event().wait()

    async def later(event, data):
        seen.append(event)

    registry.register("test:event", slow, priority=0)
    registry.register("test:event", later, priority=1)

    task = asyncio.create_task(registry.emit("test:event", {}))
    await entered.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()
    assert seen == []


@pytest.mark.asyncio
async def test_emit_without_handlers():
    """Test emitting an event nobody listens to is a no-op."""
    await HookRegistry().emit("nobody:listens", {"x": 1})
