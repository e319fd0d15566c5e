"""
Tests for confirmation channels and the fail-closed ask helper.
"""

import asyncio

import pytest
from hostgate_core.confirmation import DISMISSED
from hostgate_core.confirmation import DeferredConfirmationChannel
from hostgate_core.confirmation import NullConfirmationChannel
from hostgate_core.confirmation import ask
from hostgate_core.errors import UnknownPromptError
from hostgate_core.interfaces import ConfirmationPrompt
from hostgate_core.testing import ScriptedConfirmationChannel
from pydantic import ValidationError


def make_prompt(**overrides) -> ConfirmationPrompt:
    fields = {"title": "Question", "message": "Proceed?", "buttons": ["Yes", "No"], "cancel_id": 1}
    fields.update(overrides)
    return ConfirmationPrompt(**fields)


def test_prompt_validates_indexes():
    """Test default and cancel ids must point at a button."""
    with pytest.raises(ValidationError):
        make_prompt(cancel_id=2)
    with pytest.raises(ValidationError):
        make_prompt(default_id=5)
    with pytest.raises(ValidationError):
        make_prompt(buttons=[])


def test_only_first_button_is_affirmative():
    """Test nothing but index 0 counts as consent."""
    prompt = make_prompt()
    assert prompt.is_affirmative(0) is True
    assert prompt.is_affirmative(1) is False
    assert prompt.is_affirmative(None) is False


@pytest.mark.asyncio
async def test_ask_returns_valid_choice():
    """Test a valid index passes through unchanged."""
    assert await ask(ScriptedConfirmationChannel([1]), make_prompt()) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("answer", [None, 2, -1, "0", False, RuntimeError("boom")])
async def test_ask_collapses_to_dismissed(answer):
    """Test anything but a valid index becomes DISMISSED."""
    assert await ask(ScriptedConfirmationChannel([answer]), make_prompt()) is DISMISSED


@pytest.mark.asyncio
async def test_ask_without_surface_is_dismissed(caplog):
    """Test the null channel dismisses with a warning."""
    with caplog.at_level("WARNING"):
        assert await ask(NullConfirmationChannel(), make_prompt()) is DISMISSED
    assert "Confirmation unavailable" in caplog.text


@pytest.mark.asyncio
async def test_ask_propagates_cancellation():
    """Test cancellation is not mistaken for a dismissal."""
    channel = DeferredConfirmationChannel()
    task = asyncio.create_task(ask(channel, make_prompt()))
    await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert channel.pending == []


@pytest.mark.asyncio
async def test_deferred_channel_routes_by_prompt_id():
    """Test answers reach the prompt they name, in any order."""
    shown = []
    channel = DeferredConfirmationChannel(listener=shown.append)

    first = asyncio.create_task(channel.confirm(make_prompt(title="first")))
    second = asyncio.create_task(channel.confirm(make_prompt(title="second")))
    await asyncio.sleep(0)

    assert [pending.prompt.title for pending in shown] == ["first", "second"]
    channel.answer(shown[1].prompt_id, 0)
    channel.answer(shown[0].prompt_id, 1)

    assert await first == 1
    assert await second == 0


@pytest.mark.asyncio
async def test_deferred_channel_rejects_unknown_and_repeated_answers():
    """Test a prompt id can be answered only while pending."""
    channel = DeferredConfirmationChannel()
    task = asyncio.create_task(channel.confirm(make_prompt()))
    await asyncio.sleep(0)
    prompt_id = channel.pending[0].prompt_id

    channel.answer(prompt_id, 0)
    with pytest.raises(UnknownPromptError):
        channel.answer(prompt_id, 1)
    with pytest.raises(UnknownPromptError):
        channel.answer("prompt-999", 0)

    assert await task == 0


@pytest.mark.asyncio
async def test_deferred_channel_dismiss_all():
    """Test the UI going away dismisses every pending prompt."""
    channel = DeferredConfirmationChannel()
    tasks = [asyncio.create_task(ask(channel, make_prompt())) for _ in range(3)]
    await asyncio.sleep(0)

    channel.dismiss_all()

    assert await asyncio.gather(*tasks) == [DISMISSED, DISMISSED, DISMISSED]


@pytest.mark.asyncio
async def test_deferred_channel_listener_failure_is_unavailable():
    """Test a broken bridge leaves no prompt behind and dismisses."""

    def broken(pending):
        raise ConnectionError("bridge closed")

    channel = DeferredConfirmationChannel(listener=broken)

    assert await ask(channel, make_prompt()) is DISMISSED
    assert channel.pending == []
