"""
Tests for canonical hook event names.
"""

from hostgate_core import events


def test_event_names_are_namespaced():
    """Test every event follows namespace:action."""
    for name in events.ALL_EVENTS:
        namespace, _, action = name.partition(":")
        assert namespace in ("permission", "update")
        assert action


def test_event_names_are_unique():
    """Test no two constants share a name."""
    assert len(events.ALL_EVENTS) == len(set(events.ALL_EVENTS))


def test_all_events_lists_every_constant():
    """Test ALL_EVENTS covers every module-level constant."""
    constants = {value for key, value in vars(events).items() if key.isupper() and isinstance(value, str)}
    assert constants == set(events.ALL_EVENTS)
