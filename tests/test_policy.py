"""
Tests for the fixed permission policy table.
"""

import pytest
from hostgate_core.models import CapabilityKind
from hostgate_core.models import PermissionRequest
from hostgate_core.models import PolicyClass
from hostgate_core.policy import classify
from hostgate_core.policy import display_name


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        ("fullscreen", PolicyClass.AUTO_ALLOW),
        ("pointerLock", PolicyClass.AUTO_ALLOW),
        ("media", PolicyClass.INTERACTIVE),
        ("notifications", PolicyClass.INTERACTIVE),
        ("midi", PolicyClass.INTERACTIVE),
        ("openExternal", PolicyClass.INTERACTIVE),
        ("geolocation", PolicyClass.DENY_BY_DEFAULT),
        ("clipboard-read", PolicyClass.DENY_BY_DEFAULT),
        ("", PolicyClass.DENY_BY_DEFAULT),
    ],
)
def test_classify(kind, expected):
    """Test every known kind and a few unknown ones."""
    assert classify(kind) is expected


def test_unknown_permission_maps_to_other():
    """Test raw host names outside the table become OTHER but keep their name."""
    request = PermissionRequest.from_host("geolocation", "https://app.example.com")
    assert request.kind is CapabilityKind.OTHER
    assert request.name == "geolocation"
    assert classify(request.kind) is PolicyClass.DENY_BY_DEFAULT


def test_display_names():
    """Test prompt wording for known kinds and the fallback for unknown ones."""
    assert display_name(CapabilityKind.MEDIA) == "camera and microphone"
    assert display_name("notifications") == "system notifications"
    assert display_name("midi") == "MIDI devices"
    assert display_name(CapabilityKind.OTHER, "geolocation") == "geolocation"


def test_correlation_ids_are_unique():
    """Test each request gets its own id unless one is supplied."""
    first = PermissionRequest.from_host("media", "https://a.example")
    second = PermissionRequest.from_host("media", "https://a.example")
    assert first.correlation_id != second.correlation_id

    explicit = PermissionRequest.from_host("media", "https://a.example", correlation_id="req-1")
    assert explicit.correlation_id == "req-1"
