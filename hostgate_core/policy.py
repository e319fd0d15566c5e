"""Fixed permission policy table and human-readable capability names."""

from types import MappingProxyType

from .models import CapabilityKind
from .models import PolicyClass

POLICY_TABLE = MappingProxyType(
    {
        CapabilityKind.FULLSCREEN: PolicyClass.AUTO_ALLOW,
        CapabilityKind.POINTER_LOCK: PolicyClass.AUTO_ALLOW,
        CapabilityKind.MEDIA: PolicyClass.INTERACTIVE,
        CapabilityKind.NOTIFICATIONS: PolicyClass.INTERACTIVE,
        CapabilityKind.MIDI: PolicyClass.INTERACTIVE,
        CapabilityKind.EXTERNAL_OPEN: PolicyClass.INTERACTIVE,
    }
)

# Kinds that consult the capability probe before prompting
MEDIA_KINDS = frozenset({CapabilityKind.MEDIA})

_DISPLAY_NAMES = MappingProxyType(
    {
        CapabilityKind.MEDIA: "camera and microphone",
        CapabilityKind.NOTIFICATIONS: "system notifications",
        CapabilityKind.MIDI: "MIDI devices",
        CapabilityKind.EXTERNAL_OPEN: "opening external links",
        CapabilityKind.FULLSCREEN: "fullscreen mode",
        CapabilityKind.POINTER_LOCK: "pointer lock",
    }
)


def classify(kind: CapabilityKind | str) -> PolicyClass:
    """Policy class for a kind. Anything not listed is denied by default."""
    return POLICY_TABLE.get(CapabilityKind.parse(kind), PolicyClass.DENY_BY_DEFAULT)


def display_name(kind: CapabilityKind | str, permission: str | None = None) -> str:
    """Name shown to the human in a confirmation prompt."""
    name = _DISPLAY_NAMES.get(CapabilityKind.parse(kind))
    if name is not None:
        return name
    return permission or str(getattr(kind, "value", kind))
