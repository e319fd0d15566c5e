"""
Hostgate Core - permission mediation and update lifecycle for desktop hosts.
"""

__version__ = "1.0.0"

from .clock import LoopTickSource
from .clock import VirtualClock
from .config import HostConfig
from .config import SettingsPaths
from .config import load_settings
from .confirmation import DISMISSED
from .confirmation import DeferredConfirmationChannel
from .confirmation import NullConfirmationChannel
from .confirmation import ask
from .coordinator import UpdateCoordinator
from .drivers import SimulatedUpdateDriver
from .drivers import TransportUpdateDriver
from .drivers import select_update_driver
from .errors import ConfigurationError
from .errors import ConfirmationUnavailableError
from .errors import HostGateError
from .errors import MalformedEventError
from .errors import TransportError
from .errors import UnknownPromptError
from .hooks import HookRegistry
from .host import HostContext
from .host import HostCore
from .host import create_host
from .interfaces import CapabilityProbe
from .interfaces import ConfirmationChannel
from .interfaces import ConfirmationPrompt
from .interfaces import NotificationSink
from .interfaces import Relauncher
from .interfaces import TickSource
from .interfaces import UpdateDriver
from .interfaces import UpdateTransport
from .models import CapabilityKind
from .models import DecisionReason
from .models import MediaAccessStatus
from .models import PermissionDecision
from .models import PermissionRequest
from .models import PolicyClass
from .models import UpdateSession
from .models import UpdateState
from .notifications import FanoutNotificationSink
from .notifications import LoggingNotificationSink
from .permissions import DecisionSlot
from .permissions import PermissionEngine
from .policy import classify
from .probe import AlwaysGrantedProbe
from .probe import MacMediaProbe
from .probe import StaticCapabilityProbe
from .probe import select_capability_probe

__all__ = [
    "AlwaysGrantedProbe",
    "CapabilityKind",
    "CapabilityProbe",
    "ConfigurationError",
    "ConfirmationChannel",
    "ConfirmationPrompt",
    "ConfirmationUnavailableError",
    "DISMISSED",
    "DecisionReason",
    "DecisionSlot",
    "DeferredConfirmationChannel",
    "FanoutNotificationSink",
    "HookRegistry",
    "HostConfig",
    "HostContext",
    "HostCore",
    "HostGateError",
    "LoggingNotificationSink",
    "LoopTickSource",
    "MacMediaProbe",
    "MalformedEventError",
    "MediaAccessStatus",
    "NotificationSink",
    "NullConfirmationChannel",
    "PermissionDecision",
    "PermissionEngine",
    "PermissionRequest",
    "PolicyClass",
    "Relauncher",
    "SettingsPaths",
    "SimulatedUpdateDriver",
    "StaticCapabilityProbe",
    "TickSource",
    "TransportError",
    "TransportUpdateDriver",
    "UnknownPromptError",
    "UpdateCoordinator",
    "UpdateDriver",
    "UpdateSession",
    "UpdateState",
    "UpdateTransport",
    "VirtualClock",
    "ask",
    "classify",
    "create_host",
    "load_settings",
    "select_capability_probe",
    "select_update_driver",
]
