# Terminal UI adapters (rich).

from .confirmation import CLIConfirmationChannel
from .console import console
from .display import ConsoleNotificationSink

__all__ = [
    "CLIConfirmationChannel",
    "ConsoleNotificationSink",
    "console",
]
