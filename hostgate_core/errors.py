"""Error taxonomy for hostgate-core.

Both engines resolve these internally: the permission engine turns them into
denials, the update coordinator turns them into status text and a return to
``Idle``. Nothing here reaches the caller of a command-surface operation.

Collaborators (transports, drivers, confirmation channels) raise these so the
engines can tell an expected failure from a programming error. Wrap native
exceptions with ``raise X(...) from native_error`` so the underlying cause stays
available via ``__cause__``.
"""

from __future__ import annotations


class HostGateError(Exception):
    """Base for all hostgate-core errors."""


class ConfigurationError(HostGateError):
    """Settings could not be loaded, validated, or wired together."""


class TransportError(HostGateError):
    """The update transport failed to check, download, or install.

    Attributes:
        operation: Which transport operation failed ("check", "download", "install").
    """

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation

    def __repr__(self) -> str:
        if self.operation is None:
            return f"{type(self).__name__}({str(self)!r})"
        return f"{type(self).__name__}({str(self)!r}, operation={self.operation!r})"


class MalformedEventError(HostGateError):
    """A raw transport event could not be translated into a coordinator event.

    Attributes:
        event_name: The raw event name as reported by the transport.
    """

    def __init__(self, message: str, *, event_name: str | None = None) -> None:
        super().__init__(message)
        self.event_name = event_name


class ConfirmationUnavailableError(HostGateError):
    """No human-facing confirmation surface could show the prompt."""


class UnknownPromptError(HostGateError):
    """An answer referenced a prompt id that is not pending."""
