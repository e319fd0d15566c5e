"""
Events that drive the update state machine.

Drivers, consent prompts and the command surface all speak this vocabulary;
the coordinator's transition table is keyed by event type.
"""

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class UpdateEvent(BaseModel):
    """Base event. session_id ties driver and prompt results to the session that caused them."""

    model_config = ConfigDict(frozen=True)

    session_id: str | None = None


class CheckRequested(UpdateEvent):
    """The UI issued check-for-update."""


class CheckStarted(UpdateEvent):
    """The transport acknowledged the check."""


class UpdateFound(UpdateEvent):
    """The release feed has a newer version."""

    version: str = Field(..., min_length=1)


class UpdateNotFound(UpdateEvent):
    """The installed version is current."""


class ConsentResolved(UpdateEvent):
    """The human answered the download prompt."""

    accepted: bool


class DownloadProgress(UpdateEvent):
    """Raw download progress as reported by the transport (not yet clamped)."""

    percent: float


class DownloadCompleted(UpdateEvent):
    """The update artifact is downloaded and verified."""


class InstallConsentResolved(UpdateEvent):
    """The human answered the restart prompt."""

    confirmed: bool


class TransportFailed(UpdateEvent):
    """The transport reported an error."""

    message: str
