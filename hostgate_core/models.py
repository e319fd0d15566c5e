"""
Core data models for hostgate-core.
Uses Pydantic for validation and serialization.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class CapabilityKind(str, Enum):
    """Capability classes content in the UI surface can ask for."""

    MEDIA = "media"
    NOTIFICATIONS = "notifications"
    MIDI = "midi"
    EXTERNAL_OPEN = "openExternal"
    FULLSCREEN = "fullscreen"
    POINTER_LOCK = "pointerLock"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: "str | CapabilityKind") -> "CapabilityKind":
        """Map a raw host permission name onto a kind; unknown names become OTHER."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER


class PolicyClass(str, Enum):
    """How a capability kind is resolved."""

    AUTO_ALLOW = "auto_allow"
    INTERACTIVE = "interactive"
    DENY_BY_DEFAULT = "deny_by_default"


class DecisionReason(str, Enum):
    """Why a permission decision came out the way it did."""

    AUTO_ALLOWED = "auto_allowed"
    POLICY_DENIED = "policy_denied"
    PLATFORM_DENIED = "platform_denied"
    USER_GRANTED = "user_granted"
    USER_DECLINED = "user_declined"
    FAILED_CLOSED = "failed_closed"


class MediaAccessStatus(str, Enum):
    """OS-level authorization status reported by a capability probe."""

    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


class PermissionRequest(BaseModel):
    """A single capability request from the UI surface. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    kind: CapabilityKind = Field(..., description="Capability class being requested")
    origin: str = Field(..., description="Requesting origin (URL of the content)")
    correlation_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Opaque id, unique per request",
    )
    permission: str | None = Field(
        default=None,
        description="Raw permission name as reported by the host, kept for logs and display",
    )

    @classmethod
    def from_host(cls, permission: str, origin: str, correlation_id: str | None = None) -> "PermissionRequest":
        """Build a request from the host's raw permission name."""
        fields: dict[str, Any] = {"kind": CapabilityKind.parse(permission), "origin": origin, "permission": permission}
        if correlation_id is not None:
            fields["correlation_id"] = correlation_id
        return cls(**fields)

    @property
    def name(self) -> str:
        """Permission name as the host knows it."""
        return self.permission or self.kind.value


class PermissionDecision(BaseModel):
    """Final allow/deny outcome for one PermissionRequest."""

    model_config = ConfigDict(frozen=True)

    correlation_id: str
    allow: bool
    reason: DecisionReason

    def __bool__(self) -> bool:
        return self.allow


class UpdateState(str, Enum):
    """Update lifecycle states."""

    IDLE = "idle"
    CHECKING = "checking"
    NO_UPDATE = "no_update"
    UPDATE_AVAILABLE = "update_available"
    AWAITING_CONSENT = "awaiting_consent"
    DOWNLOADING = "downloading"
    DOWNLOADED = "downloaded"
    AWAITING_INSTALL_CONSENT = "awaiting_install_consent"
    INSTALLING = "installing"
    FAILED = "failed"


class UpdateSession(BaseModel):
    """The single active update session."""

    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    state: UpdateState = UpdateState.IDLE
    version: str | None = None
    progress: int | None = Field(default=None, description="Last displayed download percent (0-100)")
    last_error: str | None = None
    started_at: datetime = Field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return self.model_dump(mode="json", exclude_none=True)
