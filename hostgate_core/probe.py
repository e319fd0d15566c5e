"""
Capability probes: OS-level media authorization.

One probe is chosen at startup. Platforms without a media permission check get
AlwaysGrantedProbe, so the permission engine never branches on the platform.
"""

import asyncio
import logging
import sys

from .models import MediaAccessStatus

logger = logging.getLogger(__name__)

MEDIA_CAPABILITIES = ("camera", "microphone")

# AVFoundation media type codes
_AV_MEDIA_TYPES = {
    "camera": "vide",
    "microphone": "soun",
}

_AV_STATUS_SCRIPT = """
use framework "AVFoundation"
set authStatus to current application's AVCaptureDevice's authorizationStatusForMediaType:"{media_type}"
return authStatus as integer
"""

# AVAuthorizationStatus: 0 not determined, 1 restricted, 2 denied, 3 authorized
_AV_STATUS_MAP = {
    2: MediaAccessStatus.DENIED,
    3: MediaAccessStatus.GRANTED,
}


class AlwaysGrantedProbe:
    """Probe for platforms with no OS-level media permission check."""

    async def probe(self, capability: str) -> MediaAccessStatus:
        return MediaAccessStatus.GRANTED


class StaticCapabilityProbe:
    """Probe with fixed answers. Unlisted capabilities are undetermined."""

    def __init__(self, statuses: dict[str, MediaAccessStatus | str] | None = None):
        self.statuses = {name: MediaAccessStatus(value) for name, value in (statuses or {}).items()}
        self.calls: list[str] = []

    async def probe(self, capability: str) -> MediaAccessStatus:
        self.calls.append(capability)
        return self.statuses.get(capability, MediaAccessStatus.UNDETERMINED)


class MacMediaProbe:
    """
    macOS probe backed by AVFoundation via osascript.

    Restricted (MDM/parental controls) and anything unreadable map to
    undetermined: only an explicit user denial short-circuits a request.
    """

    def __init__(self, osascript: str = "osascript", timeout: float = 5.0):
        self.osascript = osascript
        self.timeout = timeout

    async def probe(self, capability: str) -> MediaAccessStatus:
        media_type = _AV_MEDIA_TYPES.get(capability)
        if media_type is None:
            logger.debug(f"No AVFoundation media type for '{capability}'")
            return MediaAccessStatus.UNDETERMINED

        script = _AV_STATUS_SCRIPT.format(media_type=media_type)
        try:
            process = await asyncio.create_subprocess_exec(
                self.osascript,
                "-l",
                "AppleScript",
                "-e",
                script,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.debug(f"Media access check for {capability} failed: {e}")
            return MediaAccessStatus.UNDETERMINED

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except TimeoutError:
            process.kill()
            await process.wait()
            logger.debug(f"Media access check for {capability} timed out after {self.timeout}s")
            return MediaAccessStatus.UNDETERMINED
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        output =stdout.decode(errors="replace").strip()
        try:
            code = int(output)
        except ValueError:
            logger.debug(f"Unexpected osascript output for {capability}: {output!r}")
            return MediaAccessStatus.UNDETERMINED
        return _AV_STATUS_MAP.get(code, MediaAccessStatus.UNDETERMINED)


def select_capability_probe(platform: str | None = None):
    """Pick the probe for this platform."""
    platform = platform or sys.platform
    if platform == "darwin":
        logger.debug("Using macOS media access probe")
        return MacMediaProbe()
    logger.debug(f"No media access probe on {platform}; treating media access as granted")
    return AlwaysGrantedProbe()
