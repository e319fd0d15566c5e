"""
Permission mediation engine.

Every capability request from the UI surface is classified by the fixed policy
table and resolved exactly once:

    AutoAllow       -> allow, no further checks
    DenyByDefault   -> deny, logged
    Interactive     -> media kinds consult the capability probe first; an OS-level
                       denial is final and the human is not re-prompted. Otherwise
                       the human is asked; anything but an explicit "Allow" denies.

Concurrent evaluations are independent coroutines. Each owns the future stored
under its correlation id, so a decision can only ever be delivered to the
request that produced it.
"""

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Callable

from . import events
from .confirmation import ask
from .hooks import HookRegistry
from .interfaces import CapabilityProbe
from .interfaces import ConfirmationChannel
from .interfaces import ConfirmationPrompt
from .models import CapabilityKind
from .models import DecisionReason
from .models import MediaAccessStatus
from .models import PermissionDecision
from .models import PermissionRequest
from .models import PolicyClass
from .policy import MEDIA_KINDS
from .policy import classify
from .policy import display_name
from .probe import MEDIA_CAPABILITIES

logger = logging.getLogger(__name__)

DEFAULT_RETAINED_DECISIONS = 1024

PERMISSION_PROMPT_TITLE = "Permission request"
PLATFORM_NOTICE_TITLE = "System permission restricted"
PLATFORM_NOTICE_MESSAGE = (
    "Camera or microphone access is blocked by the operating system. "
    "Enable access for this application in system settings, then try again."
)


class DecisionSlot:
    """
    Single-use result slot for a host callback.

    The host hands over a callback when a request arrives; it must be called
    exactly once. Later resolutions are logged and dropped.
    """

    def __init__(self, correlation_id: str, callback: Callable[[bool], None]):
        self.correlation_id = correlation_id
        self._callback = callback
        self._resolved = False

    @property
    def resolved(self) -> bool:
        return self._resolved

    def resolve(self, allow: bool) -> bool:
        """Deliver the decision. Returns False if the slot was already used."""
        if self._resolved:
            logger.warning(f"Decision slot {self.correlation_id} already resolved; ignoring allow={allow}")
            return False
        self._resolved = True
        self._callback(allow)
        return True


class PermissionEngine:
    """Classifies capability requests and resolves each to allow or deny."""

    def __init__(
        self,
        confirmation: ConfirmationChannel,
        probe: CapabilityProbe,
        hooks: HookRegistry | None = None,
        retained_decisions: int = DEFAULT_RETAINED_DECISIONS,
    ):
        self.confirmation = confirmation
        self.probe = probe
        self.hooks = hooks or HookRegistry()
        self.retained_decisions = retained_decisions
        self._decisions: OrderedDict[str, asyncio.Future] = OrderedDict()
        self._background: set[asyncio.Task] = set()

    # ----- Command surface -----

    async def evaluate(self, request: PermissionRequest) -> PermissionDecision:
        """
        Resolve a request to a final decision.

        A correlation id is evaluated once. Asking again returns the decision
        already produced (waiting for it if the first evaluation is still
        suspended on a prompt) rather than prompting a second time.
        """
        existing = self._decisions.get(request.correlation_id)
        if existing is not None:
            logger.warning(f"Request {request.correlation_id} was already evaluated; reusing its decision")
            return await asyncio.shield(existing)

        future = asyncio.get_running_loop().create_future()
        self._decisions[request.correlation_id] = future
        logger.info(f"[Permission Request] Type: {request.name}, Origin: {request.origin}")

        try:
            await self.hooks.emit(
                events.PERMISSION_REQUESTED,
                {"kind": request.kind.value, "origin": request.origin, "correlation_id": request.correlation_id},
            )
            decision = await self._decide(request)
        except asyncio.CancelledError:
            future.set_result(self._deny(request, DecisionReason.FAILED_CLOSED))
            self._evict()
            raise
        except Exception as e:
            logger.error(f"Evaluation of {request.correlation_id} failed, denying: {e}")
            decision = self._deny(request, DecisionReason.FAILED_CLOSED)

        future.set_result(decision)
        self._evict()
        await self._emit_decision(request, decision)
        return decision

    def quick_check(self, kind: CapabilityKind | str, origin: str) -> bool:
        """
        Synchronous pre-check used before some capabilities may start.

        Always passes: the real decision is made once by evaluate() when the
        request itself arrives, so the human is never prompted twice.
        """
        logger.debug(f"[Permission Check] Type: {getattr(kind, 'value', kind)}, Origin: {origin}")
        return True

    def handle_request(
        self,
        permission: str,
        origin: str,
        callback: Callable[[bool], None],
        correlation_id: str | None = None,
    ) -> asyncio.Task:
        """
        Host adapter: evaluate a raw request and answer through a one-shot callback.

        Returns the task doing the work; the callback is called exactly once,
        with False if evaluation could not complete.
        """
        request = PermissionRequest.from_host(permission, origin, correlation_id)
        slot = DecisionSlot(request.correlation_id, callback)

        async def _run() -> None:
            try:
                decision = await self.evaluate(request)
            except asyncio.CancelledError:
                slot.resolve(False)
                raise
            except Exception as e:
                logger.error(f"Permission handler for {request.correlation_id} failed: {e}")
                slot.resolve(False)
                return
            slot.resolve(decision.allow)

        return self._spawn(_run())

    async def drain(self) -> None:
        """Wait for background notices to be closed by the human."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        """Cancel background work (informational notices still on screen)."""
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # ----- Decision pipeline -----

    async def _decide(self, request: PermissionRequest) -> PermissionDecision:
        policy = classify(request.kind)

        if policy is PolicyClass.AUTO_ALLOW:
            return self._allow(request, DecisionReason.AUTO_ALLOWED)

        if policy is PolicyClass.DENY_BY_DEFAULT:
            logger.warning(f"[Permission Blocked] Type: {request.name}, Origin: {request.origin}")
            return self._deny(request, DecisionReason.POLICY_DENIED)

        if request.kind in MEDIA_KINDS and await self._platform_denied(request):
            self._show_platform_notice()
            return self._deny(request, DecisionReason.PLATFORM_DENIED)

        prompt = ConfirmationPrompt(
            title=PERMISSION_PROMPT_TITLE,
            message=f"The application is requesting access to your {display_name(request.kind, request.permission)}",
            detail=f"Origin: {request.origin}",
            buttons=["Allow", "Deny"],
            kind="question",
            default_id=0,
            cancel_id=1,
        )
        choice = await ask(self.confirmation, prompt)
        if prompt.is_affirmative(choice):
            return self._allow(request, DecisionReason.USER_GRANTED)
        return self._deny(request, DecisionReason.USER_DECLINED)

    async def _platform_denied(self, request: PermissionRequest) -> bool:
        results = await asyncio.gather(
            *(self.probe.probe(capability) for capability in MEDIA_CAPABILITIES),
            return_exceptions=True,
        )
        statuses = {}
        for capability, result in zip(MEDIA_CAPABILITIES, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.warning(f"Capability probe for {capability} failed: {result}")
                result = MediaAccessStatus.UNDETERMINED
            statuses[capability] = result

        logger.info(
            "[System Check] "
            + ", ".join(f"{capability}: {getattr(status, 'value', status)}" for capability, status in statuses.items())
        )
        return any(status == MediaAccessStatus.DENIED for status in statuses.values())

    def _show_platform_notice(self) -> None:
        notice = ConfirmationPrompt(
            title=PLATFORM_NOTICE_TITLE,
            message=PLATFORM_NOTICE_MESSAGE,
            buttons=["OK"],
            kind="warning",
        )
        # The decision does not wait for the human to close the notice
        self._spawn(ask(self.confirmation, notice))

    # ----- Helpers -----

    def _allow(self, request: PermissionRequest, reason: DecisionReason) -> PermissionDecision:
        return PermissionDecision(correlation_id=request.correlation_id, allow=True, reason=reason)

    def _deny(self, request: PermissionRequest, reason: DecisionReason) -> PermissionDecision:
        return PermissionDecision(correlation_id=request.correlation_id, allow=False, reason=reason)

    async def _emit_decision(self, request: PermissionRequest, decision: PermissionDecision) -> None:
        logger.info(
            f"[Permission Decision] Type: {request.name}, Origin: {request.origin}, "
            f"allow={decision.allow} ({decision.reason.value})"
        )
        await self.hooks.emit(
            events.PERMISSION_GRANTED if decision.allow else events.PERMISSION_DENIED,
            {
                "kind": request.kind.value,
                "origin": request.origin,
                "correlation_id": request.correlation_id,
                "reason": decision.reason.value,
            },
        )

    def _evict(self) -> None:
        while len(self._decisions) > self.retained_decisions:
            oldest_id, oldest = next(iter(self._decisions.items()))
            if not oldest.done():
                break
            del self._decisions[oldest_id]

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task
