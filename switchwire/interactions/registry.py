"""Ephemeral interaction handler registry.

Maps short-lived action ids (button/component ids) to async handler
callbacks and enforces ownership, expiry and single-use consumption
when an ActionEvent is dispatched.

Registrations leave the registry only through an explicit dispose,
lazy expiry on dispatch, single-use consumption, or the periodic
expiry sweep.

Key classes:
    Registration: Immutable record stored per action id.
    RegisteredHandler: Handle returned to callers, exposes dispose().
    HandlerRegistry: The id -> Registration table and dispatcher.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Set

import structlog

from ..exceptions import DuplicateActionError
from ..tasks import cancel_task, spawn
from .events import ActionEvent
from .models import MessagePayload

logger = structlog.get_logger("switchwire.interactions")

ActionHandler = Callable[[ActionEvent], Awaitable[None]]

EXPIRED_MESSAGE = "This interaction has expired."
UNAUTHORIZED_MESSAGE = "You cannot use this interaction."
FAILURE_MESSAGE = "Something went wrong while handling that interaction."


@dataclass(frozen=True)
class Registration:
    """A stored handler and the policy attached to it."""
    id: str
    handler: ActionHandler
    owner_id: Optional[str] = None
    expires_at: Optional[float] = None
    single_use: bool = False
    on_expire: Optional[Callable[[], None]] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


class RegisteredHandler:
    """Handle for a live registration.

    ``dispose()`` is idempotent: only the call that actually removes
    the registration runs its ``on_expire`` callback.
    """

    def __init__(self, registry: "HandlerRegistry", registration: Registration):
        self._registry = registry
        self._registration = registration

    @property
    def id(self) -> str:
        return self._registration.id

    def dispose(self) -> None:
        self._registry._release(self._registration, reason="disposed")

    def __repr__(self) -> str:
        return f"RegisteredHandler(id={self.id!r})"


class HandlerRegistry:
    """Process-wide table of ephemeral action handlers.

    All mutation happens synchronously between await points, so a
    single asyncio loop needs no locking here.

    Args:
        clock: Time source in seconds. Injected by tests.
        default_expiry: Lifetime applied when register_handler() is
            called without ``expires_in``. None means no expiry.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        default_expiry: Optional[float] = None,
    ):
        self._clock = clock
        self.default_expiry = default_expiry
        self._registrations: Dict[str, Registration] = {}
        # id() of each single-use Registration whose handler is still awaiting
        self._in_flight: Set[int] = set()
        self._sweep_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._registrations)

    def __contains__(self, action_id: str) -> bool:
        return action_id in self._registrations

    def get(self, action_id: str) -> Optional[Registration]:
        return self._registrations.get(action_id)

    def register_handler(
        self,
        handler: ActionHandler,
        *,
        action_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        expires_in: Optional[float] = None,
        single_use: bool = False,
        on_expire: Optional[Callable[[], None]] = None,
    ) -> RegisteredHandler:
        """Register ``handler`` under ``action_id`` (generated if omitted).

        Args:
            handler: Async callable receiving the ActionEvent.
            action_id: Explicit id. Must not be currently registered.
            owner_id: Only this actor may trigger the handler.
            expires_in: Seconds until the registration expires.
            single_use: Remove after the first dispatch that runs it.
            on_expire: Sync callback run once when the registration
                leaves the registry for any reason.

        Raises:
            DuplicateActionError: ``action_id`` is already registered.
        """
        action_id = action_id or uuid.uuid4().hex
        if action_id in self._registrations:
            raise DuplicateActionError(
                "Action id already registered", action_id=action_id
            )

        if expires_in is None:
            expires_in = self.default_expiry
        expires_at = self._clock() + expires_in if expires_in else None

        registration = Registration(
            id=action_id,
            handler=handler,
            owner_id=owner_id,
            expires_at=expires_at,
            single_use=single_use,
            on_expire=on_expire,
        )
        self._registrations[action_id] = registration
        logger.debug(
            "handler_registered",
            action_id=action_id,
            owner_scoped=owner_id is not None,
            expires_at=expires_at,
            single_use=single_use,
        )
        return RegisteredHandler(self, registration)

    async def dispatch(self, event: ActionEvent) -> bool:
        """Resolve ``event`` against the registry and run its handler.

        Returns False only when the action id is unknown, so callers
        can fall through to another subsystem. Expired, unauthorized
        and failing handlers are answered here and never raise.
        """
        registration = self._registrations.get(event.action_id)
        if registration is None:
            return False

        if registration.is_expired(self._clock()):
            self._release(registration, reason="expired")
            await self._reply_if_needed(event, EXPIRED_MESSAGE)
            return True

        if registration.owner_id and event.actor_id != registration.owner_id:
            logger.info(
                "interaction_unauthorized",
                action_id=event.action_id,
                actor="..." + event.actor_id[-4:],
            )
            await self._reply_if_needed(event, UNAUTHORIZED_MESSAGE)
            return True

        if registration.single_use:
            if id(registration) in self._in_flight:
                logger.debug("single_use_in_flight", action_id=registration.id)
                await self._defer_quietly(event)
                return True
            self._in_flight.add(id(registration))

        try:
            await registration.handler(event)
        except Exception as e:
            logger.error(
                "handler_failed",
                action_id=event.action_id,
                component=event.component_type.value,
                error=str(e),
                exc_type=type(e).__name__,
                exc_info=True,
            )
            await self._reply_if_needed(event, FAILURE_MESSAGE)
        finally:
            if registration.single_use:
                self._in_flight.discard(id(registration))

        if registration.single_use:
            self._release(registration, reason="consumed")

        return True

    def sweep_expired(self) -> int:
        """Remove every expired registration. Returns how many were removed."""
        now = self._clock()
        expired = [r for r in self._registrations.values() if r.is_expired(now)]
        for registration in expired:
            self._release(registration, reason="swept")
        if expired:
            logger.info("registrations_swept", count=len(expired), remaining=len(self))
        return len(expired)

    def start_sweeper(self, interval: float) -> None:
        """Start the periodic expiry sweep on the running loop."""
        self.stop_sweeper()
        self._sweep_task = spawn(self._sweep_loop(interval), name="registry-sweeper")
        logger.info("registry_sweeper_started", interval=interval)

    def stop_sweeper(self) -> None:
        """Stop the periodic sweep. Safe to call repeatedly."""
        cancel_task(self._sweep_task)
        self._sweep_task = None

    async def _sweep_loop(self, interval: float) -> None:
        try:
            while True:
                await asyncio.sleep(interval)
                self.sweep_expired()
        except asyncio.CancelledError:
            pass

    def _release(self, registration: Registration, *, reason: str) -> bool:
        """Remove ``registration`` if it is still the live entry for its id.

        Returns True when this call removed it (and ran on_expire).
        """
        if self._registrations.get(registration.id) is not registration:
            return False
        del self._registrations[registration.id]
        logger.debug("handler_released", action_id=registration.id, reason=reason)
        if registration.on_expire is not None:
            try:
                registration.on_expire()
            except Exception as e:
                logger.error(
                    "on_expire_callback_error",
                    action_id=registration.id,
                    error=str(e),
                )
        return True

    async def _reply_if_needed(self, event: ActionEvent, message: str) -> None:
        if event.acknowledged:
            return
        try:
            await event.reply(MessagePayload(content=message, ephemeral=True))
        except Exception as e:
            logger.warning("interaction_reply_failed", action_id=event.action_id, error=str(e))

    async def _defer_quietly(self, event: ActionEvent) -> None:
        try:
            await event.defer_update()
        except Exception as e:
            logger.warning("interaction_defer_failed", action_id=event.action_id, error=str(e))
