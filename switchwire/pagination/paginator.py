"""Multi-page navigation sessions on top of the HandlerRegistry.

A Paginator replies to a command interaction with the first page and
a navigation row (first / prev / indicator / next / stop), registers
one owner-scoped handler per control, and keeps a sliding idle timer.
The session ends exactly once: stopped by its owner, expired by the
timer, or disposed externally.

Key classes:
    PaginationSession: Mutable navigation state shared by the handlers.
    PaginatorState: Lifecycle states.
    Paginator: The controller.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence

import structlog

from ..exceptions import PaginationError
from ..interactions.events import ActionEvent, CommandInteraction
from ..interactions.models import ActionRow, Button, ButtonStyle, MessagePayload, Page
from ..interactions.registry import HandlerRegistry, RegisteredHandler
from ..tasks import cancel_task, spawn

logger = structlog.get_logger("switchwire.pagination")

DEFAULT_TIMEOUT = 300.0
DEFAULT_IDLE_TIMEOUT = 120.0

EMPTY_MESSAGE = "No content available"
STOPPED_NOTICE = "Pagination stopped."
TIMED_OUT_NOTICE = "Pagination timed out."


class PaginatorState(str, Enum):
    """Lifecycle: IDLE -> ACTIVE -> STOPPED | EXPIRED | DISPOSED."""
    IDLE = "idle"
    ACTIVE = "active"
    STOPPED = "stopped"
    EXPIRED = "expired"
    DISPOSED = "disposed"


class NavAction(str, Enum):
    """Navigation controls backed by a registry entry."""
    FIRST = "first"
    PREV = "prev"
    NEXT = "next"
    STOP = "stop"


@dataclass
class PaginationSession:
    """Navigation state read by every handler at dispatch time.

    ``active`` only ever goes from True to False.
    """
    owner_id: str
    pages: List[Page]
    current_index: int = 0
    active: bool = True
    last_interaction_at: float = 0.0
    nav_registration_ids: List[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def clamp(self, index: int) -> int:
        if index < 0:
            return 0
        if index >= len(self.pages):
            return len(self.pages) - 1
        return index


class Paginator:
    """Paginated reply bound to a single command interaction.

    Args:
        interaction: The command interaction whose reply is paginated.
        pages: Pages to show, in order.
        registry: Registry the navigation handlers are stored in.
        owner_id: Actor allowed to navigate. Defaults to the invoker.
        timeout: Timer period in seconds.
        idle_timeout: Seconds without navigation before the session
            expires when the timer fires.
        ephemeral: Reply visible only to the invoker.
        clock: Time source in seconds.
        on_close: Called once when the session leaves ACTIVE.

    Raises:
        PaginationError: ``timeout`` or ``idle_timeout`` is not positive.
    """

    def __init__(
        self,
        interaction: CommandInteraction,
        pages: Sequence[Page],
        registry: HandlerRegistry,
        *,
        owner_id: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        ephemeral: bool = False,
        clock: Callable[[], float] = time.time,
        on_close: Optional[Callable[["Paginator"], None]] = None,
    ):
        if timeout <= 0 or idle_timeout <= 0:
            raise PaginationError(
                "Pagination timeouts must be positive",
                timeout=timeout,
                idle_timeout=idle_timeout,
            )
        self.interaction = interaction
        self.registry = registry
        self.timeout = timeout
        self.idle_timeout = idle_timeout
        self.ephemeral = ephemeral
        self._clock = clock
        self._on_close = on_close
        self.state = PaginatorState.IDLE
        self.session = PaginationSession(
            owner_id=owner_id or interaction.actor_id,
            pages=list(pages),
            last_interaction_at=clock(),
        )
        self._handles: Dict[NavAction, RegisteredHandler] = {}
        self._timer_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def active(self) -> bool:
        return self.session.active and self.state is PaginatorState.ACTIVE

    @property
    def current_index(self) -> int:
        return self.session.current_index

    def action_id(self, suffix: str) -> str:
        return f"page:{self.interaction.id}:{suffix}"

    async def start(self) -> None:
        """Send the first page and begin accepting navigation.

        With no pages, replies "No content available" and ends without
        registering handlers. Any failure while registering or sending
        disposes the session before re-raising.
        """
        if self.state is not PaginatorState.IDLE or self._closed:
            logger.warning("paginator_already_started", interaction_id=self.interaction.id)
            return

        if not self.session.pages:
            self.session.active = False
            self._close()
            await self.interaction.reply(
                MessagePayload(content=EMPTY_MESSAGE, ephemeral=self.ephemeral)
            )
            return

        try:
            self._register_handlers()
            self.state = PaginatorState.ACTIVE
            self.session.last_interaction_at = self._clock()
            await self._send_page(0, update=False)
            self._arm_timer(self.timeout)
        except Exception:
            self.dispose()
            raise

        logger.info(
            "pagination_started",
            interaction_id=self.interaction.id,
            pages=self.session.page_count,
            timeout=self.timeout,
            idle_timeout=self.idle_timeout,
        )

    async def go_to(self, index: int, event: Optional[ActionEvent] = None) -> None:
        """Show page ``index`` clamped into range, editing the existing reply.

        An inactive session only acknowledges ``event``.
        """
        if not self.active:
            if event is not None:
                await event.defer_update()
            return

        self.session.last_interaction_at = self._clock()
        if event is not None:
            await event.defer_update()
        if not self.active:
            return
        await self._send_page(index, update=True)

    async def stop(self, event: Optional[ActionEvent] = None) -> None:
        """End the session at the owner's request and strip the controls."""
        if not self.active:
            if event is not None:
                await event.defer_update()
            return
        await self._finalize(PaginatorState.STOPPED, STOPPED_NOTICE, event)

    def dispose(self) -> None:
        """Release every registration and the timer. Idempotent, never renders."""
        cancel_task(self._timer_task)
        self._timer_task = None
        for handle in self._handles.values():
            handle.dispose()
        self._handles.clear()
        if self.session.active:
            self.session.active = False
            self.state = PaginatorState.DISPOSED
            logger.debug("pagination_disposed", interaction_id=self.interaction.id)
        self._close()

    # -- navigation --------------------------------------------------------

    def _register_handlers(self) -> None:
        for action in NavAction:
            self._handles[action] = self.registry.register_handler(
                partial(self._on_nav, action),
                action_id=self.action_id(action.value),
                owner_id=self.session.owner_id,
                single_use=action is NavAction.STOP,
            )
        self.session.nav_registration_ids = [h.id for h in self._handles.values()]

    async def _on_nav(self, action: NavAction, event: ActionEvent) -> None:
        if action is NavAction.STOP:
            await self.stop(event)
            return
        current = self.session.current_index
        target = {
            NavAction.FIRST: 0,
            NavAction.PREV: current - 1,
            NavAction.NEXT: current + 1,
        }[action]
        await self.go_to(target, event)

    async def _send_page(self, index: int, *, update: bool) -> None:
        # The clamped index is committed before any await; the payload
        # is built from it so overlapping calls never render torn state.
        self.session.current_index = self.session.clamp(index)
        page = self.session.pages[self.session.current_index]
        payload = MessagePayload(
            content=page.content,
            embeds=list(page.embeds),
            components=[*page.components, self._nav_row()],
            ephemeral=self.ephemeral,
        )
        if update:
            await self.interaction.edit_reply(payload)
        else:
            await self.interaction.reply(payload)

    def _nav_row(self) -> ActionRow:
        index = self.session.current_index
        total = self.session.page_count
        is_first = index == 0
        is_last = index == total - 1
        ids = {action: handle.id for action, handle in self._handles.items()}
        return ActionRow((
            Button(ids[NavAction.FIRST], "⏮", disabled=is_first),
            Button(ids[NavAction.PREV], "◀", disabled=is_first),
            Button(self.action_id("current"), f"{index + 1}/{total}", disabled=True),
            Button(ids[NavAction.NEXT], "▶", disabled=is_last),
            Button(ids[NavAction.STOP], "⏹", style=ButtonStyle.DANGER),
        ))

    # -- termination -------------------------------------------------------

    async def _finalize(
        self,
        state: PaginatorState,
        notice: str,
        event: Optional[ActionEvent] = None,
    ) -> None:
        self.session.active = False
        self.state = state
        cancel_task(self._timer_task)
        self._timer_task = None
        try:
            if event is not None:
                await event.defer_update()
            page = self.session.pages[self.session.current_index]
            content = f"{page.content}\n\n{notice}" if page.content else notice
            await self.interaction.edit_reply(
                MessagePayload(content=content, embeds=list(page.embeds), components=[])
            )
        finally:
            self.dispose()
        logger.info(
            "pagination_finished",
            interaction_id=self.interaction.id,
            state=state.value,
            index=self.session.current_index,
        )

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close(self)

    # -- idle timer --------------------------------------------------------

    def _arm_timer(self, delay: float) -> None:
        cancel_task(self._timer_task)
        self._timer_task = spawn(
            self._run_timer(delay), name=f"paginator-timer:{self.interaction.id}"
        )

    async def _run_timer(self, delay: float) -> None:
        try:
            while delay is not None:
                await asyncio.sleep(delay)
                delay = await self._on_timer_fire()
        except asyncio.CancelledError:
            pass

    async def _on_timer_fire(self) -> Optional[float]:
        """Handle one timer fire.

        Returns the delay until the next fire while the session is
        still in use, or None once it has expired or was already done.
        """
        if not self.active:
            return None
        idle_for = self._clock() - self.session.last_interaction_at
        if idle_for < self.idle_timeout:
            remaining = self.idle_timeout - idle_for
            logger.debug(
                "pagination_timer_refreshed",
                interaction_id=self.interaction.id,
                next_check=remaining,
            )
            return remaining
        await self._finalize(PaginatorState.EXPIRED, TIMED_OUT_NOTICE)
        return None
