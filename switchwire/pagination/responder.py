"""Paginated replies for command handlers.

PaginatedResponder owns every live Paginator, keyed by the id of the
command interaction it answers, so a repeated send for the same
interaction replaces the old session and shutdown can dispose them all.
"""

import copy
import time
from typing import Callable, Dict, Optional, Sequence

import structlog

from ..interactions.events import CommandInteraction
from ..interactions.models import Page
from ..interactions.registry import HandlerRegistry
from .paginator import DEFAULT_IDLE_TIMEOUT, DEFAULT_TIMEOUT, Paginator

logger = structlog.get_logger("switchwire.pagination")


class PaginatedResponder:
    """Starts and tracks Paginator sessions.

    Args:
        registry: Registry used for navigation handlers.
        timeout: Default timer period for new sessions.
        idle_timeout: Default idle window for new sessions.
        clock: Time source handed to each Paginator.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.timeout = timeout
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._active: Dict[str, Paginator] = {}

    @property
    def active_count(self) -> int:
        return len(self._active)

    def get(self, interaction_id: str) -> Optional[Paginator]:
        return self._active.get(interaction_id)

    async def send(
        self,
        interaction: CommandInteraction,
        pages: Sequence[Page],
        *,
        ephemeral: bool = False,
        owner_id: Optional[str] = None,
        timeout: Optional[float] = None,
        idle_timeout: Optional[float] = None,
    ) -> Optional[Paginator]:
        """Reply to ``interaction`` with a paginated message.

        Returns the started Paginator, or None if it could not be built
        or started (invalid timeouts, a failed reply). The failure is
        logged and any partial session disposed.
        """
        key = interaction.id
        self._dispose(key)

        try:
            paginator = Paginator(
                interaction,
                [self._normalize_page(page) for page in pages],
                self.registry,
                owner_id=owner_id,
                timeout=timeout if timeout is not None else self.timeout,
                idle_timeout=idle_timeout if idle_timeout is not None else self.idle_timeout,
                ephemeral=ephemeral,
                clock=self._clock,
                on_close=self._forget,
            )
            self._active[key] = paginator
            await paginator.start()
        except Exception as e:
            logger.error(
                "paginator_start_failed",
                interaction_id=key,
                error=str(e),
                exc_info=True,
            )
            self._dispose(key)
            return None
        return paginator

    def cancel(self, interaction: CommandInteraction) -> None:
        """Dispose the session answering ``interaction``, if any."""
        self._dispose(interaction.id)

    def dispose_all(self) -> None:
        for key in list(self._active):
            self._dispose(key)

    def _dispose(self, key: str) -> None:
        existing = self._active.pop(key, None)
        if existing is not None:
            existing.dispose()

    def _forget(self, paginator: Paginator) -> None:
        key = paginator.interaction.id
        if self._active.get(key) is paginator:
            del self._active[key]

    @staticmethod
    def _normalize_page(page: Page) -> Page:
        # Copies so callers can reuse their Page objects for other sessions
        return Page(
            content=page.content,
            embeds=[copy.deepcopy(embed) for embed in page.embeds],
            components=list(page.components),
        )
