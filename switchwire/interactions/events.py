"""Inbound interaction contracts.

Platform adapters subclass these to connect the core to a real
transport. Each interaction may be answered once (``reply`` or
``defer_update``) and the reply edited any number of times.

Key classes:
    Interaction: Base with acknowledgement bookkeeping.
    CommandInteraction: A slash-command invocation.
    ActionEvent: A button click or select-menu choice (``action_id``).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Tuple

from .models import ComponentType, GuildInfo, MemberInfo, MessagePayload


class Interaction(ABC):
    """An inbound request from an actor that expects a response.

    Args:
        interaction_id: Platform id, unique per interaction.
        actor_id: Id of the user who triggered it.
        guild: Guild context, or None in direct messages.
        member: Guild-scoped member info for the actor.
        channel_id: Channel the interaction happened in.
    """

    def __init__(
        self,
        interaction_id: str,
        actor_id: str,
        *,
        guild: Optional[GuildInfo] = None,
        member: Optional[MemberInfo] = None,
        channel_id: Optional[str] = None,
    ):
        self.id = interaction_id
        self.actor_id = actor_id
        self.guild = guild
        self.member = member
        self.channel_id = channel_id
        self.replied = False
        self.deferred = False

    @property
    def guild_id(self) -> Optional[str]:
        return self.guild.id if self.guild else None

    @property
    def acknowledged(self) -> bool:
        """Whether a first response (reply or defer) was already sent."""
        return self.replied or self.deferred

    async def reply(self, payload: MessagePayload) -> None:
        await self._send_reply(payload)
        self.replied = True

    async def defer_update(self) -> None:
        """Acknowledge without changing the visible UI.

        Calling this on an already acknowledged interaction is a no-op.
        """
        if self.acknowledged:
            return
        await self._send_defer_update()
        self.deferred = True

    async def edit_reply(self, payload: MessagePayload) -> None:
        await self._send_edit(payload)

    @abstractmethod
    async def _send_reply(self, payload: MessagePayload) -> None:
        ...

    @abstractmethod
    async def _send_defer_update(self) -> None:
        ...

    @abstractmethod
    async def _send_edit(self, payload: MessagePayload) -> None:
        ...


class CommandInteraction(Interaction):
    """A command invocation with its parsed options."""

    def __init__(
        self,
        interaction_id: str,
        actor_id: str,
        command_name: str,
        *,
        options: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(interaction_id, actor_id, **kwargs)
        self.command_name = command_name
        self.options = dict(options or {})


class ActionEvent(Interaction):
    """A component interaction identified by ``action_id``.

    Args:
        action_id: Registry id of the clicked or changed component.
        component_type: Which kind of component produced the event.
        values: Picked option values (or user ids) for select menus,
            empty for buttons.
    """

    def __init__(
        self,
        interaction_id: str,
        actor_id: str,
        action_id: str,
        *,
        component_type: ComponentType = ComponentType.BUTTON,
        values: Sequence[str] = (),
        **kwargs: Any,
    ):
        super().__init__(interaction_id, actor_id, **kwargs)
        self.action_id = action_id
        self.component_type = component_type
        self.values: Tuple[str, ...] = tuple(values)
