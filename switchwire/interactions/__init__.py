"""Ephemeral interaction dispatch for switchwire.

Provides the HandlerRegistry that maps short-lived action ids to async
handlers, the inbound interaction contracts, and the UI payload types.
"""

from .events import ActionEvent, CommandInteraction, Interaction
from .models import (
    ActionRow,
    Button,
    ButtonStyle,
    ComponentType,
    GuildInfo,
    MemberInfo,
    MessagePayload,
    Page,
    SelectMenu,
    SelectOption,
    payload_to_dict,
)
from .registry import HandlerRegistry, RegisteredHandler, Registration

__all__ = [
    "ActionEvent",
    "ActionRow",
    "Button",
    "ButtonStyle",
    "ComponentType",
    "CommandInteraction",
    "GuildInfo",
    "HandlerRegistry",
    "Interaction",
    "MemberInfo",
    "MessagePayload",
    "Page",
    "RegisteredHandler",
    "Registration",
    "SelectMenu",
    "SelectOption",
    "payload_to_dict",
]
