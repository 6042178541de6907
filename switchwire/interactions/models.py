"""Platform-neutral UI payload types.

Renderers (platform adapters) translate these into native message
payloads. The HTTP adapter renders them to JSON with
``payload_to_dict``.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union


class ButtonStyle(str, Enum):
    """Visual style of a button."""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUCCESS = "success"
    DANGER = "danger"


@dataclass(frozen=True)
class Button:
    """A clickable control bound to a registry action id."""
    action_id: str
    label: str
    style: ButtonStyle = ButtonStyle.SECONDARY
    disabled: bool = False


class ComponentType(str, Enum):
    """Kind of interactive component an action id is attached to."""
    BUTTON = "button"
    STRING_SELECT = "string_select"
    USER_SELECT = "user_select"


@dataclass(frozen=True)
class SelectOption:
    label: str
    value: str
    description: Optional[str] = None
    default: bool = False


@dataclass(frozen=True)
class SelectMenu:
    """A dropdown bound to a registry action id.

    String selects offer ``options``; user selects let the platform
    list members and ignore ``options``. The picked values arrive on
    the ActionEvent as ``values``.
    """
    action_id: str
    kind: ComponentType = ComponentType.STRING_SELECT
    options: Tuple[SelectOption, ...] = ()
    placeholder: Optional[str] = None
    min_values: int = 1
    max_values: int = 1
    disabled: bool = False


@dataclass(frozen=True)
class ActionRow:
    """A horizontal row of buttons, or a single select menu."""
    components: Tuple[Union[Button, SelectMenu], ...] = ()


@dataclass
class Page:
    """One page of a paginated message.

    Attributes:
        content: Plain message text.
        embeds: Opaque embed dicts handed to the renderer untouched.
        components: Extra rows rendered above the navigation row.
    """
    content: Optional[str] = None
    embeds: List[Dict[str, Any]] = field(default_factory=list)
    components: List[ActionRow] = field(default_factory=list)


@dataclass
class MessagePayload:
    """A renderable message: text, embeds and interactive rows."""
    content: Optional[str] = None
    embeds: List[Dict[str, Any]] = field(default_factory=list)
    components: List[ActionRow] = field(default_factory=list)
    ephemeral: bool = False


@dataclass(frozen=True)
class GuildInfo:
    """The community (server/guild) an interaction happened in.

    Attributes:
        id: Guild id.
        owner_id: Actor id of the guild owner.
        mod_role_ids: Role ids configured as moderator roles.
        role_names: Role id -> display name, used in rejection messages.
    """
    id: str
    owner_id: Optional[str] = None
    mod_role_ids: Tuple[str, ...] = ()
    role_names: Dict[str, str] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class MemberInfo:
    """Guild-scoped view of the acting user."""
    id: str
    role_ids: FrozenSet[str] = frozenset()
    permissions: FrozenSet[str] = frozenset()


def payload_to_dict(payload: MessagePayload) -> Dict[str, Any]:
    """Render a payload to plain JSON-compatible data."""
    data = asdict(payload)
    for row, rendered in zip(payload.components, data["components"]):
        for component, item in zip(row.components, rendered["components"]):
            if isinstance(component, SelectMenu):
                item["kind"] = component.kind.value
                item["type"] = component.kind.value
            else:
                item["style"] = component.style.value
                item["type"] = ComponentType.BUTTON.value
    return data
