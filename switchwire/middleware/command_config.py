"""Per-command gating configuration.

CommandConfig declares what a command requires (guild context,
permissions, roles, cooldown). ``auto_middleware`` turns it into the
matching pipeline steps.

Permission names are snake_case platform permission names, e.g.
``ban_members`` or ``administrator``.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class PermissionRequirement:
    """Platform permissions a member must hold.

    Attributes:
        required: Permission names.
        require_any: True = one of them suffices, False = all needed.
    """
    required: Tuple[str, ...] = ()
    require_any: bool = False


@dataclass(frozen=True)
class CommandConfig:
    """Declarative requirements for running a command.

    Attributes:
        guild_only: Reject invocations outside a guild.
        permissions: Platform permission requirement.
        cooldown: Per-user cooldown in seconds.
        role: Role id the member must have.
        mod_role: Require one of the guild's configured mod roles.
        owner: Only the guild owner may run the command.
        custom: Arbitrary data for custom middleware.
    """
    guild_only: bool = False
    permissions: Optional[PermissionRequirement] = None
    cooldown: Optional[float] = None
    role: Optional[str] = None
    mod_role: bool = False
    owner: bool = False
    custom: Dict[str, Any] = field(default_factory=dict, hash=False)

    @property
    def needs_permission_check(self) -> bool:
        return bool(
            self.owner
            or self.role
            or self.mod_role
            or (self.permissions and self.permissions.required)
        )


class CommandConfigBuilder:
    """Fluent builder for CommandConfig. Chain methods then call build()."""

    def __init__(self):
        self._config = CommandConfig()

    @classmethod
    def create(cls) -> "CommandConfigBuilder":
        return cls()

    def guild_only(self) -> "CommandConfigBuilder":
        self._config = replace(self._config, guild_only=True)
        return self

    def permissions(self, *perms: str) -> "CommandConfigBuilder":
        self._config = replace(
            self._config, permissions=PermissionRequirement(required=perms)
        )
        return self

    def any_permission(self, *perms: str) -> "CommandConfigBuilder":
        self._config = replace(
            self._config,
            permissions=PermissionRequirement(required=perms, require_any=True),
        )
        return self

    def cooldown_seconds(self, seconds: float) -> "CommandConfigBuilder":
        self._config = replace(self._config, cooldown=float(seconds))
        return self

    def cooldown_minutes(self, minutes: float) -> "CommandConfigBuilder":
        return self.cooldown_seconds(minutes * 60)

    def cooldown_ms(self, milliseconds: float) -> "CommandConfigBuilder":
        return self.cooldown_seconds(milliseconds / 1000)

    def role(self, role_id: str) -> "CommandConfigBuilder":
        self._config = replace(self._config, role=role_id)
        return self

    def has_mod_role(self) -> "CommandConfigBuilder":
        self._config = replace(self._config, mod_role=True)
        return self

    def owner(self) -> "CommandConfigBuilder":
        self._config = replace(self._config, owner=True)
        return self

    def custom(self, key: str, value: Any) -> "CommandConfigBuilder":
        self._config = replace(self._config, custom={**self._config.custom, key: value})
        return self

    def build(self) -> CommandConfig:
        return self._config


# Presets

def require_permissions(*perms: str) -> CommandConfig:
    return CommandConfigBuilder.create().permissions(*perms).build()


def require_any_permission(*perms: str) -> CommandConfig:
    return CommandConfigBuilder.create().any_permission(*perms).build()


def require_role(role_id: str) -> CommandConfig:
    return CommandConfigBuilder.create().role(role_id).build()


def require_owner() -> CommandConfig:
    return CommandConfigBuilder.create().owner().build()


def cooldown_seconds(seconds: float) -> CommandConfig:
    return CommandConfigBuilder.create().cooldown_seconds(seconds).build()


def cooldown_minutes(minutes: float) -> CommandConfig:
    return CommandConfigBuilder.create().cooldown_minutes(minutes).build()


def mod_config(cooldown: float = 5) -> CommandConfig:
    """Guild-only, mod role required, short cooldown."""
    return (
        CommandConfigBuilder.create()
        .guild_only()
        .has_mod_role()
        .cooldown_seconds(cooldown)
        .build()
    )


def admin_config(cooldown: float = 10) -> CommandConfig:
    """Guild-only, administrator permission required."""
    return (
        CommandConfigBuilder.create()
        .guild_only()
        .permissions("administrator")
        .cooldown_seconds(cooldown)
        .build()
    )


def utility_config(cooldown: float = 1) -> CommandConfig:
    return CommandConfigBuilder.create().guild_only().cooldown_seconds(cooldown).build()
