"""Default middleware selection from a CommandConfig."""

from typing import List, Optional

from ..cooldowns import CommandCooldowns
from .builtin import CooldownMiddleware, ErrorMiddleware, GuildMiddleware, LoggingMiddleware
from .command_config import CommandConfig
from .permissions import PermissionMiddleware
from .pipeline import CommandMiddleware, MiddlewareConfiguration


def auto_middleware(
    config: Optional[CommandConfig] = None,
    *,
    cooldowns: Optional[CommandCooldowns] = None,
) -> MiddlewareConfiguration:
    """Build the ``before`` steps implied by ``config``.

    Order: error capture, logging, guild gate, permission gate,
    cooldown. Gates are only added when the config asks for them.
    """
    config = config or CommandConfig()
    steps: List[CommandMiddleware] = [ErrorMiddleware(), LoggingMiddleware()]
    if config.guild_only:
        steps.append(GuildMiddleware())
    if config.needs_permission_check:
        steps.append(PermissionMiddleware())
    if config.cooldown:
        steps.append(CooldownMiddleware(cooldowns))
    return MiddlewareConfiguration(before=steps)
