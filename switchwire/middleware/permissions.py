"""Permission gate for commands.

Checks, in order: guild owner, required role, configured mod role and
platform permissions. The first failing check replies with an
ephemeral explanation and stops the chain.
"""

from typing import Iterable, List

from ..interactions.events import CommandInteraction
from ..interactions.models import MemberInfo
from ..messages import create_error_message
from .command_config import CommandConfig, PermissionRequirement
from .pipeline import CommandMiddleware, Continuation, MiddlewareContext

ADMINISTRATOR = "administrator"


def format_permission_name(permission: str) -> str:
    """``manage_messages`` -> ``Manage Messages``."""
    return " ".join(part.capitalize() for part in permission.replace("-", "_").split("_") if part)


def missing_permissions(requirement: PermissionRequirement, granted: Iterable[str]) -> List[str]:
    """Return the required permissions the member lacks.

    ``administrator`` satisfies every requirement. With
    ``require_any`` the result is either empty or the full list.
    """
    granted = set(granted)
    if ADMINISTRATOR in granted:
        return []
    if requirement.require_any:
        if any(perm in granted for perm in requirement.required):
            return []
        return list(requirement.required)
    return [perm for perm in requirement.required if perm not in granted]


async def _reject(interaction: CommandInteraction, title: str, description: str) -> None:
    await interaction.reply(create_error_message(f"❌ {title}", description))


async def _check_owner(interaction: CommandInteraction, config: CommandConfig) -> bool:
    if not config.owner:
        return True
    owner_id = interaction.guild.owner_id if interaction.guild else None
    if interaction.actor_id != owner_id:
        await _reject(
            interaction, "Owner Only Command", "Only the server owner can use this command."
        )
        return False
    return True


async def _check_role(
    interaction: CommandInteraction, config: CommandConfig, member: MemberInfo
) -> bool:
    if not config.role or config.role in member.role_ids:
        return True
    role_name = f"Role ID: {config.role}"
    if interaction.guild and config.role in interaction.guild.role_names:
        role_name = interaction.guild.role_names[config.role]
    await _reject(
        interaction,
        "Missing Required Role",
        f"You need the **{role_name}** role to use this command.",
    )
    return False


async def _check_mod_role(
    interaction: CommandInteraction, config: CommandConfig, member: MemberInfo
) -> bool:
    if not config.mod_role:
        return True

    guild = interaction.guild
    if guild is None:
        await _reject(
            interaction, "Permission Check Failed", "This command can only be used in a server."
        )
        return False

    if not guild.mod_role_ids:
        await _reject(
            interaction,
            "Mod Role Not Configured",
            "No mod roles have been configured for this server. "
            "Please use the setup command to configure mod roles.",
        )
        return False

    if any(role_id in member.role_ids for role_id in guild.mod_role_ids):
        return True

    names = [guild.role_names[r] for r in guild.mod_role_ids if r in guild.role_names]
    role_list = ", ".join(names) if names else "a configured mod role"
    await _reject(
        interaction,
        "Missing Mod Role",
        f"You need one of the following mod roles to use this command: **{role_list}**",
    )
    return False


async def _check_permissions(
    interaction: CommandInteraction, config: CommandConfig, member: MemberInfo
) -> bool:
    requirement = config.permissions
    if not requirement or not requirement.required:
        return True

    missing = missing_permissions(requirement, member.permissions)
    if not missing:
        return True

    formatted = [format_permission_name(p) for p in missing]
    if requirement.require_any:
        title = "Missing Required Permission"
        description = "You need at least one of these permissions:\n• " + "\n• ".join(formatted)
    else:
        title = "Missing Required Permissions"
        if len(formatted) == 1:
            description = f"You need the **{formatted[0]}** permission to use this command."
        else:
            description = "You need these permissions:\n• " + "\n• ".join(formatted)
    await _reject(interaction, title, description)
    return False


class PermissionMiddleware(CommandMiddleware):
    """Stops the chain unless the member satisfies the command's config."""

    name = "permissions"

    async def execute(self, context: MiddlewareContext, call_next: Continuation) -> None:
        interaction = context.interaction
        config = context.config
        member = interaction.member

        if member is None:
            await _reject(
                interaction,
                "Permission Check Failed",
                "Unable to determine your permissions for this command.",
            )
            return

        if not await _check_owner(interaction, config):
            return
        if not await _check_role(interaction, config, member):
            return
        if not await _check_mod_role(interaction, config, member):
            return
        if not await _check_permissions(interaction, config, member):
            return

        await call_next()
