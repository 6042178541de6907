"""Tests for PermissionMiddleware."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from switchwire.commands.base import create_command
from switchwire.interactions.models import GuildInfo
from switchwire.middleware.command_config import (
    CommandConfig,
    PermissionRequirement,
    require_any_permission,
    require_owner,
    require_permissions,
    require_role,
)
from switchwire.middleware.permissions import (
    PermissionMiddleware,
    format_permission_name,
    missing_permissions,
)
from switchwire.middleware.pipeline import (
    MiddlewareConfiguration,
    MiddlewareContext,
    run_middleware_chain,
)


async def _run(interaction, config):
    command = create_command(
        "test", "Test", AsyncMock(), config=config, middleware=MiddlewareConfiguration()
    )
    context = MiddlewareContext(
        interaction=interaction, command=command, logger=MagicMock(), config=config
    )
    final = AsyncMock()
    await run_middleware_chain([PermissionMiddleware()], context, final)
    return final.await_count == 1


def _title(interaction):
    return interaction.last("reply").embeds[0]["title"]


def _description(interaction):
    return interaction.last("reply").embeds[0]["description"]


class TestHelpers:

    def test_format_permission_name(self):
        assert format_permission_name("ban_members") == "Ban Members"
        assert format_permission_name("administrator") == "Administrator"
        assert format_permission_name("manage-messages") == "Manage Messages"

    def test_missing_all(self):
        requirement = PermissionRequirement(required=("kick_members", "ban_members"))
        assert missing_permissions(requirement, {"kick_members"}) == ["ban_members"]

    def test_missing_any(self):
        requirement = PermissionRequirement(
            required=("kick_members", "ban_members"), require_any=True
        )
        assert missing_permissions(requirement, {"ban_members"}) == []
        assert missing_permissions(requirement, set()) == ["kick_members", "ban_members"]

    def test_administrator_satisfies_everything(self):
        requirement = PermissionRequirement(required=("ban_members", "manage_guild"))
        assert missing_permissions(requirement, {"administrator"}) == []


class TestPermissionMiddleware:

    @pytest.mark.asyncio
    async def test_member_with_permissions_passes(self, make_command):
        interaction = make_command(permissions=("ban_members",))
        assert await _run(interaction, require_permissions("ban_members")) is True
        assert interaction.sent == []

    @pytest.mark.asyncio
    async def test_single_missing_permission(self, make_command):
        interaction = make_command(permissions=("kick_members",))
        assert await _run(interaction, require_permissions("ban_members")) is False
        assert _title(interaction) == "❌ Missing Required Permissions"
        assert "**Ban Members**" in _description(interaction)
        assert interaction.last("reply").ephemeral is True

    @pytest.mark.asyncio
    async def test_several_missing_permissions_listed(self, make_command):
        interaction = make_command()
        assert await _run(interaction, require_permissions("ban_members", "manage_roles")) is False
        assert "• Ban Members" in _description(interaction)
        assert "• Manage Roles" in _description(interaction)

    @pytest.mark.asyncio
    async def test_any_permission(self, make_command):
        config = require_any_permission("kick_members", "ban_members")
        assert await _run(make_command(permissions=("kick_members",)), config) is True

        interaction = make_command()
        assert await _run(interaction, config) is False
        assert _title(interaction) == "❌ Missing Required Permission"
        assert "at least one" in _description(interaction)

    @pytest.mark.asyncio
    async def test_owner_only(self, make_command):
        assert await _run(make_command(actor_id="owner-1"), require_owner()) is True

        interaction = make_command(actor_id="user-1")
        assert await _run(interaction, require_owner()) is False
        assert _title(interaction) == "❌ Owner Only Command"

    @pytest.mark.asyncio
    async def test_required_role_named_in_rejection(self, make_command):
        assert await _run(make_command(roles=("vip",)), require_role("vip")) is True

        interaction = make_command()
        assert await _run(interaction, require_role("vip")) is False
        assert _title(interaction) == "❌ Missing Required Role"
        assert "**VIP**" in _description(interaction)

    @pytest.mark.asyncio
    async def test_unknown_role_falls_back_to_id(self, make_command):
        interaction = make_command()
        assert await _run(interaction, require_role("r-404")) is False
        assert "Role ID: r-404" in _description(interaction)

    @pytest.mark.asyncio
    async def test_mod_role(self, make_command):
        config = CommandConfig(mod_role=True)
        assert await _run(make_command(roles=("mods",)), config) is True

        interaction = make_command(roles=("vip",))
        assert await _run(interaction, config) is False
        assert _title(interaction) == "❌ Missing Mod Role"
        assert "Moderators" in _description(interaction)

    @pytest.mark.asyncio
    async def test_mod_role_not_configured(self, make_command):
        interaction = make_command(roles=("mods",))
        interaction.guild = GuildInfo(id="guild-2", owner_id="owner-2")
        assert await _run(interaction, CommandConfig(mod_role=True)) is False
        assert _title(interaction) == "❌ Mod Role Not Configured"

    @pytest.mark.asyncio
    async def test_missing_member_info(self, make_command):
        interaction = make_command(member=False)
        assert await _run(interaction, require_permissions("ban_members")) is False
        assert _title(interaction) == "❌ Permission Check Failed"

    @pytest.mark.asyncio
    async def test_owner_check_runs_before_permissions(self, make_command):
        config = CommandConfig(owner=True, permissions=PermissionRequirement(("ban_members",)))
        interaction = make_command(actor_id="user-1")
        assert await _run(interaction, config) is False
        assert _title(interaction) == "❌ Owner Only Command"
        assert len(interaction.sent) == 1
